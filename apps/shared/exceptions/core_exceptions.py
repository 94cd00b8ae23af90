"""
Core Business Exception Hierarchy for EventFlow

- Clean separation between business and HTTP layers
- Exception Translation from DAL → Service → View layers
- Every error carries a stable error_code that clients can switch on

These exceptions represent BUSINESS failures, not HTTP responses.
HTTP mapping happens in the API exception handler.
"""

import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    """
    Base class for all business logic errors in the application.

    This is NOT an HTTP exception - it's a pure business domain error.
    HTTP status codes are mapped by the API exception handler. A subclass may
    pin its status with the `status_code` class attribute.
    """

    status_code = None
    retryable = False

    def __init__(self, message: str, error_code: str = None, context: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def __str__(self) -> str:
        return self.message

    def get_context(self) -> dict:
        """Get additional error context for logging/debugging"""
        return self.context


class ResourceNotFoundError(AppError):
    """
    Raised when a requested resource doesn't exist.

    Examples:
    - Ticket code unknown for the event
    - Generation job uid not found

    HTTP Mapping: 404 NOT FOUND
    """
    pass


class BusinessRuleViolation(AppError):
    """
    Raised when user action violates business logic rules.

    Examples:
    - Scanning a ticket of an event that already ended
    - Event reached max attendees
    - Invalid state transitions

    HTTP Mapping: 409 CONFLICT or 400 BAD REQUEST
    """
    pass


class ConflictError(AppError):
    """
    Raised when the request collides with the current state of a resource.

    Examples:
    - Unique constraint violation (duplicate ticket code, duplicate job uid)
    - Ticket already consumed

    HTTP Mapping: 409 CONFLICT
    """
    pass


class ValidationError(AppError):
    """
    Raised when input data fails business validation.

    HTTP Mapping: 400 BAD REQUEST
    """

    def __init__(self, message: str, field_errors: dict = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field_errors = field_errors or {}


class InvalidReferenceError(ValidationError):
    """
    Raised when a write references a row that does not exist (FK violation).

    HTTP Mapping: 400 BAD REQUEST
    """
    pass


class PermissionError(AppError):
    """
    Raised when user lacks required permissions for business operation.

    Examples:
    - Operator scanning tickets of someone else's event
    - Non-organizer creating a generation job

    HTTP Mapping: 403 FORBIDDEN
    """
    pass


class ServiceUnavailableError(AppError):
    """
    Raised when external service dependencies fail.

    Examples:
    - Database connection issues
    - Queue broker unreachable
    - Cache service failures

    Transient by nature - callers may retry with backoff.

    HTTP Mapping: 503 SERVICE UNAVAILABLE
    """

    retryable = True


class ServiceTimeoutError(ServiceUnavailableError):
    """
    Raised when an operation exceeds its deadline.

    The outcome of the operation is unknown to the caller.

    HTTP Mapping: 504 GATEWAY TIMEOUT
    """
    pass


class AuthenticationError(AppError):
    """
    Raised when authentication fails at business layer.

    Examples:
    - Webhook signature mismatch
    - Expired credentials

    HTTP Mapping: 401 UNAUTHORIZED
    """
    pass

