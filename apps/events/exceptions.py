"""
Domain-specific business exceptions for Events app.

- These are BUSINESS exceptions, not HTTP exceptions
- HTTP mapping happens in the global exception handler
- Inherits from core business exception hierarchy
"""

from apps.shared.exceptions import BusinessRuleViolation
from apps.shared.exceptions import PermissionError
from apps.shared.exceptions import ResourceNotFoundError

# =============================================================================
# Event Domain Exceptions
# =============================================================================


class EventNotFoundError(ResourceNotFoundError):
    """Raised when requested event does not exist."""

    def __init__(self, event_identifier: str = None, **kwargs):
        message = "Event not found"
        if event_identifier:
            message = f"Event '{event_identifier}' not found"
        super().__init__(message, error_code="EVENT_NOT_FOUND", **kwargs)


class EventPermissionError(PermissionError):
    """Raised when user lacks permission to access/modify event."""

    def __init__(self, action: str = None, event_id: str = None, **kwargs):
        if action and event_id:
            message = f"Permission denied for '{action}' on event '{event_id}'"
        else:
            message = "Permission denied for this event operation"
        super().__init__(message, error_code="EVENT_PERMISSION_DENIED", **kwargs)


# =============================================================================
# Event Guest Domain Exceptions
# =============================================================================


class EventGuestNotFoundError(ResourceNotFoundError):
    """Raised when requested event guest does not exist."""

    def __init__(self, identifier: str = None, **kwargs):
        message = "Event guest not found"
        if identifier:
            message = f"Event guest '{identifier}' not found"
        super().__init__(message, error_code="EVENT_GUEST_NOT_FOUND", **kwargs)


class InvalidGuestStatusTransitionError(BusinessRuleViolation):
    """Raised when an event guest status change is not allowed."""

    status_code = 409

    def __init__(self, current: str, requested: str, **kwargs):
        message = f"Cannot change event guest status from '{current}' to '{requested}'"
        super().__init__(
            message,
            error_code="INVALID_GUEST_STATUS_TRANSITION",
            context={'current_status': current, 'requested_status': requested},
            **kwargs,
        )
