"""
Domain-specific business exceptions for the Scans app.

- Gate refusals (event state, capacity, QR payload) never consume a ticket
- HTTP mapping happens in the global exception handler
"""

from apps.shared.exceptions import BusinessRuleViolation
from apps.shared.exceptions import ConflictError
from apps.shared.exceptions import PermissionError
from apps.shared.exceptions import ServiceTimeoutError
from apps.shared.exceptions import ValidationError

# =============================================================================
# Event Gate Exceptions
# =============================================================================


class EventNotActiveError(BusinessRuleViolation):
    status_code = 400

    def __init__(self, event_status: str = None, **kwargs):
        super().__init__(
            "Event is not open for scanning",
            error_code="EVENT_NOT_ACTIVE",
            context={'event_status': event_status},
            **kwargs,
        )


class EventEndedError(BusinessRuleViolation):
    status_code = 400

    def __init__(self, event_date=None, **kwargs):
        super().__init__(
            "Event has already ended",
            error_code="EVENT_ENDED",
            context={'event_date': event_date.isoformat() if event_date else None},
            **kwargs,
        )


class EventFullError(BusinessRuleViolation):
    status_code = 409

    def __init__(self, max_attendees: int = None, **kwargs):
        super().__init__(
            "Event reached its maximum number of attendees",
            error_code="EVENT_FULL",
            context={'max_attendees': max_attendees},
            **kwargs,
        )


# =============================================================================
# QR Payload Exceptions
# =============================================================================


class CorruptedQRCodeError(ValidationError):
    def __init__(self, **kwargs):
        super().__init__("QR code payload cannot be decoded", error_code="CORRUPTED_QR_CODE", **kwargs)


class InvalidQRFormatError(ValidationError):
    def __init__(self, missing_keys: list[str] = None, **kwargs):
        super().__init__(
            "QR code payload is missing required keys",
            error_code="INVALID_QR_FORMAT",
            context={'missing_keys': missing_keys or []},
            **kwargs,
        )


class QRTicketMismatchError(ValidationError):
    def __init__(self, **kwargs):
        super().__init__("QR code does not belong to this ticket", error_code="QR_TICKET_MISMATCH", **kwargs)


# =============================================================================
# Consumption Exceptions
# =============================================================================


class TicketAlreadyUsedError(ConflictError):
    """Raised on every scan of a ticket that was already consumed."""

    def __init__(self, ticket_code: str, validated_at=None, **kwargs):
        super().__init__(
            f"Ticket '{ticket_code}' has already been used",
            error_code="TICKET_ALREADY_USED",
            context={'validated_at': validated_at.isoformat() if validated_at else None},
            **kwargs,
        )
        self.validated_at = validated_at


class ScanPermissionError(PermissionError):
    def __init__(self, event_id: str = None, **kwargs):
        super().__init__(
            f"Permission denied for scanning tickets of event '{event_id}'",
            error_code="SCAN_PERMISSION_DENIED",
            **kwargs,
        )


class ScanTimeoutError(ServiceTimeoutError):
    """The scan exceeded its budget; whether the ticket was consumed is unknown."""

    def __init__(self, timeout_ms: int = None, **kwargs):
        super().__init__(
            f"Scan validation exceeded {timeout_ms} ms",
            error_code="SCAN_TIMEOUT",
            context={'timeout_ms': timeout_ms},
            **kwargs,
        )
