"""
Domain-specific business exceptions for the Tickets app.

Covers ticket lookup, payload enrichment, generation jobs, the queue and
the renderer callbacks.
"""

from apps.shared.exceptions import AuthenticationError
from apps.shared.exceptions import ConflictError
from apps.shared.exceptions import PermissionError
from apps.shared.exceptions import ResourceNotFoundError
from apps.shared.exceptions import ServiceUnavailableError
from apps.shared.exceptions import ValidationError

# =============================================================================
# Ticket Exceptions
# =============================================================================


class TicketNotFoundError(ResourceNotFoundError):
    """Raised when a ticket cannot be resolved (or vanished during a scan)."""

    def __init__(self, identifier: str = None, **kwargs):
        message = "Ticket not found"
        if identifier:
            message = f"Ticket '{identifier}' not found"
        super().__init__(message, error_code="TICKET_NOT_FOUND", **kwargs)


# =============================================================================
# Enrichment Exceptions
# =============================================================================


class NoEnrichableTicketsError(ValidationError):
    """None of the requested tickets could be assembled into a render payload."""

    def __init__(self, diagnostics: list[dict] = None, **kwargs):
        super().__init__(
            "None of the requested tickets can be generated",
            error_code="NO_ENRICHABLE_TICKETS",
            context={'diagnostics': diagnostics or []},
            **kwargs,
        )
        self.diagnostics = diagnostics or []


class InvalidEnrichedDataError(ValidationError):
    """Enriched payloads miss fields the renderer requires."""

    def __init__(self, missing_fields: dict[int, list[str]], **kwargs):
        super().__init__(
            f"{len(missing_fields)} ticket(s) miss data required for generation",
            error_code="INVALID_ENRICHED_DATA",
            context={'missing_fields': {str(k): v for k, v in missing_fields.items()}},
            **kwargs,
        )
        self.missing_fields = missing_fields


class TicketsSpanMultipleEventsError(ValidationError):
    def __init__(self, event_ids: list[int], **kwargs):
        super().__init__(
            "Tickets of one generation job must belong to a single event",
            error_code="TICKETS_SPAN_MULTIPLE_EVENTS",
            context={'event_ids': sorted(event_ids)},
            **kwargs,
        )


# =============================================================================
# Generation Job Exceptions
# =============================================================================


class GenerationJobNotFoundError(ResourceNotFoundError):
    def __init__(self, job_uid: str = None, **kwargs):
        message = "Generation job not found"
        if job_uid:
            message = f"Generation job '{job_uid}' not found"
        super().__init__(message, error_code="GENERATION_JOB_NOT_FOUND", **kwargs)


class GenerationPermissionError(PermissionError):
    def __init__(self, action: str = 'generate', **kwargs):
        super().__init__(
            f"Permission denied for '{action}' on ticket generation",
            error_code="GENERATION_PERMISSION_DENIED",
            **kwargs,
        )


class JobAlreadyTerminalError(ConflictError):
    def __init__(self, job_uid: str, status: str, **kwargs):
        super().__init__(
            f"Generation job '{job_uid}' is already {status}",
            error_code="JOB_ALREADY_TERMINAL",
            context={'job_uid': job_uid, 'status': status},
            **kwargs,
        )


class GenerationQueueError(ServiceUnavailableError):
    """The render request could not be handed to the queue."""

    def __init__(self, message: str = "Generation queue is unavailable", **kwargs):
        super().__init__(message, error_code="QUEUE_ERROR", **kwargs)


# =============================================================================
# Renderer Callback Exceptions
# =============================================================================


class InvalidResultMessageError(ValidationError):
    def __init__(self, message: str, error_code: str = "INVALID_RESULT_MESSAGE", **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)


class WebhookAuthenticationError(AuthenticationError):
    def __init__(self, message: str = "Invalid webhook signature", **kwargs):
        super().__init__(message, error_code="INVALID_WEBHOOK_SIGNATURE", **kwargs)
