import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.db import IntegrityError
from django.db import InterfaceError
from django.db import OperationalError
from django.db import connection

from apps.shared.exceptions import AppError
from apps.shared.exceptions import ConflictError
from apps.shared.exceptions import InvalidReferenceError
from apps.shared.exceptions import ResourceNotFoundError
from apps.shared.exceptions import ServiceUnavailableError
from apps.shared.exceptions import ValidationError

logger = logging.getLogger(__name__)

TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError)


class DatabaseErrorHandler:
    """
    Centralized database error handling with configurable mappings.
    Preserves error context while providing consistent exception translation.
    """

    def __init__(self, operation_type: str = "database_operation"):
        self.operation_type = operation_type
        self.error_mappings = {
            IntegrityError: self._handle_integrity_error,
            DjangoValidationError: self._handle_validation_error,
            OperationalError: self._handle_transient_error,
            InterfaceError: self._handle_transient_error,
            DatabaseError: self._handle_database_error,
            ObjectDoesNotExist: self._handle_not_found_error,
        }

    def _handle_integrity_error(self, error: IntegrityError, context: dict[str, Any]) -> AppError:
        """Unique violations → Conflict, FK violations → InvalidReference"""
        text = str(error).lower()
        model_name = context.get("model_name", "Resource")

        if "foreign key" in text:
            logger.warning(
                f"Foreign key violation in {self.operation_type}: {error}",
                extra={"operation": self.operation_type, "context": context},
            )
            return InvalidReferenceError(
                message=f"{model_name} references a row that does not exist",
                error_code="INVALID_REFERENCE",
                context={"model": model_name, "operation": self.operation_type},
            )

        if "unique" in text or "duplicate" in text:
            logger.warning(
                f"Unique constraint violation in {self.operation_type}: {error}",
                extra={"operation": self.operation_type, "context": context},
            )
            return ConflictError(
                message=f"{model_name} already exists",
                error_code=f"{model_name.upper()}_CONFLICT",
                context={"model": model_name, "operation": self.operation_type},
            )

        logger.warning(
            f"Integrity constraint violation in {self.operation_type}: {error}",
            extra={"operation": self.operation_type, "context": context},
        )
        return ValidationError(
            message=f"Data integrity violation: {error!s}",
            error_code=f"{self.operation_type.upper()}_INTEGRITY_ERROR",
            context={"model": model_name, "constraint_violation": True},
        )

    def _handle_validation_error(
        self, error: DjangoValidationError, context: dict[str, Any]
    ) -> ValidationError:
        """Handle Django validation errors while preserving field context"""
        logger.warning(
            f"Validation error in {self.operation_type}: {error}",
            extra={"operation": self.operation_type, "context": context},
        )

        field_errors = {}
        if hasattr(error, "message_dict"):
            field_errors = error.message_dict
        elif hasattr(error, "messages"):
            field_errors = {"non_field_errors": error.messages}

        return ValidationError(
            message=f"Validation failed: {'; '.join(error.messages)}",
            field_errors=field_errors,
            error_code="VALIDATION_ERROR",
        )

    def _handle_transient_error(self, error: DatabaseError, context: dict[str, Any]) -> ServiceUnavailableError:
        """Connection drops, timeouts, lock timeouts - safe to retry"""
        logger.error(
            f"Transient database error in {self.operation_type}: {error}",
            extra={"operation": self.operation_type, "context": context},
        )
        return ServiceUnavailableError(
            message="Database service is temporarily unavailable",
            error_code="DATABASE_UNAVAILABLE",
            context={"operation": self.operation_type, "transient": True},
        )

    def _handle_database_error(
        self, error: DatabaseError, context: dict[str, Any]
    ) -> ServiceUnavailableError:
        """Handle general database infrastructure errors"""
        logger.critical(
            f"Database infrastructure error in {self.operation_type}: {error}",
            extra={"operation": self.operation_type, "context": context},
            exc_info=True,
        )
        return ServiceUnavailableError(
            message="Database service is temporarily unavailable",
            error_code="DATABASE_ERROR",
            context={"operation": self.operation_type},
        )

    def _handle_not_found_error(
        self, error: ObjectDoesNotExist, context: dict[str, Any]
    ) -> ResourceNotFoundError:
        """Handle object not found errors"""
        model_name = context.get("model_name", "Resource")

        logger.debug(
            f"Resource not found in {self.operation_type}: {model_name}",
            extra={"operation": self.operation_type, "context": context},
        )

        return ResourceNotFoundError(
            message=f"{model_name} not found",
            error_code=f"{_to_code(model_name)}_NOT_FOUND",
            context={"model": model_name},
        )

    def handle_exception(self, error: Exception, context: dict[str, Any]) -> Exception:
        """
        Handle exception based on type mapping.
        Returns appropriate business exception.
        """
        for error_type, handler in self.error_mappings.items():
            if isinstance(error, error_type):
                return handler(error, context)

        logger.error(
            f"Unexpected error in {self.operation_type}: {error}",
            extra={"operation": self.operation_type, "context": context},
            exc_info=True,
        )
        return error


def handle_db_errors(
    operation_type: str = None,
    model_name: str = None,
    preserve_context: bool = True,
    custom_mappings: dict[type[Exception], Callable] = None,
):
    """
    Decorator for centralized database error handling in DAL methods.

    Args:
        operation_type: Type of operation (create, read, update, delete)
        model_name: Model name for error context
        preserve_context: Whether to preserve original call context for logs
        custom_mappings: Additional error type mappings

    Usage:
        @handle_db_errors(operation_type='create', model_name='Ticket')
        def create_ticket(self, data: dict) -> Ticket:
            return Ticket.objects.create(**data)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, *args, **kwargs) -> Any:
            detected_operation = operation_type or func.__name__.lower()

            error_handler = DatabaseErrorHandler(detected_operation)
            if custom_mappings:
                error_handler.error_mappings.update(custom_mappings)

            context = {
                "method": func.__name__,
                "class": self.__class__.__name__,
                "operation": detected_operation,
            }

            if model_name:
                context["model_name"] = model_name

            if preserve_context:
                if args:
                    context["args_count"] = len(args)
                if kwargs:
                    context["kwargs"] = {
                        k: v
                        for k, v in kwargs.items()
                        if not any(sensitive in k.lower() for sensitive in ["password", "secret", "token", "key"])
                    }

            try:
                return func(self, *args, **kwargs)
            except AppError:
                raise
            except Exception as e:
                business_exception = error_handler.handle_exception(e, context)
                if business_exception is e:
                    raise
                raise business_exception from e

        return wrapper

    return decorator


def retry_on_transient_db_errors(attempts: int = None, backoff_ms: int = None):
    """
    Retry a gateway call on connection/timeout errors with exponential backoff.

    Never retries inside an open atomic block: the surrounding transaction is
    already broken and must be rolled back by its owner.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            max_attempts = attempts or getattr(settings, "DB_RETRY_ATTEMPTS", 3)
            delay_ms = backoff_ms or getattr(settings, "DB_RETRY_BACKOFF_MS", 50)

            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except ServiceUnavailableError as e:
                    if attempt >= max_attempts or connection.in_atomic_block:
                        raise
                    wait = delay_ms * (2 ** (attempt - 1)) / 1000.0
                    logger.warning(
                        f"{func.__qualname__} failed with transient error ({e.error_code}), "
                        f"retry {attempt}/{max_attempts - 1} in {wait:.3f}s"
                    )
                    connection.close_if_unusable_or_obsolete()
                    time.sleep(wait)

        return wrapper

    return decorator


def _to_code(model_name: str) -> str:
    """TicketGenerationJob -> TICKET_GENERATION_JOB"""
    chars = []
    for index, char in enumerate(model_name):
        if char.isupper() and index:
            chars.append("_")
        chars.append(char.upper())
    return "".join(chars)
