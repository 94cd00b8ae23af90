"""
DRF Exception Handler for EventFlow

- Translates business exceptions → HTTP responses
- Renders every error in the common envelope:
  {success: false, error, code, details?, timestamp}
- Implements proper logging strategy

Architecture Flow:
DAL (Django exceptions) → Business exceptions → API Handler → HTTP responses
"""

import logging
import traceback
import uuid

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.shared.exceptions import AppError
from apps.shared.exceptions import AuthenticationError
from apps.shared.exceptions import BusinessRuleViolation
from apps.shared.exceptions import ConflictError
from apps.shared.exceptions import PermissionError
from apps.shared.exceptions import ResourceNotFoundError
from apps.shared.exceptions import ServiceTimeoutError
from apps.shared.exceptions import ServiceUnavailableError
from apps.shared.exceptions import ValidationError
from apps.shared.utils.responses import error_payload

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Exception handler with business → HTTP translation.

    Called for every exception raised in DRF views.

    Args:
        exc: The exception instance
        context: View context (request, view, args, kwargs)

    Returns:
        Response with error envelope and appropriate HTTP status
    """
    request = context.get('request')
    view = context.get('view')

    request_info = _extract_request_info(request, view)

    # DRF standard exceptions (serializer validation, auth, throttling)
    response = exception_handler(exc, context)
    if response is not None:
        _log_drf_exception(exc, request_info)
        return _format_drf_response(response, exc)

    if isinstance(exc, ResourceNotFoundError):
        return _handle_resource_not_found(exc, request_info)

    elif isinstance(exc, ConflictError):
        return _handle_conflict(exc, request_info)

    elif isinstance(exc, BusinessRuleViolation):
        return _handle_business_rule_violation(exc, request_info)

    elif isinstance(exc, ValidationError):
        return _handle_validation_error(exc, request_info)

    elif isinstance(exc, PermissionError):
        return _handle_permission_error(exc, request_info)

    elif isinstance(exc, ServiceTimeoutError):
        return _handle_timeout(exc, request_info)

    elif isinstance(exc, ServiceUnavailableError):
        return _handle_service_unavailable(exc, request_info)

    elif isinstance(exc, AuthenticationError):
        return _handle_authentication_error(exc, request_info)

    elif isinstance(exc, AppError):
        return _handle_generic_app_error(exc, request_info)

    elif isinstance(exc, DjangoPermissionDenied):
        return _handle_django_permission_denied(exc, request_info)

    elif isinstance(exc, Http404):
        return _handle_django_404(exc, request_info)

    return _handle_unhandled_exception(exc, request_info)


# =============================================================================
# Business Exception Handlers
# =============================================================================

def _handle_resource_not_found(exc: ResourceNotFoundError, request_info: dict) -> Response:
    """Handle resource not found errors → 404"""
    _log_business_exception(exc, request_info, level='info')
    return _app_error_response(exc, status.HTTP_404_NOT_FOUND)


def _handle_conflict(exc: ConflictError, request_info: dict) -> Response:
    """Handle conflicts → 409"""
    _log_business_exception(exc, request_info, level='warning')
    return _app_error_response(exc, status.HTTP_409_CONFLICT)


def _handle_business_rule_violation(exc: BusinessRuleViolation, request_info: dict) -> Response:
    """Handle business rule violations → 409 or 400"""
    _log_business_exception(exc, request_info, level='warning')

    status_code = exc.status_code
    if status_code is None:
        status_code = status.HTTP_409_CONFLICT
        if 'validation' in exc.error_code.lower() or 'invalid' in exc.error_code.lower():
            status_code = status.HTTP_400_BAD_REQUEST

    return _app_error_response(exc, status_code)


def _handle_validation_error(exc: ValidationError, request_info: dict) -> Response:
    """Handle validation errors → 400"""
    _log_business_exception(exc, request_info, level='info')

    details = dict(exc.get_context())
    if exc.field_errors:
        details['field_errors'] = exc.field_errors

    return Response(
        error_payload(str(exc), exc.error_code, details),
        status=exc.status_code or status.HTTP_400_BAD_REQUEST,
    )


def _handle_permission_error(exc: PermissionError, request_info: dict) -> Response:
    """Handle permission errors → 403"""
    _log_business_exception(exc, request_info, level='warning')
    return _app_error_response(exc, status.HTTP_403_FORBIDDEN)


def _handle_timeout(exc: ServiceTimeoutError, request_info: dict) -> Response:
    """Handle deadline overruns → 504"""
    _log_business_exception(exc, request_info, level='error')
    return _app_error_response(exc, status.HTTP_504_GATEWAY_TIMEOUT)


def _handle_service_unavailable(exc: ServiceUnavailableError, request_info: dict) -> Response:
    """Handle service unavailable errors → 503"""
    _log_business_exception(exc, request_info, level='error')

    return Response(
        error_payload(
            'A required service is temporarily unavailable',
            exc.error_code,
            {'service_error': str(exc), 'retryable': True},
        ),
        status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


def _handle_authentication_error(exc: AuthenticationError, request_info: dict) -> Response:
    """Handle authentication errors → 401"""
    _log_business_exception(exc, request_info, level='warning')
    return Response(error_payload(str(exc), exc.error_code), status=status.HTTP_401_UNAUTHORIZED)


def _handle_generic_app_error(exc: AppError, request_info: dict) -> Response:
    """Handle generic app errors → 400 unless pinned"""
    _log_business_exception(exc, request_info, level='error')
    return _app_error_response(exc, status.HTTP_400_BAD_REQUEST)


# =============================================================================
# Legacy Exception Handlers (Django exceptions that leak through)
# =============================================================================

def _handle_django_permission_denied(exc, request_info: dict) -> Response:
    """Handle legacy Django PermissionDenied"""
    logger.warning(f"Django PermissionDenied caught in API handler: {request_info}")
    return Response(error_payload('Access denied', 'PERMISSION_DENIED'), status=status.HTTP_403_FORBIDDEN)


def _handle_django_404(exc, request_info: dict) -> Response:
    """Handle legacy Django Http404"""
    logger.info(f"Django Http404 caught in API handler: {request_info}")
    return Response(
        error_payload('The requested resource was not found', 'RESOURCE_NOT_FOUND'),
        status=status.HTTP_404_NOT_FOUND,
    )


def _handle_unhandled_exception(exc, request_info: dict) -> Response:
    """Handle unexpected exceptions → 500 with an error id, no internals"""
    error_id = str(uuid.uuid4())
    logger.error(
        f"UNHANDLED EXCEPTION in API [{error_id}]: {type(exc).__name__}: {str(exc)}\n"
        f"Request: {request_info}\n"
        f"Traceback: {traceback.format_exc()}"
    )

    details = {'error_id': error_id}
    if _is_debug_mode():
        details.update(_get_debug_details(exc))

    return Response(
        error_payload('An unexpected error occurred. Please try again later.', 'INTERNAL_SERVER_ERROR', details),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# =============================================================================
# Utility Functions
# =============================================================================

def _app_error_response(exc: AppError, default_status: int) -> Response:
    return Response(
        error_payload(str(exc), exc.error_code, exc.get_context() or None),
        status=exc.status_code or default_status,
    )


def _format_drf_response(response: Response, exc: Exception) -> Response:
    """Wrap DRF error bodies into the common envelope"""
    code = getattr(exc, 'default_code', type(exc).__name__)
    details = response.data
    message = getattr(exc, 'detail', str(exc))

    if isinstance(details, dict) and set(details) == {'detail'}:
        message = details['detail']
        details = None
    elif code == 'invalid':
        code = 'validation_error'
        message = 'Request validation failed'

    response.data = error_payload(str(message), str(code).upper(), details)
    return response


def _extract_request_info(request, view) -> dict:
    """Extract useful request info for logging"""
    if not request:
        return {'method': 'unknown', 'path': 'unknown', 'user': 'unknown'}

    return {
        'method': getattr(request, 'method', 'unknown'),
        'path': getattr(request, 'path', 'unknown'),
        'user': getattr(request.user, 'id', 'anonymous') if hasattr(request, 'user') else 'unknown',
        'view': f"{view.__class__.__module__}.{view.__class__.__name__}" if view else 'unknown',
    }


def _log_business_exception(exc: AppError, request_info: dict, level: str = 'warning'):
    """Log business exceptions with appropriate level"""
    log_msg = f"Business exception in API: {type(exc).__name__}({exc.error_code}): {str(exc)} | Request: {request_info}"

    if level == 'info':
        logger.info(log_msg)
    elif level == 'error':
        logger.error(log_msg)
    else:
        logger.warning(log_msg)


def _log_drf_exception(exc: Exception, request_info: dict):
    """Log DRF exceptions"""
    logger.info(f"DRF exception in API: {type(exc).__name__}: {str(exc)} | Request: {request_info}")


def _is_debug_mode() -> bool:
    """Check if we're in debug mode"""
    from django.conf import settings
    return getattr(settings, 'DEBUG', False)


def _get_debug_details(exc: Exception) -> dict:
    """Get debug details for development"""
    return {
        'exception_type': type(exc).__name__,
        'exception_message': str(exc),
        'traceback': traceback.format_exc().split('\n'),
    }
