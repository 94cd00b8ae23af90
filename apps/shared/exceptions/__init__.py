"""
Shared exceptions for EventFlow application.

Import business exceptions from here for clean architecture; the HTTP mapping
lives in api_handler.py.
"""

from apps.shared.exceptions.core_exceptions import AppError
from apps.shared.exceptions.core_exceptions import AuthenticationError
from apps.shared.exceptions.core_exceptions import BusinessRuleViolation
from apps.shared.exceptions.core_exceptions import ConflictError
from apps.shared.exceptions.core_exceptions import InvalidReferenceError
from apps.shared.exceptions.core_exceptions import PermissionError
from apps.shared.exceptions.core_exceptions import ResourceNotFoundError
from apps.shared.exceptions.core_exceptions import ServiceTimeoutError
from apps.shared.exceptions.core_exceptions import ServiceUnavailableError
from apps.shared.exceptions.core_exceptions import ValidationError

__all__ = [
    'AppError',
    'AuthenticationError',
    'BusinessRuleViolation',
    'ConflictError',
    'InvalidReferenceError',
    'PermissionError',
    'ResourceNotFoundError',
    'ServiceTimeoutError',
    'ServiceUnavailableError',
    'ValidationError',
]
