"""Events services package."""

from apps.events.services.permission_service import EventPermissionService

__all__ = [
    'EventPermissionService',
]
