import logging
from typing import Any

from apps.events.dal.event_dal import EventDAL
from apps.events.exceptions import EventPermissionError
from apps.shared.interfaces.permission_interface import IPermissionValidator

logger = logging.getLogger(__name__)


class EventPermissionService(IPermissionValidator):
    """Service for event permission checking and validation"""

    def __init__(self, dal: EventDAL | None = None) -> None:
        self.dal = dal or EventDAL()

    # =============================================================================
    # PERMISSION VALIDATION (main methods)
    # =============================================================================

    def validate_organizer_access(self, event: Any, user: Any, action: str = 'manage') -> bool:
        """Validate that user organizes the event or is an administrator"""
        if not user or not getattr(user, 'is_authenticated', False):
            logger.warning(f'Anonymous {action} attempt on event {getattr(event, "pk", None)}')
            raise EventPermissionError(action=action)

        if not self.can_administer_event(event, user):
            logger.warning(f'Permission denied for user {user.pk}, event {event.pk}, action {action}')
            raise EventPermissionError(action=action, event_id=str(event.pk))

        return True

    def validate_scan_access(self, event: Any, user: Any) -> bool:
        if not self.can_scan_event(event, user):
            logger.warning(f'Scan denied for user {getattr(user, "pk", None)} on event {event.pk}')
            raise EventPermissionError(action='scan', event_id=str(event.pk))
        return True

    # =============================================================================
    # PERMISSION CHECKING (boolean returns)
    # =============================================================================

    def is_admin(self, user: Any) -> bool:
        return bool(user and (getattr(user, 'is_staff', False) or getattr(user, 'is_superuser', False)))

    def is_event_organizer(self, event: Any, user: Any) -> bool:
        if not event or not user or not getattr(user, 'pk', None):
            return False
        return event.organizer_id == user.pk

    def can_administer_event(self, event: Any, user: Any) -> bool:
        return self.is_admin(user) or self.is_event_organizer(event, user)

    def can_scan_event(self, event: Any, user: Any) -> bool:
        """
        Organizer or administrator.

        Dedicated scanner roles plug in here.
        """
        return self.can_administer_event(event, user)

    def can_view_generation_job(self, job: Any, user: Any) -> bool:
        """Creator for read access, organizer and admins for administration"""
        if not job or not user:
            return False
        if self.is_admin(user):
            return True
        if job.created_by_id and job.created_by_id == user.pk:
            return True
        return self.is_event_organizer(job.event, user)

    def get_user_event_permissions(self, event: Any, user: Any) -> dict[str, bool]:
        """Permission matrix for user and event"""
        is_organizer = self.is_event_organizer(event, user)
        is_admin = self.is_admin(user)
        return {
            'is_organizer': is_organizer,
            'is_admin': is_admin,
            'can_generate_tickets': is_organizer or is_admin,
            'can_scan': self.can_scan_event(event, user),
            'can_view_scans': is_organizer or is_admin,
        }
