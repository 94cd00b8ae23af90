"""
Guest and EventGuest Data Access Layer

Handles database operations for guests and their attachment to events.
"""

import logging
from typing import Any

from django.db.models import QuerySet
from django.utils import timezone

from apps.events.exceptions import EventGuestNotFoundError
from apps.events.exceptions import InvalidGuestStatusTransitionError
from apps.events.models.event_guest import EventGuest
from apps.events.models.guest import Guest
from apps.shared.decorators.database import handle_db_errors
from apps.shared.utils.paginator import ServicePaginator

logger = logging.getLogger(__name__)


class GuestDAL:
    """Data Access Layer for Guest model operations only"""

    @handle_db_errors(operation_type="create", model_name="Guest")
    def create_guest(self, guest_data: dict[str, Any], user=None) -> Guest:
        return Guest.objects.create(created_by=user, updated_by=user, **guest_data)

    @handle_db_errors(operation_type="read", model_name="Guest")
    def get_guest_by_id(self, guest_id: int) -> Guest:
        return Guest.objects.get(pk=guest_id)

    def find_by_email(self, email: str) -> Guest | None:
        """Case-insensitive lookup among live guests"""
        if not email:
            return None
        return Guest.objects.filter(email__iexact=email.strip()).first()

    @handle_db_errors(operation_type="update", model_name="Guest")
    def update_guest(self, guest: Guest, validated_data: dict[str, Any], user=None) -> Guest:
        for field, value in validated_data.items():
            setattr(guest, field, value)
        guest.updated_by = user
        guest.save()
        return guest

    @handle_db_errors(operation_type="delete", model_name="Guest")
    def delete_guest(self, guest: Guest, user=None) -> bool:
        guest.soft_delete(user)
        return True


class EventGuestDAL:
    """Data Access Layer for EventGuest model operations only"""

    def __init__(self, paginator: ServicePaginator | None = None):
        self.paginator = paginator or ServicePaginator()

    @handle_db_errors(operation_type="create", model_name="EventGuest")
    def add_guest_to_event(self, event, guest, user=None, **extra) -> EventGuest:
        return EventGuest.objects.create(event=event, guest=guest, created_by=user, updated_by=user, **extra)

    def get_event_guest_by_id(self, event_guest_id: int) -> EventGuest:
        try:
            return EventGuest.objects.select_related('event', 'guest').get(pk=event_guest_id)
        except EventGuest.DoesNotExist:
            raise EventGuestNotFoundError(identifier=str(event_guest_id))

    def get_by_invitation_code(self, invitation_code: str) -> EventGuest:
        try:
            return EventGuest.objects.select_related('event', 'guest').get(invitation_code=invitation_code)
        except EventGuest.DoesNotExist:
            raise EventGuestNotFoundError(identifier=invitation_code)

    def list_for_event(self, event_id: int, page: int = 1, page_size: int = 20) -> dict[str, Any]:
        queryset: QuerySet[EventGuest] = (
            EventGuest.objects.for_event(event_id).select_related('guest').order_by('created_at')
        )
        return self.paginator.paginate(queryset, page, page_size)

    @handle_db_errors(operation_type="update", model_name="EventGuest")
    def update_status(self, event_guest: EventGuest, new_status: str, user=None) -> EventGuest:
        """Change invitation status; cancelled is terminal"""
        if event_guest.status == new_status:
            return event_guest

        if not event_guest.can_transition_to(new_status):
            logger.warning(
                f'Rejected event guest {event_guest.pk} transition {event_guest.status} -> {new_status}'
            )
            raise InvalidGuestStatusTransitionError(event_guest.status, new_status)

        event_guest.status = new_status
        event_guest.updated_by = user
        event_guest.save(update_fields=['status', 'updated_by', 'updated_at'])
        return event_guest

    def mark_present(self, event_guest_id: int, check_in_time=None) -> bool:
        """Record check-in; the first check-in time wins"""
        updated = EventGuest.objects.filter(pk=event_guest_id, is_present=False).update(
            is_present=True,
            check_in_time=check_in_time or timezone.now(),
            updated_at=timezone.now(),
        )
        return bool(updated)

    @handle_db_errors(operation_type="delete", model_name="EventGuest")
    def remove_guest_from_event(self, event_guest: EventGuest, user=None) -> bool:
        event_guest.soft_delete(user)
        return True
