from typing import Any

from django.db.models import QuerySet

from apps.events.models.event import Event
from apps.shared.decorators.database import handle_db_errors
from apps.shared.decorators.database import retry_on_transient_db_errors


class EventDAL:
    """Data Access Layer for Event model operations only"""

    @handle_db_errors(operation_type="create", model_name="Event")
    def create_event(self, event_data: dict[str, Any]) -> Event:
        """Create new event"""
        return Event.objects.create(**event_data)

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="Event")
    def get_event_by_id(self, event_id: int) -> Event:
        """Get event by id (soft-deleted events are invisible)"""
        return Event.objects.get(pk=event_id)

    @handle_db_errors(operation_type="read", model_name="Event")
    def get_event_for_update(self, event_id: int) -> Event:
        """Lock the event row until the surrounding transaction ends"""
        return Event.objects.select_for_update().get(pk=event_id)

    def find_event_by_id(self, event_id: int) -> Event | None:
        return Event.objects.filter(pk=event_id).first()

    def get_organizer_events_queryset(self, user_id: int) -> QuerySet[Event]:
        """Get queryset of events organized by the user"""
        return Event.objects.for_organizer(user_id)

    @handle_db_errors(operation_type="update", model_name="Event")
    def update_event(self, event: Event, validated_data: dict[str, Any], user=None) -> Event:
        """Update event fields"""
        for field, value in validated_data.items():
            setattr(event, field, value)
        event.updated_by = user
        event.save()
        return event

    @handle_db_errors(operation_type="delete", model_name="Event")
    def delete_event(self, event: Event, user=None) -> bool:
        """Soft-delete event"""
        event.soft_delete(user)
        return True
