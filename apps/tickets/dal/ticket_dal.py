"""
Ticket Data Access Layer

Narrow operations over tickets and ticket types. consume_ticket is the
serialization point of scan validation: a single conditional UPDATE decides
which concurrent scanner wins.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.db.models import QuerySet
from django.utils import timezone

from apps.shared.decorators.database import handle_db_errors
from apps.shared.decorators.database import retry_on_transient_db_errors
from apps.shared.utils.paginator import ServicePaginator
from apps.tickets.exceptions import TicketNotFoundError
from apps.tickets.models import Ticket
from apps.tickets.models import TicketTemplate
from apps.tickets.models import TicketType

logger = logging.getLogger(__name__)


class ConsumeOutcome(str, enum.Enum):
    CONSUMED = 'consumed'
    ALREADY_CONSUMED = 'already_consumed'
    NOT_FOUND = 'not_found'


@dataclass(frozen=True)
class ConsumeResult:
    outcome: ConsumeOutcome
    validated_at: datetime | None = None


class TicketDAL:
    """Data Access Layer for Ticket model operations"""

    def __init__(self, paginator: ServicePaginator | None = None):
        self.paginator = paginator or ServicePaginator()

    @handle_db_errors(operation_type="create", model_name="Ticket")
    def create_ticket(self, ticket_data: dict[str, Any], user=None) -> Ticket:
        return Ticket.objects.create(created_by=user, updated_by=user, **ticket_data)

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="Ticket")
    def get_ticket_by_id(self, ticket_id: int) -> Ticket:
        return Ticket.objects.get(pk=ticket_id)

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="Ticket")
    def get_ticket_for_scan(self, ticket_code: str, event_id: int) -> Ticket:
        """Resolve a scanned code within one event (joined through event_guests)"""
        ticket = (
            Ticket.objects.filter(
                ticket_code=ticket_code,
                event_guest__event_id=event_id,
                event_guest__deleted_at__isnull=True,
                event_guest__event__deleted_at__isnull=True,
            )
            .select_related('event_guest__event', 'event_guest__guest')
            .first()
        )
        if ticket is None:
            raise TicketNotFoundError(identifier=ticket_code)
        return ticket

    def list_for_event(self, event_id: int, page: int = 1, page_size: int = 20) -> dict[str, Any]:
        queryset: QuerySet[Ticket] = (
            Ticket.objects.for_event(event_id).select_related('event_guest__guest', 'ticket_type').order_by('id')
        )
        return self.paginator.paginate(queryset, page, page_size)

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="Ticket")
    def get_tickets_for_render(self, ticket_ids: list[int]) -> dict[int, Ticket]:
        """Tickets with every relation the renderer payload needs, keyed by id"""
        tickets = Ticket.objects.filter(pk__in=ticket_ids).with_render_relations()
        return {ticket.pk: ticket for ticket in tickets}

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="Ticket")
    def get_event_ids_for_tickets(self, ticket_ids: list[int]) -> set[int]:
        return set(
            Ticket.objects.filter(pk__in=ticket_ids, event_guest__deleted_at__isnull=True)
            .values_list('event_guest__event_id', flat=True)
            .distinct()
        )

    @handle_db_errors(operation_type="read", model_name="Ticket")
    def count_validated_for_event(self, event_id: int) -> int:
        return Ticket.objects.for_event(event_id).validated().count()

    @handle_db_errors(operation_type="update", model_name="Ticket")
    def update_ticket(self, ticket: Ticket, validated_data: dict[str, Any], user=None) -> Ticket:
        protected = {'is_validated', 'validated_at'}
        for field, value in validated_data.items():
            if field in protected:
                continue
            setattr(ticket, field, value)
        ticket.updated_by = user
        ticket.save()
        return ticket

    @handle_db_errors(operation_type="update", model_name="Ticket")
    def update_generated_artifacts(
        self,
        ticket_id: int,
        qr_code_data: str | None = None,
        ticket_file_url: str | None = None,
        generated_at: datetime | None = None,
    ) -> bool:
        """Store renderer output on a ticket; absent values keep the stored ones"""
        changes = {'generated_at': generated_at or timezone.now(), 'updated_at': timezone.now()}
        if qr_code_data is not None:
            changes['qr_code_data'] = qr_code_data
        if ticket_file_url is not None:
            changes['ticket_file_url'] = ticket_file_url
        return bool(Ticket.objects.filter(pk=ticket_id).update(**changes))

    @handle_db_errors(operation_type="consume", model_name="Ticket")
    def consume_ticket(self, ticket_id: int, validated_at: datetime | None = None) -> ConsumeResult:
        """
        Flip is_validated false → true at most once.

        The UPDATE only matches an unvalidated live row, so of any number of
        concurrent callers exactly one sees an affected row.
        """
        now = validated_at or timezone.now()
        updated = Ticket.objects.filter(pk=ticket_id, is_validated=False).update(
            is_validated=True,
            validated_at=now,
            updated_at=now,
        )
        if updated:
            logger.info(f'Ticket {ticket_id} consumed at {now.isoformat()}')
            return ConsumeResult(ConsumeOutcome.CONSUMED, now)

        existing = Ticket.objects.filter(pk=ticket_id).values('is_validated', 'validated_at').first()
        if existing is None:
            return ConsumeResult(ConsumeOutcome.NOT_FOUND)
        return ConsumeResult(ConsumeOutcome.ALREADY_CONSUMED, existing['validated_at'])

    @handle_db_errors(operation_type="delete", model_name="Ticket")
    def delete_ticket(self, ticket: Ticket, user=None) -> bool:
        ticket.soft_delete(user)
        return True


class TicketTypeDAL:
    """Data Access Layer for TicketType model operations only"""

    def __init__(self, paginator: ServicePaginator | None = None):
        self.paginator = paginator or ServicePaginator()

    @handle_db_errors(operation_type="create", model_name="TicketType")
    def create_ticket_type(self, data: dict[str, Any], user=None) -> TicketType:
        return TicketType.objects.create(created_by=user, updated_by=user, **data)

    @handle_db_errors(operation_type="read", model_name="TicketType")
    def get_ticket_type_by_id(self, ticket_type_id: int) -> TicketType:
        return TicketType.objects.get(pk=ticket_type_id)

    def list_for_event(self, event_id: int, page: int = 1, page_size: int = 20) -> dict[str, Any]:
        queryset = TicketType.objects.filter(event_id=event_id).order_by('id')
        return self.paginator.paginate(queryset, page, page_size)

    @handle_db_errors(operation_type="update", model_name="TicketType")
    def update_ticket_type(self, ticket_type: TicketType, data: dict[str, Any], user=None) -> TicketType:
        for field, value in data.items():
            setattr(ticket_type, field, value)
        ticket_type.updated_by = user
        ticket_type.save()
        return ticket_type

    @handle_db_errors(operation_type="delete", model_name="TicketType")
    def delete_ticket_type(self, ticket_type: TicketType, user=None) -> bool:
        ticket_type.soft_delete(user)
        return True


class TicketTemplateDAL:
    """Data Access Layer for TicketTemplate model operations only"""

    @handle_db_errors(operation_type="create", model_name="TicketTemplate")
    def create_template(self, data: dict[str, Any], user=None) -> TicketTemplate:
        return TicketTemplate.objects.create(created_by=user, updated_by=user, **data)

    @handle_db_errors(operation_type="read", model_name="TicketTemplate")
    def get_template_by_id(self, template_id: int) -> TicketTemplate:
        return TicketTemplate.objects.get(pk=template_id)

    @handle_db_errors(operation_type="delete", model_name="TicketTemplate")
    def delete_template(self, template: TicketTemplate, user=None) -> bool:
        template.soft_delete(user)
        return True
