"""
Ticket enrichment

Assembles the self-contained payload the external renderer needs for every
ticket of a generation request. Tickets whose joins are broken are skipped
with a diagnostic instead of failing the whole batch.
"""

import datetime as dt
import logging
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from django.conf import settings

from apps.shared.exceptions import ValidationError
from apps.tickets.dal.ticket_dal import TicketDAL
from apps.tickets.exceptions import InvalidEnrichedDataError
from apps.tickets.exceptions import NoEnrichableTicketsError
from apps.tickets.models import Ticket

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = 'Not specified'


@dataclass(frozen=True)
class EnrichedGuest:
    name: str
    email: str
    phone: str | None = None


@dataclass(frozen=True)
class EnrichedTicketType:
    id: int
    name: str


@dataclass(frozen=True)
class EnrichedTemplate:
    source_files_path: str
    id: int | None = None
    preview_url: str | None = None


@dataclass(frozen=True)
class EnrichedEvent:
    id: int
    title: str
    location: str
    date: str


@dataclass(frozen=True)
class EnrichedTicket:
    ticket_id: int
    ticket_code: str
    guest: EnrichedGuest
    ticket_type: EnrichedTicketType
    template: EnrichedTemplate
    event: EnrichedEvent

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TicketDiagnostic:
    ticket_id: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {'ticket_id': self.ticket_id, 'reason': self.reason}


@dataclass
class EnrichmentResult:
    tickets: list[EnrichedTicket] = field(default_factory=list)
    diagnostics: list[TicketDiagnostic] = field(default_factory=list)

    @property
    def ticket_ids(self) -> list[int]:
        return [ticket.ticket_id for ticket in self.tickets]

    @property
    def event_ids(self) -> set[int]:
        return {ticket.event.id for ticket in self.tickets}


class TicketEnrichmentService:
    """Builds renderer payloads for a batch of tickets"""

    REQUIRED_FIELDS = {
        'guest.email': lambda t: t.guest.email,
        'template.source_files_path': lambda t: t.template.source_files_path,
        'event.title': lambda t: t.event.title,
    }

    def __init__(self, ticket_dal: TicketDAL | None = None, max_tickets: int | None = None):
        self.ticket_dal = ticket_dal or TicketDAL()
        self.max_tickets = max_tickets or settings.GENERATION_MAX_TICKETS

    def enrich(self, ticket_ids: list[int], expected_event_id: int | None = None) -> EnrichmentResult:
        """
        Enrich tickets in input order, duplicates collapsed.

        Raises:
            ValidationError: empty or oversized batch
            NoEnrichableTicketsError: nothing could be enriched
            InvalidEnrichedDataError: enriched payloads miss required fields
        """
        ids = self._normalize_ids(ticket_ids)
        tickets = self.ticket_dal.get_tickets_for_render(ids)

        result = EnrichmentResult()
        for ticket_id in ids:
            ticket = tickets.get(ticket_id)
            reason = self._missing_join(ticket, expected_event_id)
            if reason:
                result.diagnostics.append(TicketDiagnostic(ticket_id, reason))
                continue
            result.tickets.append(self._build(ticket))

        if result.diagnostics:
            logger.warning(
                f'Skipped {len(result.diagnostics)} of {len(ids)} tickets: '
                f'{[d.to_dict() for d in result.diagnostics]}'
            )

        if not result.tickets:
            raise NoEnrichableTicketsError(diagnostics=[d.to_dict() for d in result.diagnostics])

        self.validate(result.tickets)
        return result

    def validate(self, tickets: list[EnrichedTicket]) -> None:
        missing: dict[int, list[str]] = {}
        for ticket in tickets:
            absent = [name for name, getter in self.REQUIRED_FIELDS.items() if not getter(ticket)]
            if absent:
                missing[ticket.ticket_id] = absent
        if missing:
            raise InvalidEnrichedDataError(missing_fields=missing)

    def _normalize_ids(self, ticket_ids: list[int]) -> list[int]:
        ids = list(dict.fromkeys(ticket_ids or []))
        if not ids:
            raise ValidationError('At least one ticket id is required', error_code='EMPTY_TICKET_LIST')
        if len(ids) > self.max_tickets:
            raise ValidationError(
                f'A generation job accepts at most {self.max_tickets} tickets',
                error_code='TOO_MANY_TICKETS',
                context={'max_tickets': self.max_tickets, 'received': len(ids)},
            )
        return ids

    @staticmethod
    def _missing_join(ticket: Ticket | None, expected_event_id: int | None) -> str | None:
        if ticket is None:
            return 'ticket_not_found'
        event_guest = ticket.event_guest
        if event_guest is None or event_guest.is_deleted:
            return 'event_guest_missing'
        if event_guest.guest is None or event_guest.guest.is_deleted:
            return 'guest_missing'
        if ticket.ticket_type is None or ticket.ticket_type.is_deleted:
            return 'ticket_type_missing'
        if event_guest.event is None or event_guest.event.is_deleted:
            return 'event_missing'
        if expected_event_id is not None and event_guest.event_id != expected_event_id:
            return 'event_mismatch'
        return None

    def _build(self, ticket: Ticket) -> EnrichedTicket:
        guest = ticket.event_guest.guest
        event = ticket.event_guest.event
        template = ticket.ticket_template
        if template is not None and template.is_deleted:
            template = None

        if template is None:
            enriched_template = EnrichedTemplate(source_files_path=settings.DEFAULT_TICKET_TEMPLATE_PATH)
        else:
            enriched_template = EnrichedTemplate(
                id=template.pk,
                source_files_path=template.source_files_path,
                preview_url=template.preview_url or None,
            )

        return EnrichedTicket(
            ticket_id=ticket.pk,
            ticket_code=ticket.ticket_code,
            guest=EnrichedGuest(
                name=f'{guest.first_name or ""} {guest.last_name or ""}'.strip(),
                email=guest.email or '',
                phone=guest.phone or None,
            ),
            ticket_type=EnrichedTicketType(id=ticket.ticket_type.pk, name=ticket.ticket_type.name),
            template=enriched_template,
            event=EnrichedEvent(
                id=event.pk,
                title=event.title,
                location=event.location or DEFAULT_LOCATION,
                date=self._to_utc_iso(event.event_date or event.created_at),
            ),
        )

    @staticmethod
    def _to_utc_iso(value: dt.datetime) -> str:
        return value.astimezone(dt.timezone.utc).isoformat().replace('+00:00', 'Z')
