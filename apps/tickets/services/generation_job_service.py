import logging
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.db import transaction

from apps.events.dal.event_dal import EventDAL
from apps.events.services.permission_service import EventPermissionService
from apps.shared.exceptions import ValidationError
from apps.tickets.dal.generation_job_dal import GenerationJobDAL
from apps.tickets.dal.ticket_dal import TicketDAL
from apps.tickets.exceptions import GenerationPermissionError
from apps.tickets.exceptions import GenerationQueueError
from apps.tickets.exceptions import NoEnrichableTicketsError
from apps.tickets.exceptions import TicketsSpanMultipleEventsError
from apps.tickets.models import TicketGenerationJob
from apps.tickets.queue.producer import GenerationQueueProducer
from apps.tickets.services.enrichment_service import TicketEnrichmentService

logger = logging.getLogger(__name__)

QR_FORMATS = ('base64', 'png', 'svg')
QR_SIZES = ('small', 'medium', 'large')
CANCELLED_MESSAGE = 'Job cancelled by user'


@dataclass(frozen=True)
class JobStatusView:
    job: TicketGenerationJob
    queue_status: str | None


def normalize_options(options: dict[str, Any] | None) -> dict[str, Any]:
    """Fill renderer option defaults and reject unknown values"""
    options = options or {}
    normalized = {
        'qr_format': options.get('qr_format') or 'base64',
        'qr_size': options.get('qr_size') or 'medium',
        'pdf_format': bool(options.get('pdf_format', True)),
        'include_logo': bool(options.get('include_logo', False)),
        'priority': options.get('priority') or settings.GENERATION_PRIORITY,
    }

    errors = {}
    if normalized['qr_format'] not in QR_FORMATS:
        errors['qr_format'] = [f'Must be one of {", ".join(QR_FORMATS)}']
    if normalized['qr_size'] not in QR_SIZES:
        errors['qr_size'] = [f'Must be one of {", ".join(QR_SIZES)}']
    if not isinstance(normalized['priority'], int) or not 1 <= normalized['priority'] <= 10:
        errors['priority'] = ['Must be an integer between 1 and 10']
    if errors:
        raise ValidationError('Invalid generation options', error_code='INVALID_OPTIONS', field_errors=errors)
    return normalized


class GenerationJobService:
    """Coordinates ticket generation jobs: enrichment, persistence and enqueue"""

    def __init__(
        self,
        job_dal: GenerationJobDAL | None = None,
        ticket_dal: TicketDAL | None = None,
        event_dal: EventDAL | None = None,
        enrichment_service: TicketEnrichmentService | None = None,
        producer: GenerationQueueProducer | None = None,
        permission_service: EventPermissionService | None = None,
    ):
        self.job_dal = job_dal or GenerationJobDAL()
        self.ticket_dal = ticket_dal or TicketDAL()
        self.event_dal = event_dal or EventDAL()
        self.enrichment_service = enrichment_service or TicketEnrichmentService(ticket_dal=self.ticket_dal)
        self.producer = producer or GenerationQueueProducer()
        self.permission_service = permission_service or EventPermissionService(dal=self.event_dal)

    def create_job(
        self,
        ticket_ids: list[int],
        user,
        options: dict[str, Any] | None = None,
        event_id: int | None = None,
    ) -> TicketGenerationJob:
        """
        Enrich the tickets, persist a pending job and enqueue the render request.

        Nothing is written when enrichment fails. When the queue refuses the
        request the job is kept as failed and GenerationQueueError is raised.
        """
        options = normalize_options(options)
        ticket_ids = list(dict.fromkeys(ticket_ids or []))

        event = self._resolve_event(ticket_ids, event_id)
        if not self.permission_service.can_administer_event(event, user):
            logger.warning(f'User {getattr(user, "pk", None)} denied ticket generation for event {event.pk}')
            raise GenerationPermissionError(action='generate')

        enrichment = self.enrichment_service.enrich(ticket_ids, expected_event_id=event.pk)

        with transaction.atomic():
            job = self.job_dal.create_job(
                event_id=event.pk,
                tickets_count=len(enrichment.tickets),
                details={
                    'ticket_ids': enrichment.ticket_ids,
                    'requested_ticket_ids': ticket_ids,
                    'options': options,
                    'enriched': [ticket.to_payload() for ticket in enrichment.tickets],
                    'diagnostics': [diagnostic.to_dict() for diagnostic in enrichment.diagnostics],
                },
                user=user,
            )
        logger.info(f'Created generation job {job.uid} for event {event.pk} ({job.tickets_count} tickets)')

        payload = {
            'job_uid': str(job.uid),
            'event_id': event.pk,
            'tickets': job.details['enriched'],
            'options': options,
        }
        try:
            self.producer.enqueue(payload, idempotency_key=str(job.uid), priority=options['priority'])
        except GenerationQueueError as e:
            self.job_dal.fail_job(job.uid, f'queue_error: {e.message}', user=user)
            raise

        return job

    def get_job_status(self, job_uid, user) -> JobStatusView:
        job = self.job_dal.get_job_by_uid(job_uid)
        if not self.permission_service.can_view_generation_job(job, user):
            raise GenerationPermissionError(action='view')

        queue_status = self.producer.get_job_queue_status(str(job.uid))
        if queue_status is None and not job.is_terminal:
            logger.warning(f'No queue view for active generation job {job.uid}')
        return JobStatusView(job=job, queue_status=queue_status)

    def list_event_jobs(
        self, event_id: int, user, status: str | None = None, page: int = 1, limit: int = 20
    ) -> dict[str, Any]:
        event = self.event_dal.get_event_by_id(event_id)
        self.permission_service.validate_organizer_access(event, user, action='view_generation_jobs')

        result = self.job_dal.list_for_event(event.pk, status=status, page=page, page_size=limit)
        return {'jobs': result['items'], 'pagination': result['meta']}

    def get_job_stats(self, event_id: int, user) -> dict[str, Any]:
        event = self.event_dal.get_event_by_id(event_id)
        self.permission_service.validate_organizer_access(event, user, action='view_generation_stats')
        return {'event_id': event.pk, **self.job_dal.get_job_stats(event.pk)}

    def list_failed_jobs(self, user, limit: int = 50) -> list[TicketGenerationJob]:
        organizer_id = None if self.permission_service.is_admin(user) else user.pk
        return self.job_dal.list_failed_jobs(organizer_id=organizer_id, limit=limit)

    def cancel_job(self, job_uid, user) -> TicketGenerationJob:
        job = self.job_dal.get_job_by_uid(job_uid)
        if not self.permission_service.can_administer_event(job.event, user):
            raise GenerationPermissionError(action='cancel')

        job = self.job_dal.fail_job(job.uid, CANCELLED_MESSAGE, user=user)
        self.producer.release(str(job.uid))
        logger.info(f'Generation job {job.uid} cancelled by user {user.pk}')
        return job

    def _resolve_event(self, ticket_ids: list[int], event_id: int | None):
        if event_id is not None:
            return self.event_dal.get_event_by_id(event_id)

        event_ids = self.ticket_dal.get_event_ids_for_tickets(ticket_ids)
        if len(event_ids) > 1:
            raise TicketsSpanMultipleEventsError(event_ids=list(event_ids))
        if not event_ids:
            # surfaces the per-ticket diagnostics
            self.enrichment_service.enrich(ticket_ids)
            raise NoEnrichableTicketsError()
        return self.event_dal.get_event_by_id(event_ids.pop())
