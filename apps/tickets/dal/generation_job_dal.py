"""
Generation Job Data Access Layer

Lifecycle persistence of ticket generation jobs. apply_job_result is the only
place a renderer result touches the database: it locks the job row, moves it
forward along the state machine and writes the rendered artifacts onto the
tickets of the job, all in one transaction.
"""

import enum
import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from typing import Any

from django.db import transaction
from django.db.models import Avg
from django.db.models import Count
from django.db.models import DurationField
from django.db.models import ExpressionWrapper
from django.db.models import F
from django.utils import timezone

from apps.shared.decorators.database import handle_db_errors
from apps.shared.decorators.database import retry_on_transient_db_errors
from apps.shared.utils.paginator import ServicePaginator
from apps.tickets.dal.ticket_dal import TicketDAL
from apps.tickets.exceptions import GenerationJobNotFoundError
from apps.tickets.exceptions import JobAlreadyTerminalError
from apps.tickets.models import Ticket
from apps.tickets.models import TicketGenerationJob

logger = logging.getLogger(__name__)


class ApplyOutcome(str, enum.Enum):
    APPLIED = 'applied'
    REPLAYED = 'replayed'
    IGNORED = 'ignored'
    ORPHAN = 'orphan'


@dataclass(frozen=True)
class TicketResult:
    """One renderer entry, already parsed"""

    ticket_id: int
    success: bool
    qr_code_data: str | None = None
    ticket_file_url: str | None = None
    generated_at: datetime | None = None
    error_message: str | None = None

    def as_details(self) -> dict[str, Any]:
        return {
            'ticket_id': self.ticket_id,
            'success': self.success,
            'ticket_file_url': self.ticket_file_url,
            'generated_at': self.generated_at.isoformat() if self.generated_at else None,
            'error_message': self.error_message,
        }


@dataclass
class ApplyResult:
    outcome: ApplyOutcome
    job: TicketGenerationJob | None = None
    previous_status: str | None = None
    updated_ticket_ids: list[int] = field(default_factory=list)
    skipped_ticket_ids: list[int] = field(default_factory=list)


def _history_entry(status: str, at: datetime) -> dict[str, str]:
    return {'status': status, 'at': at.isoformat()}


class GenerationJobDAL:
    """Data Access Layer for TicketGenerationJob model operations only"""

    def __init__(self, ticket_dal: TicketDAL | None = None, paginator: ServicePaginator | None = None):
        self.ticket_dal = ticket_dal or TicketDAL()
        self.paginator = paginator or ServicePaginator()

    @handle_db_errors(operation_type="create", model_name="TicketGenerationJob")
    def create_job(self, event_id: int, tickets_count: int, details: dict[str, Any], user=None) -> TicketGenerationJob:
        now = timezone.now()
        details = dict(details)
        details['status_history'] = [_history_entry(TicketGenerationJob.Status.PENDING, now)]
        return TicketGenerationJob.objects.create(
            event_id=event_id,
            status=TicketGenerationJob.Status.PENDING,
            tickets_count=tickets_count,
            details=details,
            created_by=user,
            updated_by=user,
        )

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="TicketGenerationJob")
    def get_job_by_uid(self, job_uid) -> TicketGenerationJob:
        job = TicketGenerationJob.objects.select_related('event').filter(uid=job_uid).first()
        if job is None:
            raise GenerationJobNotFoundError(job_uid=str(job_uid))
        return job

    def list_for_event(self, event_id: int, status: str | None = None, page: int = 1, page_size: int = 20) -> dict:
        queryset = TicketGenerationJob.objects.for_event(event_id)
        if status:
            queryset = queryset.filter(status=status)
        return self.paginator.paginate(queryset.order_by('-created_at'), page, page_size)

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="TicketGenerationJob")
    def list_failed_jobs(self, organizer_id: int | None = None, limit: int = 50) -> list[TicketGenerationJob]:
        """Most recent failed jobs; organizer_id None means every event"""
        queryset = TicketGenerationJob.objects.failed().select_related('event')
        if organizer_id is not None:
            queryset = queryset.filter(event__organizer_id=organizer_id)
        return list(queryset.order_by('-completed_at', '-created_at')[:limit])

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="TicketGenerationJob")
    def get_job_stats(self, event_id: int) -> dict[str, Any]:
        queryset = TicketGenerationJob.objects.for_event(event_id)
        counts = {status: 0 for status in TicketGenerationJob.Status.values}
        for row in queryset.values('status').annotate(count=Count('id')):
            counts[row['status']] = row['count']

        average = (
            queryset.filter(
                status=TicketGenerationJob.Status.COMPLETED,
                started_at__isnull=False,
                completed_at__isnull=False,
            )
            .annotate(duration=ExpressionWrapper(F('completed_at') - F('started_at'), output_field=DurationField()))
            .aggregate(avg_duration=Avg('duration'))['avg_duration']
        )

        return {
            'by_status': counts,
            'total': sum(counts.values()),
            'avg_processing_seconds': round(average.total_seconds(), 3) if average is not None else None,
        }

    @handle_db_errors(operation_type="update", model_name="TicketGenerationJob")
    def fail_job(self, job_uid, error_message: str, user=None) -> TicketGenerationJob:
        """
        Move a non-terminal job to failed.

        Raises JobAlreadyTerminalError when the job already finished.
        """
        with transaction.atomic():
            job = TicketGenerationJob.objects.select_for_update().filter(uid=job_uid).first()
            if job is None:
                raise GenerationJobNotFoundError(job_uid=str(job_uid))
            if not job.can_transition_to(TicketGenerationJob.Status.FAILED):
                raise JobAlreadyTerminalError(job_uid=str(job_uid), status=job.status)

            now = timezone.now()
            history = list(job.details.get('status_history', []))
            history.append(_history_entry(TicketGenerationJob.Status.FAILED, now))
            job.details = {**job.details, 'status_history': history}
            job.status = TicketGenerationJob.Status.FAILED
            job.error_message = error_message
            job.completed_at = now
            job.updated_by = user or job.updated_by
            job.save(update_fields=['status', 'error_message', 'completed_at', 'details', 'updated_by', 'updated_at'])

        logger.info(f'Generation job {job_uid} failed: {error_message}')
        return job

    @handle_db_errors(operation_type="update", model_name="TicketGenerationJob")
    def apply_job_result(
        self,
        job_uid,
        status: str,
        occurred_at: datetime,
        ticket_results: list[TicketResult] | None = None,
        summary: dict[str, Any] | None = None,
        processing_time_ms: int | None = None,
        error_message: str | None = None,
    ) -> ApplyResult:
        """
        Apply one renderer result to the job and its tickets.

        Replays of the status a terminal job already has are no-ops, other
        messages for terminal jobs are ignored. A terminal result for a
        pending job records the implicit passage through processing.
        """
        ticket_results = ticket_results or []

        with transaction.atomic():
            job = TicketGenerationJob.objects.select_for_update().filter(uid=job_uid).first()
            if job is None:
                return ApplyResult(ApplyOutcome.ORPHAN)

            previous = job.status
            if previous == status:
                return ApplyResult(ApplyOutcome.REPLAYED, job=job, previous_status=previous)

            path = self._result_path(job, status)
            if path is None:
                return ApplyResult(ApplyOutcome.IGNORED, job=job, previous_status=previous)

            history = list(job.details.get('status_history', []))
            history.extend(_history_entry(step, occurred_at) for step in path)

            details = {**job.details, 'status_history': history}
            if summary is not None:
                details['summary'] = summary
            if processing_time_ms is not None:
                details['processing_time_ms'] = processing_time_ms
            if ticket_results:
                details['ticket_results'] = [entry.as_details() for entry in ticket_results]

            job.status = status
            job.started_at = job.started_at or occurred_at
            if status in TicketGenerationJob.TERMINAL_STATUSES:
                job.completed_at = occurred_at
            if status == TicketGenerationJob.Status.FAILED:
                job.error_message = error_message or 'Generation failed'

            updated, skipped = self._apply_ticket_results(job, ticket_results)
            job.tickets_processed = self._count_processed(summary, ticket_results, job.tickets_processed)
            job.details = details
            job.save()

        if skipped:
            logger.warning(f'Job {job_uid}: skipped results for tickets outside the job {skipped}')
        logger.info(f'Generation job {job_uid}: {previous} -> {status}')
        return ApplyResult(
            ApplyOutcome.APPLIED,
            job=job,
            previous_status=previous,
            updated_ticket_ids=updated,
            skipped_ticket_ids=skipped,
        )

    def _apply_ticket_results(
        self, job: TicketGenerationJob, ticket_results: list[TicketResult]
    ) -> tuple[list[int], list[int]]:
        if not ticket_results:
            return [], []

        job_ticket_ids = set(job.details.get('ticket_ids', []))
        belonging = set(
            Ticket.objects.filter(
                pk__in=[entry.ticket_id for entry in ticket_results if entry.ticket_id in job_ticket_ids],
                event_guest__event_id=job.event_id,
            ).values_list('pk', flat=True)
        )

        updated, skipped = [], []
        for entry in ticket_results:
            if entry.ticket_id not in belonging:
                skipped.append(entry.ticket_id)
                continue
            if not entry.success:
                continue
            self.ticket_dal.update_generated_artifacts(
                entry.ticket_id,
                qr_code_data=entry.qr_code_data,
                ticket_file_url=entry.ticket_file_url,
                generated_at=entry.generated_at,
            )
            updated.append(entry.ticket_id)
        return updated, skipped

    @staticmethod
    def _result_path(job: TicketGenerationJob, status: str) -> list[str] | None:
        """Statuses a result moves the job through, None when it would go backwards"""
        Status = TicketGenerationJob.Status
        if job.status == Status.PENDING and status in TicketGenerationJob.TERMINAL_STATUSES:
            # the renderer reports no separate start for fast jobs
            if status in TicketGenerationJob.ALLOWED_TRANSITIONS[Status.PROCESSING]:
                return [Status.PROCESSING, status]
            return None
        return [status] if job.can_transition_to(status) else None

    @staticmethod
    def _count_processed(summary: dict[str, Any] | None, ticket_results: list[TicketResult], current: int) -> int:
        if summary and isinstance(summary.get('successful'), int):
            return max(summary['successful'], 0)
        if ticket_results:
            return sum(1 for entry in ticket_results if entry.success)
        return current
