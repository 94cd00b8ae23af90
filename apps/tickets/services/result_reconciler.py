"""
Result reconciler

Folds renderer results (delivered by the `generation_results` Celery task or
the HTTP webhook) into the job and ticket rows. Delivery is at-least-once, so
every message may arrive more than once and in any order; the database row is
authoritative and only ever moves forward.
"""

import logging
import uuid
from datetime import datetime
from datetime import timezone as dt_timezone
from typing import Any

from django.utils.dateparse import parse_datetime

from apps.tickets.dal.generation_job_dal import ApplyOutcome
from apps.tickets.dal.generation_job_dal import ApplyResult
from apps.tickets.dal.generation_job_dal import GenerationJobDAL
from apps.tickets.dal.generation_job_dal import TicketResult
from apps.tickets.exceptions import InvalidResultMessageError
from apps.tickets.models import TicketGenerationJob
from apps.tickets.queue.constants import JobState
from apps.tickets.queue.registry import JobRegistry

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('job_uid', 'status', 'timestamp')
RESULT_STATUSES = (
    TicketGenerationJob.Status.PROCESSING,
    TicketGenerationJob.Status.COMPLETED,
    TicketGenerationJob.Status.FAILED,
)
REGISTRY_STATES = {
    TicketGenerationJob.Status.PROCESSING: JobState.ACTIVE,
    TicketGenerationJob.Status.COMPLETED: JobState.COMPLETED,
    TicketGenerationJob.Status.FAILED: JobState.FAILED,
}


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string or epoch milliseconds to an aware datetime"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            parsed = parse_datetime(value.strip())
        except ValueError:
            return None
    else:
        return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


class ResultReconciler:
    def __init__(self, job_dal: GenerationJobDAL | None = None, registry: JobRegistry | None = None):
        self.job_dal = job_dal or GenerationJobDAL()
        self.registry = registry or JobRegistry()

    def reconcile(self, message: dict[str, Any]) -> ApplyResult:
        """
        Apply one result message.

        Raises:
            InvalidResultMessageError: the message is malformed (not retryable)
            ServiceUnavailableError: transient database failure (retryable)
        """
        if not isinstance(message, dict):
            raise InvalidResultMessageError('Result message must be an object', error_code='INVALID_MESSAGE')

        if not message.get('job_uid') and message.get('job_id'):
            message = {**message, 'job_uid': message['job_id']}

        missing = [name for name in REQUIRED_FIELDS if message.get(name) in (None, '')]
        if missing:
            raise InvalidResultMessageError(
                f'Missing required fields: {", ".join(missing)}',
                error_code='MISSING_REQUIRED_FIELDS',
                context={'missing': missing},
            )

        status = message['status']
        if status not in RESULT_STATUSES:
            raise InvalidResultMessageError(f'Invalid status: {status}', error_code='INVALID_STATUS')

        occurred_at = parse_timestamp(message['timestamp'])
        if occurred_at is None:
            raise InvalidResultMessageError('Invalid timestamp', error_code='INVALID_TIMESTAMP')

        try:
            job_uid = uuid.UUID(str(message['job_uid']))
        except ValueError:
            logger.warning(f'Result for malformed job uid {message["job_uid"]!r} dropped')
            return ApplyResult(ApplyOutcome.ORPHAN)

        result = self.job_dal.apply_job_result(
            job_uid,
            status=status,
            occurred_at=occurred_at,
            ticket_results=self._parse_ticket_results(message.get('tickets'), occurred_at),
            summary=message.get('summary') if isinstance(message.get('summary'), dict) else None,
            processing_time_ms=self._parse_int(message.get('processing_time_ms')),
            error_message=message.get('error_message'),
        )

        if result.outcome == ApplyOutcome.ORPHAN:
            logger.warning(f'Result for unknown generation job {job_uid} ignored')
        elif result.outcome == ApplyOutcome.IGNORED:
            logger.warning(f'Result {status} for job {job_uid} ignored, job is already {result.previous_status}')
        elif result.outcome == ApplyOutcome.REPLAYED:
            logger.info(f'Duplicate result {status} for job {job_uid}')
        else:
            self._update_registry(str(job_uid), status)
        return result

    def _update_registry(self, job_uid: str, status: str) -> None:
        try:
            self.registry.mark(job_uid, REGISTRY_STATES[status])
        except Exception as e:
            logger.warning(f'Registry update for job {job_uid} failed: {e}')

    def _parse_ticket_results(self, entries: Any, default_time: datetime) -> list[TicketResult]:
        if not isinstance(entries, list):
            return []

        results = []
        for entry in entries:
            ticket_id = self._parse_int(entry.get('ticket_id')) if isinstance(entry, dict) else None
            if ticket_id is None:
                logger.warning(f'Ticket result without a valid ticket_id skipped: {entry!r}')
                continue
            results.append(
                TicketResult(
                    ticket_id=ticket_id,
                    success=bool(entry.get('success')),
                    qr_code_data=entry.get('qr_code_data'),
                    ticket_file_url=self._file_url(entry.get('pdf_file')),
                    generated_at=parse_timestamp(entry.get('generated_at')) or default_time,
                    error_message=entry.get('error_message'),
                )
            )
        return results

    @staticmethod
    def _file_url(pdf_file: Any) -> str | None:
        if isinstance(pdf_file, dict):
            return pdf_file.get('url')
        if isinstance(pdf_file, str):
            return pdf_file
        return None

    @staticmethod
    def _parse_int(value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
