"""
Publishing side of the generation queues.

Render requests go to the `generation_requests` queue consumed by the
external renderer; the job uid is both the Celery task id and the
idempotency key.
"""

import logging
from dataclasses import dataclass
from typing import Any

from django.conf import settings

from apps.shared.exceptions import ServiceUnavailableError
from apps.tickets.exceptions import GenerationQueueError
from apps.tickets.queue.constants import GENERATE_TASK
from apps.tickets.queue.constants import GENERATION_REQUESTS_QUEUE
from apps.tickets.queue.constants import GENERATION_RESULTS_QUEUE
from apps.tickets.queue.registry import JobRegistry
from settings.celery import app as default_celery_app

logger = logging.getLogger(__name__)

PUBLISH_RETRY_POLICY = {
    'max_retries': 3,
    'interval_start': 0,
    'interval_step': 0.2,
    'interval_max': 1,
}


@dataclass(frozen=True)
class EnqueueResult:
    accepted: bool
    job_uid: str
    queue: str = GENERATION_REQUESTS_QUEUE


class GenerationQueueProducer:
    def __init__(self, celery_app=None, registry: JobRegistry | None = None):
        self.app = celery_app or default_celery_app
        self.registry = registry or JobRegistry()

    def enqueue(
        self,
        payload: dict[str, Any],
        idempotency_key: str,
        priority: int | None = None,
        attempts: int | None = None,
        backoff_ms: int | None = None,
    ) -> EnqueueResult:
        """
        Publish a render request at most once per idempotency key.

        Raises:
            GenerationQueueError: the registry or the broker is unavailable
        """
        job_uid = str(idempotency_key)
        try:
            claimed = self.registry.claim(job_uid)
        except ServiceUnavailableError as e:
            logger.error(f'Could not claim generation job {job_uid}: {e.message}')
            raise GenerationQueueError(f'Generation queue registry unavailable: {e.message}') from e

        if not claimed:
            logger.info(f'Generation job {job_uid} already enqueued, skipping publish')
            return EnqueueResult(accepted=False, job_uid=job_uid)

        message = {
            **payload,
            'retry': {
                'attempts': attempts or settings.GENERATION_ATTEMPTS,
                'backoff': {'type': 'exponential', 'delay': backoff_ms or settings.GENERATION_BACKOFF_MS},
                'remove_on_complete': settings.MAX_ENQUEUED_COMPLETE,
                'remove_on_fail': settings.MAX_ENQUEUED_FAIL,
            },
        }

        try:
            self.app.send_task(
                GENERATE_TASK,
                kwargs={'payload': message},
                task_id=job_uid,
                queue=GENERATION_REQUESTS_QUEUE,
                priority=priority or settings.GENERATION_PRIORITY,
                retry=True,
                retry_policy=PUBLISH_RETRY_POLICY,
            )
        except Exception as e:
            logger.exception(f'Failed to publish generation job {job_uid}: {e}')
            self.registry.release(job_uid)
            raise GenerationQueueError(f'Failed to enqueue generation job: {e}') from e

        logger.info(f'Enqueued generation job {job_uid} on {GENERATION_REQUESTS_QUEUE}')
        return EnqueueResult(accepted=True, job_uid=job_uid)

    def release(self, job_uid: str) -> None:
        """Forget the idempotency entry of a job that will never render"""
        self.registry.release(str(job_uid))

    def get_job_queue_status(self, job_uid: str) -> str | None:
        try:
            return self.registry.state(str(job_uid))
        except Exception as e:
            logger.warning(f'Queue status unavailable for job {job_uid}: {e}')
            return None

    def get_queue_stats(self) -> dict[str, Any]:
        counts = self.registry.counts()
        return {
            'queues': {
                GENERATION_REQUESTS_QUEUE: self._queue_depth(GENERATION_REQUESTS_QUEUE),
                GENERATION_RESULTS_QUEUE: self._queue_depth(GENERATION_RESULTS_QUEUE),
            },
            **counts,
            'total': sum(counts[state] for state in ('waiting', 'active', 'completed', 'failed')),
        }

    def _queue_depth(self, queue_name: str) -> int | None:
        try:
            with self.app.connection_for_read() as connection:
                declared = connection.default_channel.queue_declare(queue=queue_name, passive=True)
                return declared.message_count
        except Exception as e:
            logger.warning(f'Could not read depth of queue {queue_name}: {e}')
            return None
