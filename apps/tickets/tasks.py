import logging

from celery import Task
from django.conf import settings

from apps.shared.container import get_job_registry
from apps.shared.container import get_result_reconciler
from apps.shared.exceptions import ServiceUnavailableError
from apps.tickets.exceptions import InvalidResultMessageError
from apps.tickets.queue.constants import GENERATION_RESULT_TASK
from apps.tickets.queue.constants import GENERATION_RESULTS_QUEUE
from apps.tickets.queue.constants import JobState
from settings.celery import app

logger = logging.getLogger(__name__)


class GenerationResultTask(Task):
    """Bookkeeping around the result consumer's retries and permanent failures"""

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        job_uid = _job_uid(args, kwargs)
        logger.warning(f'Retrying generation result for job {job_uid}: {exc}')
        try:
            get_job_registry().record_retry(job_uid)
        except ServiceUnavailableError as e:
            logger.warning(f'Could not count retry of job {job_uid}: {e}')

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        job_uid = _job_uid(args, kwargs)
        logger.error(f'Generation result for job {job_uid} failed permanently: {exc!r}')
        if job_uid:
            get_job_registry().mark(job_uid, JobState.FAILED)


def _job_uid(args, kwargs) -> str | None:
    message = kwargs.get('message') or (args[0] if args else None)
    if isinstance(message, dict) and message.get('job_uid'):
        return str(message['job_uid'])
    return None


@app.task(
    bind=True,
    base=GenerationResultTask,
    name=GENERATION_RESULT_TASK,
    queue=GENERATION_RESULTS_QUEUE,
    acks_late=True,
    autoretry_for=(ServiceUnavailableError,),
    retry_backoff=max(1, settings.GENERATION_BACKOFF_MS // 1000),
    retry_backoff_max=600,
    retry_jitter=True,
    max_retries=settings.GENERATION_ATTEMPTS,
    ignore_result=True,
)
def process_generation_result_task(self, message: dict):
    """
    Consume one renderer result from the `generation_results` queue.

    Malformed messages are acknowledged and dropped; transient database
    failures are retried with exponential backoff.
    """
    try:
        result = get_result_reconciler().reconcile(message)
    except InvalidResultMessageError as e:
        logger.error(f'Dropping malformed generation result ({e.error_code}): {e.message}')
        return {'status': 'rejected', 'code': e.error_code}

    return {'status': result.outcome.value, 'job_uid': _job_uid((message,), {})}
