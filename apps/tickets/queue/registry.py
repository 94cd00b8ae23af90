"""
Cache-backed registry of generation requests.

The per-uid state key doubles as the idempotency entry: it is claimed with an
atomic add before anything is published and lives until the uid falls out of
the capped completed/failed lists or its TTL runs out. State lists share the
TTL and skip uids whose entry is gone.
"""

import logging

from django.conf import settings

from apps.shared.cache.cache_keys import CacheKeys
from apps.shared.cache.cache_manager import CacheManager
from apps.tickets.queue.constants import DELAYED_COUNTER
from apps.tickets.queue.constants import GENERATION_REQUESTS_QUEUE
from apps.tickets.queue.constants import JobState

logger = logging.getLogger(__name__)


class JobRegistry:
    def __init__(
        self,
        cache_manager: CacheManager | None = None,
        queue_name: str = GENERATION_REQUESTS_QUEUE,
        ttl: int | None = None,
        max_completed: int | None = None,
        max_failed: int | None = None,
    ):
        self.cache = cache_manager or CacheManager()
        self.queue_name = queue_name
        self.ttl = ttl or settings.GENERATION_IDEMPOTENCY_TTL
        self.caps = {
            JobState.COMPLETED: max_completed or settings.MAX_ENQUEUED_COMPLETE,
            JobState.FAILED: max_failed or settings.MAX_ENQUEUED_FAIL,
        }

    def claim(self, job_uid: str) -> bool:
        """Claim the idempotency entry; False when the uid is already known"""
        created = self.cache.add(CacheKeys.generation_job(job_uid), JobState.WAITING, self.ttl)
        if created:
            self._move(job_uid, JobState.WAITING)
        else:
            logger.debug(f'Generation job {job_uid} already registered')
        return created

    def release(self, job_uid: str) -> None:
        self.cache.delete(CacheKeys.generation_job(job_uid))
        self._move(job_uid, None)
        logger.debug(f'Released generation job {job_uid}')

    def state(self, job_uid: str) -> str | None:
        return self.cache.get(CacheKeys.generation_job(job_uid))

    def mark(self, job_uid: str, state: str) -> None:
        if state not in JobState.ALL:
            raise ValueError(f'Unknown job state: {state}')
        self.cache.set(CacheKeys.generation_job(job_uid), state, self.ttl)
        self._move(job_uid, state)

    def record_retry(self, job_uid: str) -> int:
        count = self.cache.incr(CacheKeys.queue_counter(self.queue_name, DELAYED_COUNTER))
        logger.debug(f'Generation job {job_uid} delayed for retry ({count} total)')
        return count

    def counts(self) -> dict[str, int]:
        counts = {state: len(self._prune(state)) for state in JobState.ALL}
        counts[DELAYED_COUNTER] = self.cache.get(CacheKeys.queue_counter(self.queue_name, DELAYED_COUNTER)) or 0
        return counts

    def _index(self, state: str) -> list[str]:
        return list(self.cache.get(CacheKeys.queue_state_index(self.queue_name, state)) or [])

    def _store(self, state: str, uids: list[str]) -> None:
        self.cache.set(CacheKeys.queue_state_index(self.queue_name, state), uids, self.ttl)

    def _prune(self, state: str) -> list[str]:
        """Drop uids whose state entry expired or no longer matches the list"""
        uids = self._index(state)
        live = [uid for uid in uids if self.state(uid) == state]
        if len(live) != len(uids):
            self._store(state, live)
            logger.debug(f'Pruned {len(uids) - len(live)} stale {state} generation jobs from the registry')
        return live

    def _move(self, job_uid: str, target: str | None) -> None:
        """Keep the uid in exactly one state list, newest first"""
        for state in JobState.ALL:
            if state == target:
                uids = [job_uid] + [uid for uid in self._prune(state) if uid != job_uid]
                uids = self._trim(state, uids)
            else:
                uids = self._index(state)
                if job_uid not in uids:
                    continue
                uids.remove(job_uid)
            self._store(state, uids)

    def _trim(self, state: str, uids: list[str]) -> list[str]:
        cap = self.caps.get(state)
        if cap is None or len(uids) <= cap:
            return uids
        kept, evicted = uids[:cap], uids[cap:]
        for uid in evicted:
            self.cache.delete(CacheKeys.generation_job(uid))
        logger.debug(f'Evicted {len(evicted)} {state} generation jobs from the registry')
        return kept
