"""
Cache Keys Management

Centralized cache key generation with namespace isolation and consistent formatting.
All cache keys follow the pattern: {namespace}:{id}:{type}
"""

import re


class CacheKeys:
    """Centralized cache key generation for consistent namespace isolation"""

    GENERATION_PREFIX = 'generation'
    QUEUE_PREFIX = 'queue'

    _KEY_PATTERN = re.compile(r'^[A-Za-z0-9_\-:.]+$')
    MAX_KEY_LENGTH = 250

    @classmethod
    def generation_job(cls, job_uid: str) -> str:
        """Idempotency / state entry of a generation job

        Returns:
            str: Cache key like 'generation:9b1d...:state'
        """
        return f"{cls.GENERATION_PREFIX}:{job_uid}:state"

    @classmethod
    def queue_state_index(cls, queue_name: str, state: str) -> str:
        """List of job uids currently in a given state

        Returns:
            str: Cache key like 'queue:generation_requests:completed'
        """
        return f"{cls.QUEUE_PREFIX}:{queue_name}:{state}"

    @classmethod
    def queue_counter(cls, queue_name: str, counter: str) -> str:
        """Monotonic counter (e.g. delayed retries) for a queue"""
        return f"{cls.QUEUE_PREFIX}:{queue_name}:counter:{counter}"

    @classmethod
    def validate_key(cls, key: str) -> bool:
        return bool(key) and len(key) <= cls.MAX_KEY_LENGTH and bool(cls._KEY_PATTERN.match(key))
