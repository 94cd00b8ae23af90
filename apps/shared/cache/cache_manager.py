import logging
from typing import Any

from django.core.cache import cache

from apps.shared.cache.cache_keys import CacheKeys
from apps.shared.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Thin wrapper over the Django cache (django-redis in production).

    Reads degrade to the default on backend errors. Writes that other code
    relies on for correctness (add, incr) raise ServiceUnavailableError
    instead of pretending to succeed.
    """

    def __init__(self, backend=None):
        self.cache = backend or cache
        self.logger = logger
        self.keys = CacheKeys
        self._hits = 0
        self._misses = 0
        self._errors = 0

    def get(self, key: str, default: Any = None) -> Any:
        try:
            if not self.keys.validate_key(key):
                self.logger.warning(f'Invalid cache key format: {key}')
                return default

            value = self.cache.get(key, default)

            if value is not default:
                self._hits += 1
                self.logger.debug(f'Cache HIT: {key}')
            else:
                self._misses += 1
                self.logger.debug(f'Cache MISS: {key}')

            return value

        except Exception as e:
            self._errors += 1
            self.logger.exception(f'Cache GET error for key {key}: {e}')
            return default

    def set(self, key: str, value: Any, timeout: int | None = None) -> bool:
        try:
            if not self.keys.validate_key(key):
                self.logger.warning(f'Invalid cache key format: {key}')
                return False

            self.cache.set(key, value, timeout)
            self.logger.debug(f'Cache SET: {key}')
            return True

        except Exception as e:
            self._errors += 1
            self.logger.exception(f'Cache SET error for key {key}: {e}')
            return False

    def add(self, key: str, value: Any, timeout: int | None = None) -> bool:
        """Atomic set-if-absent. True when this call created the key."""
        try:
            created = self.cache.add(key, value, timeout)
        except Exception as e:
            self._errors += 1
            self.logger.exception(f'Cache ADD error for key {key}: {e}')
            raise ServiceUnavailableError(
                'Cache service is temporarily unavailable',
                error_code='CACHE_UNAVAILABLE',
            ) from e
        self.logger.debug(f'Cache ADD: {key} (created: {created})')
        return bool(created)

    def incr(self, key: str, delta: int = 1) -> int:
        try:
            self.cache.add(key, 0, None)
            return self.cache.incr(key, delta)
        except Exception as e:
            self._errors += 1
            self.logger.exception(f'Cache INCR error for key {key}: {e}')
            raise ServiceUnavailableError(
                'Cache service is temporarily unavailable',
                error_code='CACHE_UNAVAILABLE',
            ) from e

    def delete(self, key: str) -> bool:
        try:
            success = self.cache.delete(key)
            self.logger.debug(f'Cache DELETE: {key} (success: {success})')
            return bool(success)

        except Exception as e:
            self._errors += 1
            self.logger.exception(f'Cache DELETE error for key {key}: {e}')
            return False

    def get_stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            'hits': self._hits,
            'misses': self._misses,
            'errors': self._errors,
            'hit_rate': round(self._hits / total * 100, 2) if total else 0.0,
        }
