"""Device-local cache store.

A synchronous key-value store scoped to one browser/device. It holds the
guest cart, which is the only data that survives without a server profile.
"""

from abc import ABC, abstractmethod

from upstash_redis import Redis

from storefront.db import CacheKeys
from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


class LocalCache(ABC):
    """Synchronous, device-scoped key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class RedisLocalCache(LocalCache):
    """
    Local cache on the sync Upstash Redis client.

    Keys are namespaced by device id, so two devices never see each
    other's guest carts.

    Usage:
        cache = RedisLocalCache(get_cache_redis(), device_id="browser-42")
        cache.set(CacheKeys.GUEST_CART, "[]")
    """

    def __init__(self, redis: Redis, device_id: str) -> None:
        if not device_id:
            raise ValueError("device_id must be a non-empty string")
        self.redis = redis
        self.device_id = device_id

    def _key(self, key: str) -> str:
        return CacheKeys.device_key(self.device_id, key)

    def get(self, key: str) -> str | None:
        value = self.redis.get(self._key(key))
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    def set(self, key: str, value: str) -> None:
        self.redis.set(self._key(key), value)

    def remove(self, key: str) -> None:
        self.redis.delete(self._key(key))
        logger.debug("Removed %s for device %s", key, sanitize_id_for_logging(self.device_id))
