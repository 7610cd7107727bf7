"""
Backend clients and storage names.

One async Supabase client serves both the document tables (``users``,
``artworks``) and Supabase Auth. The guest cart cache lives in Upstash
Redis behind the synchronous REST client. Both are created lazily on first
use so that importing the package never needs credentials.
"""

import os
from typing import Optional

from supabase._async.client import AsyncClient, create_client as acreate_client
from upstash_redis import Redis

SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

_supabase: Optional[AsyncClient] = None
_cache_redis: Optional[Redis] = None


def _require(**settings: str) -> None:
    missing = [name for name, value in settings.items() if not value]
    if missing:
        raise ValueError(f"Missing configuration: {', '.join(missing)}")


async def get_supabase() -> AsyncClient:
    """Shared async Supabase client. Raises ValueError without credentials."""
    global _supabase

    if _supabase is None:
        _require(SUPABASE_URL=SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY=SUPABASE_SERVICE_ROLE_KEY)
        _supabase = await acreate_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    return _supabase


def get_cache_redis() -> Redis:
    """Shared Upstash client for the local cache (sync: cache reads never await)."""
    global _cache_redis

    if _cache_redis is None:
        _require(
            UPSTASH_REDIS_REST_URL=UPSTASH_REDIS_REST_URL,
            UPSTASH_REDIS_REST_TOKEN=UPSTASH_REDIS_REST_TOKEN,
        )
        _cache_redis = Redis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)
    return _cache_redis


class Collections:
    USERS = "users"
    ARTWORKS = "artworks"


class CacheKeys:
    """Local cache keys. ``RedisLocalCache`` prefixes them per device."""

    GUEST_CART = "cart:guest"

    @staticmethod
    def device_key(device_id: str, key: str) -> str:
        return f"device:{device_id}:{key}"
