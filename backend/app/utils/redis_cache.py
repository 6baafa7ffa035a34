import logging
from datetime import date
from typing import List, Optional

import redis

from app.core.config import settings
from .json import dumps, loads

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


class _NullRedis:
    """No-op Redis client used when Redis is disabled.

    Methods mirror the minimal surface used in this codebase so callers can
    proceed without needing try/except around get_redis_client().
    """

    def get(self, key: str):
        return None

    def setex(self, key: str, expire: int, value: str):
        return None

    def scan_iter(self, pattern: str):
        return iter(())

    def delete(self, *keys: str):
        return 0

    def publish(self, channel: str, message: str):
        return 0

    def close(self):
        return None


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        url = (settings.REDIS_URL or "").strip()
        # Allow disabling via empty/none/disabled/false
        if not url or url.lower() in {"none", "disabled", "false", "0"}:
            _redis_client = _NullRedis()  # type: ignore[assignment]
            return _redis_client
        _redis_client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=0.5,
            socket_timeout=0.5,
        )
    return _redis_client


def close_redis_client() -> None:
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


AVAILABILITY_KEY_PREFIX = "availability"


def _availability_key(chef_id: int, day: date) -> str:
    return f"{AVAILABILITY_KEY_PREFIX}:{chef_id}:{day.isoformat()}"


def get_cached_availability(chef_id: int, day: date) -> Optional[List[str]]:
    """Return cached open slots for a chef's day, or ``None`` on a miss.

    Cache failures degrade to a miss; the caller recomputes from the DB.
    """
    client = get_redis_client()
    try:
        data = client.get(_availability_key(chef_id, day))
    except redis.RedisError as exc:
        logger.warning("availability cache read failed chef=%s err=%s", chef_id, exc)
        return None
    if not data:
        return None
    return loads(data)


def cache_availability(chef_id: int, day: date, slots: List[str], expire: Optional[int] = None) -> None:
    client = get_redis_client()
    ttl = expire if expire is not None else settings.AVAILABILITY_CACHE_TTL
    try:
        client.setex(_availability_key(chef_id, day), ttl, dumps(slots))
    except redis.RedisError as exc:
        logger.warning("availability cache write failed chef=%s err=%s", chef_id, exc)


def invalidate_availability_cache(chef_id: int) -> None:
    """Drop every cached day for ``chef_id``."""
    client = get_redis_client()
    try:
        keys = list(client.scan_iter(f"{AVAILABILITY_KEY_PREFIX}:{chef_id}:*"))
        if keys:
            client.delete(*keys)
    except redis.RedisError as exc:
        logger.warning("availability cache invalidation failed chef=%s err=%s", chef_id, exc)
