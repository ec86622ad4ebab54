"""Redis connection + JSON cache helpers.

All operations are wrapped in try/except: Redis failure never breaks the
planner, it only means the catalog is fetched from the source again.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

log = logging.getLogger(__name__)

_clients: Dict[str, Any] = {}


def get_redis(redis_url: Optional[str] = None):
    """
    Client for ``redis_url`` (default: ``settings.redis_url``), or None.

    Each URL is tried once per process; an unreachable server is remembered
    as None until ``reset_redis()``.
    """
    if redis_url is None:
        from springs_trip.config import settings

        redis_url = settings.redis_url
    if not redis_url:
        return None
    if redis_url in _clients:
        return _clients[redis_url]

    client = None
    try:
        import redis

        client = redis.Redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=3)
        client.ping()
        log.info("Redis connected: %s", redis_url)
    except Exception as exc:
        log.warning("Redis at %s unavailable (%s), catalog will not be cached", redis_url, exc)
        client = None
    _clients[redis_url] = client
    return client


def reset_redis() -> None:
    """Forget cached connections so the next call reconnects."""
    _clients.clear()


def cache_get_json(key: str, redis_url: Optional[str] = None) -> Optional[Any]:
    try:
        r = get_redis(redis_url)
        if r is None:
            return None
        raw = r.get(key)
        if raw is None:
            return None
        return json.loads(raw)
    except Exception as exc:
        log.debug("cache_get_json(%s) failed: %s", key, exc)
        return None


def cache_set_json(key: str, value: Any, ttl: int, redis_url: Optional[str] = None) -> None:
    try:
        r = get_redis(redis_url)
        if r is None:
            return
        r.set(key, json.dumps(value), ex=ttl)
    except Exception as exc:
        log.debug("cache_set_json(%s) failed: %s", key, exc)
