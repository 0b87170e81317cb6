# app/core/redis.py
"""
Optional Redis cache for resolved permission sets.

Every helper degrades to a no-op (None / False) when REDIS_URL is unset or
the server cannot be reached, so the API keeps working without a cache.
"""

import json
import logging
from functools import lru_cache
from typing import Any, Callable, Optional, TypeVar

import redis

from app.core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@lru_cache
def get_redis_client() -> Optional[redis.Redis]:
    """
    Connect once per process. Returns None when caching is disabled.
    """
    settings = get_settings()

    if not settings.redis_url:
        logger.info("REDIS_URL not set. Permission caching is disabled.")
        return None

    try:
        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
        logger.info("Connected to Redis for permission caching.")
        return client
    except redis.RedisError as e:
        logger.warning(f"Redis unavailable ({e}); permission caching disabled.")
        return None


def _namespaced(key: str) -> str:
    return f"{get_settings().cache_key_prefix}{key}"


def _run(operation: str, key: str, action: Callable[[redis.Redis, str], T], fallback: T) -> T:
    client = get_redis_client()
    if client is None:
        return fallback
    try:
        return action(client, _namespaced(key))
    except redis.RedisError as e:
        logger.warning(f"Redis {operation} failed for '{key}': {e}")
        return fallback


def cache_get_json(key: str) -> Optional[Any]:
    raw = _run("GET", key, lambda client, k: client.get(k), None)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning(f"Discarding malformed cache entry '{key}'")
        cache_delete(key)
        return None


def cache_set_json(key: str, value: Any, ttl: int = 60) -> bool:
    """Store ``value`` as JSON for ``ttl`` seconds."""
    return _run("SET", key, lambda client, k: bool(client.setex(k, ttl, json.dumps(value))), False)


def cache_delete(key: str) -> bool:
    return _run("DELETE", key, lambda client, k: client.delete(k) >= 0, False)
