"""
Redis caching service for counter and ticket listings.

CACHING STRATEGY
================

What we cache:
  - Paginated listing responses (JSON-serialized), per tag
  - Cache key pattern: "{tag}:list:{param}={value}&..." with tag in
    ("counters", "tickets")

Invalidation strategy:
  - The allocation engine calls `invalidate_cache(tag)` after every
    committed mutation, once per affected tag (issuing a ticket changes
    both the ticket list and the counter's current_queue)
  - Counter administration routes invalidate "counters" directly
  - TTL-based expiry as safety net

  All keys of one tag share the "{tag}:list:" prefix so we can SCAN and
  delete them.

What we never cache:
  - Single counters or tickets read by the engine. Allocation always
    reads authoritative rows inside its transaction.

Redis is advisory: every failure is logged and the request carries on
against the database.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from queuedesk.core.config import get_settings
from queuedesk.core.logging import get_logger
from queuedesk.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def make_list_key(tag: str, **params: Any) -> str:
    query = "&".join(f"{name}={params[name]}" for name in sorted(params))
    return f"{tag}:list:{query}"


async def get_cached_listing(tag: str, **params: Any) -> Optional[dict]:
    """Retrieve a cached listing response."""
    client = await get_redis()
    if not client:
        return None

    key = make_list_key(tag, **params)
    try:
        data = await client.get(key)
        if data:
            logger.debug("cache_hit", key=key)
            record_cache_operation("get", "hit")
            return json.loads(data)
        logger.debug("cache_miss", key=key)
        record_cache_operation("get", "miss")
    except Exception as e:
        record_cache_operation("get", "error")
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_listing(tag: str, data: dict, **params: Any) -> None:
    """Cache a listing response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = make_list_key(tag, **params)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", "ok")
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        record_cache_operation("set", "error")
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_cache(tag: str) -> None:
    """
    Invalidate all cached listings of one tag.
    Used as the allocation engine's change hook.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{tag}:list:*", count=100):
            await client.delete(key)
            deleted += 1
        record_cache_operation("invalidate", "ok")
        logger.info("cache_invalidated", tag=tag, keys_deleted=deleted)
    except Exception as e:
        record_cache_operation("invalidate", "error")
        logger.error("cache_invalidation_error", tag=tag, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
