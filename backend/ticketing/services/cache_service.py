"""
Redis caching service for active-event listings.

CACHING STRATEGY
================

What we cache:
  - The active-event listing of each domain (JSON-serialized, seat counts included)
  - Cache key pattern: "events:active:{domain}:{generation}"

Why:
  - Students open the event list far more often than anything else
  - Serving from Redis: ~1ms vs a join + grouped count in PostgreSQL

Invalidation strategy:
  - Each domain has a generation counter ("events:generation:{domain}")
  - Any reservation create/cancel and any event create/update/cancel bumps
    it after commit, which retires every listing stored under older numbers
  - A reader reads the generation before querying and stores its listing
    under that number, so a listing built before a write lands is never
    served after the write's bump
  - TTL-based expiry cleans up retired keys (5 minutes)

What is never cached:
  - Single-event reads and availability; reservation decisions always count
    live rows under the event lock, the cache is for display only

Redis is advisory: if it is disabled or unreachable every call degrades to
a miss / no-op and the error is logged.
"""

import json
from typing import Optional

import redis.asyncio as redis
from ticketing.core.config import get_settings
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_cache_operation

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


def _generation_key(domain: str) -> str:
    return f"events:generation:{domain}"


def _active_events_key(domain: str, generation: int) -> str:
    return f"events:active:{domain}:{generation}"


async def get_cache_generation(domain: str) -> Optional[int]:
    """Current listing generation of a domain, or None when Redis is unavailable."""
    client = await get_redis()
    if not client:
        return None

    try:
        return int(await client.get(_generation_key(domain)) or 0)
    except Exception as e:
        logger.error("cache_generation_error", domain=domain, error=str(e))
        return None


async def get_cached_active_events(domain: str, generation: int) -> Optional[list]:
    client = await get_redis()
    if not client:
        return None

    key = _active_events_key(domain, generation)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_active_events(domain: str, generation: int, events: list) -> None:
    """Cache an already JSON-compatible event list with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _active_events_key(domain, generation)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(events, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_event_cache(domain: str) -> None:
    client = await get_redis()
    if not client:
        return

    key = _generation_key(domain)
    try:
        generation = await client.incr(key)
        logger.info("cache_invalidated", key=key, generation=generation)
    except Exception as e:
        logger.error("cache_invalidation_error", key=key, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        keyspace = await client.info("keyspace")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            "keys": keyspace,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
