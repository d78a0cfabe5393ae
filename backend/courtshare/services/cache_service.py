"""
Redis caching for court time-slot grids.

CACHING STRATEGY
================

What we cache:
  - The time-slot response for one court, date and slot width
  - Cache key pattern:
    "slots:court={court_id}:gen={generation}:date={YYYY-MM-DD}:interval={minutes}"

Why:
  - The slot grid is the most requested read (every date change in the picker)
  - It only changes when a reservation on that court is written

Invalidation strategy:
  - Each court has a generation counter at "slots:court={court_id}:gen", and
    the generation is part of every grid key
  - On create, reschedule and delete the counter is bumped, so every grid
    cached under the old generation is unreachable from then on
  - A reader resolves the key (and so the generation) before computing the
    grid. A grid computed from pre-write data is therefore stored under the
    old generation even when the write commits while it is being computed
  - TTL-based expiry reclaims the orphaned keys (5 minutes)

What we never cache:
  - Edit-flow grids (excludeReservationId) are per-reservation and uncached
  - Writes never consult the cache; they re-check overlap under a row lock,
    so a stale cached grid can at worst show a slot as free that then fails
    with 409 on submit

Redis is optional. Any Redis failure degrades to computing the grid directly.
"""

import json
from datetime import date
from typing import Optional

import redis.asyncio as redis
from courtshare.core.config import get_settings
from courtshare.core.logging import get_logger
from courtshare.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or unreachable."""
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
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def _generation_key(court_id: int) -> str:
    return f"slots:court={court_id}:gen"


async def slots_cache_key(court_id: int, day: date, interval: int) -> Optional[str]:
    """Key for the court's current generation, or None when caching is off."""
    client = await get_redis()
    if not client:
        return None

    try:
        generation = int(await client.get(_generation_key(court_id)) or 0)
    except Exception as e:
        logger.error("cache_generation_error", court_id=court_id, error=str(e))
        return None
    return f"slots:court={court_id}:gen={generation}:date={day.isoformat()}:interval={interval}"


async def get_cached_slots(key: str) -> Optional[list[dict]]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
        if data:
            record_cache_operation("get", hit=True)
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        record_cache_operation("get", hit=False)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_slots(key: str, data: list[dict]) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_court_slots(court_id: int) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        generation = await client.incr(_generation_key(court_id))
        logger.info("cache_invalidated", court_id=court_id, generation=generation)
    except Exception as e:
        logger.error("cache_invalidation_error", court_id=court_id, error=str(e))


async def get_cache_stats() -> dict:
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
