"""
cache.py — Redis result cache for taxregime.

The engine is pure, so identical requests always produce identical results.
Callers may therefore cache on identical-input equality:

  result:{sha256(canonical request JSON)}  → ComparisonResult JSON   TTL settings.result_cache_ttl

Design:
  - Uses redis.asyncio (async client, part of redis-py 5.x)
  - Pool created once in lifespan (only when RESULT_CACHE_ENABLED), stored on app.state.redis
  - Helper functions take the client as a param — no module-level global state
  - Logs only the key digest — never income values
  - A cache failure never fails the request: errors are logged and treated as a miss
"""
import hashlib
import json
import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from taxregime.config import settings
from taxregime.intake.schemas import CalculateRequest

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key prefix constants
# ---------------------------------------------------------------------------
RESULT_PREFIX = "result"


# ---------------------------------------------------------------------------
# Key builders
# ---------------------------------------------------------------------------

def make_result_key(request: CalculateRequest) -> str:
    """
    Build Redis key for a calculation request.
    Canonical JSON (sorted keys, defaults filled in) so that equal requests
    hash identically regardless of field order or omitted defaults.
    Key format: result:{sha256hex}
    """
    canonical = json.dumps(
        request.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{RESULT_PREFIX}:{digest}"


# ---------------------------------------------------------------------------
# Pool factory — called once in lifespan
# ---------------------------------------------------------------------------

async def create_redis_pool() -> aioredis.Redis:
    """
    Create and return an async Redis connection pool.
    Verifies connectivity with PING before returning.
    """
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    await client.ping()
    logger.info("Redis connection pool established at %s", settings.redis_url)
    return client


# ---------------------------------------------------------------------------
# Result cache helpers
# ---------------------------------------------------------------------------

async def get_cached_result(client: aioredis.Redis, key: str) -> Optional[dict]:
    """Return the cached ComparisonResult dict, or None on miss or Redis error."""
    try:
        raw = await client.get(key)
    except RedisError as exc:
        logger.warning("Result cache read failed key=%s: %s", key, exc)
        return None
    if raw is None:
        return None
    logger.info("Result cache hit key=%s", key)
    return json.loads(raw)


async def set_cached_result(client: aioredis.Redis, key: str, result: dict) -> None:
    """Store a ComparisonResult dict (JSON mode) with TTL settings.result_cache_ttl."""
    try:
        await client.setex(key, settings.result_cache_ttl, json.dumps(result))
    except RedisError as exc:
        logger.warning("Result cache write failed key=%s: %s", key, exc)
        return
    logger.info("Result cached key=%s ttl=%ds", key, settings.result_cache_ttl)
