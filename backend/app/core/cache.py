"""Redis caching utility.

Every helper swallows Redis errors after logging them: a cache outage
degrades to database reads, never to a failed request.
"""

import json
import logging
from typing import Any

import redis.asyncio as aioredis

from app.core.config import settings

logger = logging.getLogger(__name__)

_redis: aioredis.Redis | None = None


async def _get_redis() -> aioredis.Redis:
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    return _redis


def make_cache_key(*parts: str | int) -> str:
    return "cache:" + ":".join(str(p) for p in parts)


async def cache_get_json(key: str) -> Any | None:
    try:
        r = await _get_redis()
        raw = await r.get(key)
    except Exception:
        logger.exception("Cache get failed for key=%s", key)
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Discarding undecodable cache entry key=%s", key)
        return None


async def cache_set_json(key: str, value: Any, ttl: int = 60) -> None:
    try:
        r = await _get_redis()
        await r.set(key, json.dumps(value), ex=ttl)
    except Exception:
        logger.exception("Cache set failed for key=%s", key)


async def cache_delete(*keys: str) -> None:
    if not keys:
        return
    try:
        r = await _get_redis()
        await r.delete(*keys)
    except Exception:
        logger.exception("Cache delete failed for keys=%s", keys)


async def close_cache() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
