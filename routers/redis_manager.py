# routers/redis_manager.py
from __future__ import annotations

import redis.asyncio as redis

from config import settings

_redis = None


async def get_redis():
    global _redis
    if _redis:
        return _redis

    if not settings.redis_url:
        raise RuntimeError("REDIS_URL is missing")

    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )

    return _redis


async def close_redis():
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None
