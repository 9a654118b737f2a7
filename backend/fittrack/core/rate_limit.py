"""
Daily cap on LLM-backed requests (workout text import, PDF plan parsing).

Per-user counters live in Redis under rate_limit:ai:{user_id}:{YYYY-MM-DD}.
When Redis is disabled or unreachable the request is allowed (fail open).
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from fastapi import HTTPException
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from fittrack.config import settings

logger = logging.getLogger(__name__)

_redis_client: Redis | None = None

# Keys outlive the UTC day they count
AI_KEY_TTL_SECONDS = 26 * 3600

RATE_LIMIT_MESSAGE = "Daily AI parsing limit reached. Try again tomorrow or add the workout manually."


def ai_limit_key(user_id: int, day: date) -> str:
    return f"rate_limit:ai:{user_id}:{day.isoformat()}"


def seconds_until_utc_midnight(now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    next_midnight = now.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)
    return max(1, int((next_midnight - now).total_seconds()))


def get_redis() -> Redis | None:
    """Async Redis client (connects lazily), or None when the AI limit is disabled."""
    global _redis_client
    if not settings.rate_limit_ai_enabled:
        return None
    if _redis_client is None:
        _redis_client = from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        try:
            await _redis_client.aclose()
        except RedisError as e:
            logger.warning("Rate limit: error closing Redis: %s", e)
        _redis_client = None


async def check_and_consume_ai_limit(user_id: int) -> None:
    """
    Count one AI call for the user today (UTC) and raise 429 with Retry-After
    once settings.free_daily_ai_limit is exceeded. A limit of 0 disables the cap.
    """
    limit = settings.free_daily_ai_limit
    redis_client = get_redis()
    if redis_client is None or limit <= 0:
        return

    key = ai_limit_key(user_id, datetime.now(timezone.utc).date())
    try:
        pipe = redis_client.pipeline()
        pipe.incr(key)
        pipe.ttl(key)
        count, ttl = await pipe.execute()
        if int(ttl) == -1:
            await redis_client.expire(key, AI_KEY_TTL_SECONDS)
    except (RedisError, OSError) as e:
        logger.warning("Rate limit: Redis error, allowing AI request: %s", e)
        return

    if int(count) > limit:
        logger.info("Rate limit: user_id=%s exceeded daily AI limit (%s)", user_id, limit)
        raise HTTPException(
            status_code=429,
            detail=RATE_LIMIT_MESSAGE,
            headers={"Retry-After": str(seconds_until_utc_midnight())},
        )
