"""
Redis client lifecycle.

Redis holds short-lived email verification codes. The client lives on
``app.state.redis``; when Redis could not be reached at startup it is None
and the endpoints that need codes answer 503.
"""

import logging

from fastapi import Request
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


async def connect_redis(url: str) -> Redis:
    """
    Open a client and confirm the server answers.

    Raises:
        RedisError: If the server cannot be reached. The client is closed first.
    """
    client = from_url(url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise
    return client


async def close_redis(client: Redis | None) -> None:
    if client is not None:
        await client.aclose()
        logger.info("Redis connection closed")


def get_redis(request: Request) -> Redis | None:
    """FastAPI dependency returning the shared client, or None when unavailable."""
    return getattr(request.app.state, "redis", None)
