"""
Tests for the sliding-window rate limiter and its in-memory fallback.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request

from admission_portal.core import rate_limit
from admission_portal.core.rate_limit import RateLimitExceeded, check_rate_limit


@pytest.fixture(autouse=True)
def clear_memory_store():
    rate_limit._memory_store.clear()
    yield
    rate_limit._memory_store.clear()


@pytest.mark.asyncio
async def test_allows_up_to_limit_without_redis():
    results = [await check_rate_limit("admin:approve:1", 3, 60) for _ in range(4)]
    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_keys_are_independent():
    assert await check_rate_limit("a", 1, 60)
    assert await check_rate_limit("b", 1, 60)
    assert not await check_rate_limit("a", 1, 60)


def test_memory_window_expires():
    with patch("admission_portal.core.rate_limit.time.time", return_value=1000.0):
        assert rate_limit._check_rate_limit_memory("k", 1, 60)
        assert not rate_limit._check_rate_limit_memory("k", 1, 60)
    with patch("admission_portal.core.rate_limit.time.time", return_value=1061.0):
        assert rate_limit._check_rate_limit_memory("k", 1, 60)


def test_rate_limit_exceeded_response():
    exc = RateLimitExceeded(10, 60)
    assert exc.status_code == 429
    assert exc.detail["error"] == "RATE_LIMIT_EXCEEDED"
    assert exc.headers["Retry-After"] == "60"


def _redis_with_count(count: int) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, count, 1, True])
    client = MagicMock()
    client.pipeline.return_value = pipe
    return client


@pytest.mark.asyncio
async def test_uses_redis_client_when_given():
    client = _redis_with_count(5)

    assert not await check_rate_limit("login:1", 5, 60, client)
    assert await check_rate_limit("login:2", 6, 60, client)
    assert rate_limit._memory_store == {}


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_memory():
    client = MagicMock()
    client.pipeline.return_value.execute = AsyncMock(side_effect=ConnectionError("down"))

    assert await check_rate_limit("k", 1, 60, client)
    assert rate_limit._memory_store["k"]


@pytest.mark.asyncio
async def test_decorator_reads_client_from_app_state():
    client = _redis_with_count(10)
    request = MagicMock(spec=Request)
    request.app.state.redis = client
    request.client.host = "10.0.0.1"
    request.url.path = "/api/v1/auth/login"

    @rate_limit.rate_limit(limit=10, window_seconds=60)
    async def endpoint(request: Request):
        return "ok"

    with pytest.raises(RateLimitExceeded):
        await endpoint(request=request)
    client.pipeline.assert_called_once()
