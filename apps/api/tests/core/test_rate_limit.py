"""
Tests for the rate limiter.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.requests import Request

from campuscore.core.rate_limit import (
    RateLimitExceeded,
    check_rate_limit,
    client_ip_key,
    rate_limit,
)


def _request(path: str = "/api/v1/auth/login", host: str = "10.0.0.1") -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": path,
            "headers": [],
            "query_string": b"",
            "client": (host, 5000),
            "server": ("testserver", 80),
            "scheme": "http",
        }
    )


def _redis_with_count(count: int) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, count, 1, True])
    client = MagicMock()
    client.pipeline.return_value = pipe
    return client


class TestMemoryFallback:
    """Without Redis, counters live in process memory."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self):
        with patch("campuscore.core.redis.redis_client", None):
            results = [await check_rate_limit("k", 3, 60) for _ in range(4)]
        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        with patch("campuscore.core.redis.redis_client", None):
            assert await check_rate_limit("a", 1, 60) is True
            assert await check_rate_limit("a", 1, 60) is False
            assert await check_rate_limit("b", 1, 60) is True


class TestRedisBackend:
    """Sliding window on a Redis sorted set."""

    @pytest.mark.asyncio
    async def test_under_limit_allowed(self):
        client = _redis_with_count(2)
        with patch("campuscore.core.redis.redis_client", client):
            assert await check_rate_limit("k", 3, 60) is True
        pipe = client.pipeline.return_value
        pipe.zremrangebyscore.assert_called_once()
        pipe.zadd.assert_called_once()
        pipe.expire.assert_called_once_with("k", 60)

    @pytest.mark.asyncio
    async def test_at_limit_rejected(self):
        with patch("campuscore.core.redis.redis_client", _redis_with_count(3)):
            assert await check_rate_limit("k", 3, 60) is False

    @pytest.mark.asyncio
    async def test_redis_error_falls_back_to_memory(self):
        client = _redis_with_count(0)
        client.pipeline.return_value.execute.side_effect = RedisConnectionError("down")
        with patch("campuscore.core.redis.redis_client", client):
            assert await check_rate_limit("k", 1, 60) is True
            assert await check_rate_limit("k", 1, 60) is False


class TestDecorator:
    """The decorator keys requests by client IP and path."""

    def test_client_ip_key(self):
        assert client_ip_key(_request()) == "rate_limit:10.0.0.1:/api/v1/auth/login"

    def test_client_ip_key_uses_route_template(self):
        route = MagicMock(path="/api/v1/auth/{tenant_slug}/login")
        keys = set()
        for slug in ("green-valley", "Green-Valley", "GREEN-VALLEY"):
            request = _request(path=f"/api/v1/auth/{slug}/login")
            request.scope["route"] = route
            request.scope["path_params"] = {"tenant_slug": slug}
            keys.add(client_ip_key(request))

        assert keys == {
            "rate_limit:10.0.0.1:/api/v1/auth/{tenant_slug}/login?tenant_slug=green-valley"
        }

    @pytest.mark.asyncio
    async def test_raises_429_when_exceeded(self):
        @rate_limit(limit=2, window_seconds=30)
        async def endpoint(request: Request):
            return "ok"

        with patch("campuscore.core.redis.redis_client", None):
            assert await endpoint(request=_request()) == "ok"
            assert await endpoint(request=_request()) == "ok"
            with pytest.raises(RateLimitExceeded) as exc_info:
                await endpoint(request=_request())

        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"] == "30"
        assert exc_info.value.detail["error"] == "RATE_LIMIT_EXCEEDED"

    @pytest.mark.asyncio
    async def test_other_client_not_affected(self):
        @rate_limit(limit=1, window_seconds=30)
        async def endpoint(request: Request):
            return "ok"

        with patch("campuscore.core.redis.redis_client", None):
            await endpoint(request=_request(host="10.0.0.1"))
            assert await endpoint(request=_request(host="10.0.0.2")) == "ok"

    @pytest.mark.asyncio
    async def test_positional_request_is_found(self):
        @rate_limit(limit=1, window_seconds=30)
        async def endpoint(request: Request):
            return "ok"

        with patch("campuscore.core.redis.redis_client", None):
            await endpoint(_request())
            with pytest.raises(RateLimitExceeded):
                await endpoint(_request())

    @pytest.mark.asyncio
    async def test_without_request_passes_through(self):
        @rate_limit(limit=1, window_seconds=30)
        async def endpoint(value: int):
            return value

        assert await endpoint(value=1) == 1
        assert await endpoint(value=2) == 2
