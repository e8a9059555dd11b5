"""Unit tests for the Redis fixed-window rate limiter."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from src.am_common.redis_client import incr_window
from src.am_gateway.middleware import rate_limit
from src.am_gateway.middleware.rate_limit import RateLimitMiddleware, classify, client_ip


class TestClassify:
    def test_auth(self) -> None:
        assert classify("POST", "/api/v1/auth/login") == "auth"

    def test_bid(self) -> None:
        assert classify("POST", "/api/v1/market/1001/bids") == "bid"

    def test_bid_read_is_default(self) -> None:
        assert classify("GET", "/api/v1/market/1001/bids") == "default"

    def test_other(self) -> None:
        assert classify("GET", "/api/v1/market") == "default"


class TestClientIp:
    def test_first_forwarded_entry(self) -> None:
        req = SimpleNamespace(headers={"x-forwarded-for": "203.0.113.9, 10.0.0.1"}, client=None)
        assert client_ip(req) == "203.0.113.9"

    def test_peer_address(self) -> None:
        req = SimpleNamespace(headers={}, client=SimpleNamespace(host="127.0.0.1"))
        assert client_ip(req) == "127.0.0.1"


class TestIncrWindow:
    async def test_sets_ttl_on_first_hit_only(self) -> None:
        redis = AsyncMock()
        redis.incr.side_effect = [1, 2]

        assert await incr_window(redis, "k", 60) == 1
        assert await incr_window(redis, "k", 60) == 2
        redis.expire.assert_awaited_once_with("k", 60)


def _app() -> Starlette:
    async def ok(request):
        return PlainTextResponse("ok")

    app = Starlette(routes=[Route("/api/v1/auth/login", ok, methods=["POST"]), Route("/health", ok)])
    app.add_middleware(RateLimitMiddleware)
    return app


@pytest.fixture
def limits():
    with (
        patch.object(rate_limit.settings, "RATE_LIMIT_ENABLED", True),
        patch.object(rate_limit.settings, "RATE_LIMIT_AUTH_PER_MIN", 2),
    ):
        yield


class TestMiddleware:
    def test_blocks_over_limit(self, limits) -> None:
        counts = iter([1, 2, 3])
        with (
            patch.object(rate_limit, "get_redis", AsyncMock(return_value=object())),
            patch.object(rate_limit, "incr_window", AsyncMock(side_effect=lambda *a: next(counts))),
        ):
            client = TestClient(_app())
            assert client.post("/api/v1/auth/login").status_code == 200
            assert client.post("/api/v1/auth/login").status_code == 200
            resp = client.post("/api/v1/auth/login")

        assert resp.status_code == 429
        assert resp.json()["code"] == 9001
        assert 0 < int(resp.headers["Retry-After"]) <= 60

    def test_fails_open_when_redis_down(self, limits) -> None:
        with patch.object(
            rate_limit, "get_redis", AsyncMock(side_effect=RedisConnectionError("down"))
        ):
            resp = TestClient(_app()).post("/api/v1/auth/login")

        assert resp.status_code == 200

    def test_health_is_exempt(self, limits) -> None:
        get_redis = AsyncMock()
        with patch.object(rate_limit, "get_redis", get_redis):
            assert TestClient(_app()).get("/health").status_code == 200
        get_redis.assert_not_awaited()

    def test_disabled(self) -> None:
        get_redis = AsyncMock()
        with (
            patch.object(rate_limit.settings, "RATE_LIMIT_ENABLED", False),
            patch.object(rate_limit, "get_redis", get_redis),
        ):
            assert TestClient(_app()).post("/api/v1/auth/login").status_code == 200
        get_redis.assert_not_awaited()
