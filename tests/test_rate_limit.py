"""Tests for the Redis rate limiter and its middleware."""

from __future__ import annotations

import time
from unittest.mock import MagicMock

import fakeredis.aioredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.requests import Request

from woodland.config import RateLimitPolicy, settings
from woodland.middleware.rate_limit import resolve_policy
from woodland.security.rate_limit import (
    RateLimiter,
    RateLimitResult,
    build_key,
    get_client_ip,
)


def _request(headers: dict[str, str] | None = None, path: str = "/api/news"):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": path,
            "query_string": b"page=2",
            "headers": raw,
        }
    )


class TestClientIp:
    def test_forwarded_for_first_entry_wins(self):
        request = _request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert get_client_ip(request) == "203.0.113.5"

    def test_real_ip_used_when_no_forwarded_for(self):
        assert get_client_ip(_request({"X-Real-IP": "198.51.100.7"})) == "198.51.100.7"

    def test_unknown_without_proxy_headers(self):
        assert get_client_ip(_request()) == "unknown"

    def test_key_excludes_query_string(self):
        limiter = RateLimiter(MagicMock(), "ratelimit:")
        request = _request({"X-Real-IP": "1.2.3.4"})
        assert limiter.key_for(request) == "ratelimit:1.2.3.4:/api/news"
        assert build_key("rl:", "ip", "/p") == "rl:ip:/p"


class TestResolvePolicy:
    routes = {
        "/api/auth/login": "auth",
        "/api/auth": "general",
        "/api/news": "general",
    }

    def test_longest_prefix_wins(self):
        assert resolve_policy("/api/auth/login", self.routes) == "auth"
        assert resolve_policy("/api/auth/logout", self.routes) == "general"

    def test_matches_on_segment_boundary_only(self):
        assert resolve_policy("/api/newsletter", self.routes) is None
        assert resolve_policy("/api/news/12", self.routes) == "general"

    def test_unbound_path(self):
        assert resolve_policy("/healthz", self.routes) is None


class TestRateLimitResult:
    def test_headers_when_allowed(self):
        result = RateLimitResult(allowed=True, limit=5, current=2, ttl_ms=30_000)
        headers = result.headers()
        assert headers["X-RateLimit-Limit"] == "5"
        assert headers["X-RateLimit-Remaining"] == "3"
        assert "X-RateLimit-Reset" in headers
        assert "Retry-After" not in headers

    def test_headers_when_blocked(self):
        result = RateLimitResult(allowed=False, limit=5, current=6, ttl_ms=1_200)
        headers = result.headers()
        assert headers["X-RateLimit-Remaining"] == "0"
        assert headers["Retry-After"] == "2"
        assert result.retry_after == 2


class TestRateLimiter:
    policy = RateLimitPolicy(max_requests=3, window_ms=60_000)

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_blocks(self):
        client = fakeredis.aioredis.FakeRedis(decode_responses=True)
        limiter = RateLimiter(client, "rl:")

        results = [await limiter.hit("rl:k", self.policy) for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert results[-1].current == 4
        assert 0 < await client.pttl("rl:k") <= 60_000

    @pytest.mark.asyncio
    async def test_window_starts_on_first_hit_only(self):
        client = fakeredis.aioredis.FakeRedis(decode_responses=True)
        limiter = RateLimiter(client, "rl:")
        await limiter.hit("rl:k", self.policy)
        await client.pexpire("rl:k", 5_000)

        result = await limiter.hit("rl:k", self.policy)

        assert result.ttl_ms <= 5_000

    @pytest.mark.asyncio
    async def test_counter_without_expiry_gets_a_window(self):
        client = fakeredis.aioredis.FakeRedis(decode_responses=True)
        await client.set("rl:k", 7)
        limiter = RateLimiter(client, "rl:")

        result = await limiter.hit("rl:k", self.policy)

        assert result.ttl_ms == 60_000
        assert await client.pttl("rl:k") > 0

    @pytest.mark.asyncio
    async def test_reset_restores_quota(self):
        client = fakeredis.aioredis.FakeRedis(decode_responses=True)
        limiter = RateLimiter(client, "rl:")
        for _ in range(4):
            await limiter.hit("rl:k", self.policy)

        await limiter.reset("rl:k")

        assert (await limiter.hit("rl:k", self.policy)).allowed


class TestRateLimitMiddleware:
    def test_sixth_login_attempt_is_rejected(self, client, csrf):
        csrf()
        body = {"email": "nobody@example.org", "password": "wrong-password"}
        statuses = [
            client.post("/api/auth/login", json=body).status_code for _ in range(6)
        ]

        assert statuses[:5] == [401] * 5
        assert statuses[5] == 429

    def test_blocked_response_shape(self, client, csrf):
        csrf()
        body = {"email": "nobody@example.org", "password": "wrong-password"}
        for _ in range(5):
            client.post("/api/auth/login", json=body)

        resp = client.post("/api/auth/login", json=body)

        assert resp.status_code == 429
        data = resp.json()
        assert data["success"] is False
        assert data["message"] == settings.rate_limits["auth"].message
        assert data["retryAfter"] >= 1
        assert resp.headers["X-RateLimit-Limit"] == "5"
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        assert int(resp.headers["Retry-After"]) >= 1

    def test_recovers_when_window_expires(self, client, redis_sync, monkeypatch):
        policy = RateLimitPolicy(max_requests=1, window_ms=300)
        monkeypatch.setitem(settings.rate_limits, "general", policy)

        assert client.get("/api/news").status_code == 200
        [key] = redis_sync.scan_iter("ratelimit:*")
        assert 0 < redis_sync.pttl(key) <= 300
        assert client.get("/api/news").status_code == 429

        time.sleep(0.4)

        assert redis_sync.exists(key) == 0
        assert client.get("/api/news").status_code == 200

    def test_clients_are_counted_separately(self, client, csrf):
        csrf()
        body = {"email": "nobody@example.org", "password": "wrong-password"}
        for _ in range(5):
            client.post(
                "/api/auth/login", json=body, headers={"X-Forwarded-For": "10.0.0.1"}
            )

        resp = client.post(
            "/api/auth/login", json=body, headers={"X-Forwarded-For": "10.0.0.2"}
        )

        assert resp.status_code == 401

    def test_allowed_response_carries_headers(self, client):
        resp = client.get("/api/news")
        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Limit"] == "30"
        assert resp.headers["X-RateLimit-Remaining"] == "29"

    def test_unbound_paths_are_not_counted(self, client, redis_sync):
        client.get("/healthz")
        assert list(redis_sync.scan_iter("ratelimit:*")) == []

    def test_fails_open_when_redis_is_down(self, client, monkeypatch):
        async def broken_hit(self, key, policy):
            raise RedisConnectionError("connection refused")

        monkeypatch.setattr(RateLimiter, "hit", broken_hit)
        resp = client.get("/api/news")
        assert resp.status_code == 200
        assert "X-RateLimit-Limit" not in resp.headers

    def test_fails_closed_when_configured(self, client, monkeypatch):
        async def broken_hit(self, key, policy):
            raise RedisConnectionError("connection refused")

        monkeypatch.setattr(RateLimiter, "hit", broken_hit)
        monkeypatch.setattr(settings, "rate_limit_fail_open", False)
        resp = client.get("/api/news")
        assert resp.status_code == 503
        assert resp.json()["success"] is False

    def test_skip_successful_requests_gives_hits_back(self, client, monkeypatch):
        policy = RateLimitPolicy(
            max_requests=2, window_ms=60_000, skip_successful_requests=True
        )
        monkeypatch.setitem(settings.rate_limits, "general", policy)

        statuses = [client.get("/api/news").status_code for _ in range(4)]

        assert statuses == [200, 200, 200, 200]

    def test_released_hits_are_reflected_in_remaining(self, client, monkeypatch):
        policy = RateLimitPolicy(
            max_requests=2, window_ms=60_000, skip_successful_requests=True
        )
        monkeypatch.setitem(settings.rate_limits, "general", policy)

        first = client.get("/api/news")
        second = client.get("/api/news")

        assert first.headers["X-RateLimit-Remaining"] == "2"
        assert second.headers["X-RateLimit-Remaining"] == "2"

    def test_failed_requests_keep_their_hit(self, client, monkeypatch):
        policy = RateLimitPolicy(
            max_requests=3, window_ms=60_000, skip_failed_requests=True
        )
        monkeypatch.setitem(settings.rate_limits, "general", policy)

        resp = client.get("/api/news")

        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Remaining"] == "2"
