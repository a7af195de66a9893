"""Fixed-window request counters stored in Redis."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass

import redis.asyncio as redis
from starlette.requests import Request

from woodland.config import RateLimitPolicy

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    """Resolve the caller from proxy headers: X-Forwarded-For, then X-Real-IP."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return UNKNOWN_CLIENT


def build_key(prefix: str, client_ip: str, path: str) -> str:
    # Query strings are not part of the bucket.
    return f"{prefix}{client_ip}:{path}"


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    current: int
    ttl_ms: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current)

    @property
    def retry_after(self) -> int:
        return max(1, math.ceil(self.ttl_ms / 1000))

    @property
    def reset_at(self) -> int | None:
        if self.ttl_ms <= 0:
            return None
        return math.floor((time.time() * 1000 + self.ttl_ms) / 1000)

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(0 if not self.allowed else self.remaining),
        }
        reset_at = self.reset_at
        if reset_at is not None:
            headers["X-RateLimit-Reset"] = str(reset_at)
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """Count hits per key inside a window that starts on the first hit."""

    def __init__(self, client: redis.Redis, prefix: str = "ratelimit:") -> None:
        self.client = client
        self.prefix = prefix

    def key_for(self, request: Request) -> str:
        return build_key(self.prefix, get_client_ip(request), request.url.path)

    async def hit(self, key: str, policy: RateLimitPolicy) -> RateLimitResult:
        current = int(await self.client.incr(key))
        if current == 1:
            await self.client.pexpire(key, policy.window_ms)
        ttl_ms = int(await self.client.pttl(key))
        if ttl_ms == -1:
            # Counter survived without an expiry; restart its window.
            await self.client.pexpire(key, policy.window_ms)
            ttl_ms = policy.window_ms
        return RateLimitResult(
            allowed=current <= policy.max_requests,
            limit=policy.max_requests,
            current=current,
            ttl_ms=ttl_ms,
        )

    async def release(self, key: str) -> int:
        """Give one hit back, used when a policy skips certain outcomes."""
        return int(await self.client.decr(key))

    async def reset(self, key: str) -> None:
        await self.client.delete(key)
