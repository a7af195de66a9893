"""Redis-backed session persistence."""

from __future__ import annotations

import json
import logging
import math
from datetime import UTC, datetime
from typing import Any

import redis.asyncio as redis

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60


def _parse_expires(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        expires = value
    elif isinstance(value, str) and value:
        try:
            expires = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=UTC)
    return expires


class RedisSessionStore:
    """Store session payloads as JSON strings under ``prefix + session_id``.

    The TTL of every key follows ``session["cookie"]["expires"]`` when present,
    falling back to ``ttl`` seconds otherwise. A session whose expiry is already
    in the past is removed rather than written.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        prefix: str = "sess:",
        ttl: int = DEFAULT_TTL_SECONDS,
        scan_count: int = 100,
        disable_ttl: bool = False,
        disable_touch: bool = False,
    ) -> None:
        self.client = client
        self.prefix = prefix
        self.ttl = ttl
        self.scan_count = scan_count
        self.disable_ttl = disable_ttl
        self.disable_touch = disable_touch

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    def get_ttl(self, session: dict[str, Any] | None) -> int:
        """Seconds until the session cookie expires, rounded up."""
        cookie = (session or {}).get("cookie") or {}
        expires = _parse_expires(cookie.get("expires"))
        if expires is None:
            return self.ttl
        remaining = (expires - datetime.now(UTC)).total_seconds()
        return math.ceil(remaining)

    async def get(self, session_id: str) -> dict[str, Any] | None:
        raw = await self.client.get(self._key(session_id))
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unparseable session payload")
            return None
        return data if isinstance(data, dict) else None

    async def set(self, session_id: str, session: dict[str, Any]) -> None:
        payload = json.dumps(session, default=str)
        key = self._key(session_id)
        if self.disable_ttl:
            await self.client.set(key, payload)
            return
        ttl = self.get_ttl(session)
        if ttl > 0:
            await self.client.set(key, payload, ex=ttl)
        else:
            await self.destroy(session_id)

    async def touch(self, session_id: str, session: dict[str, Any]) -> None:
        if self.disable_touch or self.disable_ttl:
            return
        ttl = self.get_ttl(session)
        if ttl > 0:
            await self.client.expire(self._key(session_id), ttl)

    async def destroy(self, session_id: str) -> None:
        await self.client.delete(self._key(session_id))

    async def clear(self) -> int:
        keys = [key async for key in self._scan()]
        if keys:
            await self.client.delete(*keys)
        return len(keys)

    async def destroy_by_user_id(self, user_id: Any) -> int:
        """Delete every stored session belonging to ``user_id``.

        This walks the whole prefix with SCAN, so a session written while the
        scan is in progress can be missed.
        """
        target = str(user_id)
        removed = 0
        async for key in self._scan():
            raw = await self.client.get(key)
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except (TypeError, ValueError):
                continue
            user = data.get("user") if isinstance(data, dict) else None
            if isinstance(user, dict) and str(user.get("id")) == target:
                await self.client.delete(key)
                removed += 1
        if removed:
            logger.info("Destroyed %d session(s) for user %s", removed, target)
        return removed

    async def _scan(self):
        async for key in self.client.scan_iter(
            match=f"{self.prefix}*", count=self.scan_count
        ):
            yield key
