"""Redis connection factory."""

from __future__ import annotations

import logging

import redis.asyncio as redis

from woodland.config import Settings

logger = logging.getLogger(__name__)


def create_redis(config: Settings) -> redis.Redis:
    """Build the shared client. Connections are opened lazily on first command."""
    logger.info("Configuring Redis client for %s", config.redis_url.split("@")[-1])
    return redis.from_url(
        config.redis_url,
        decode_responses=True,
        socket_timeout=config.redis_socket_timeout,
        socket_connect_timeout=config.redis_connect_timeout,
        retry_on_timeout=True,
    )