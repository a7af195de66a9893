from __future__ import annotations

import logging
from collections.abc import Callable

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from woodland.observability.metrics import RATE_LIMIT_COUNTER
from woodland.security.rate_limit import RateLimiter, get_client_ip

logger = logging.getLogger(__name__)


def resolve_policy(path: str, routes: dict[str, str]) -> str | None:
    """Return the policy bound to the longest route prefix matching ``path``."""
    best: str | None = None
    best_len = -1
    for prefix, policy in routes.items():
        base = prefix.rstrip("/")
        if path == base or path.startswith(base + "/"):
            if len(base) > best_len:
                best, best_len = policy, len(base)
    return best


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply named rate-limit policies to the routes bound in settings."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        config = request.app.state.settings
        if not config.rate_limit_enabled:
            return await call_next(request)

        policy_name = resolve_policy(request.url.path, config.rate_limit_routes)
        if policy_name is None:
            return await call_next(request)
        policy = config.rate_limits[policy_name]

        limiter = RateLimiter(request.app.state.redis, config.rate_limit_prefix)
        key = limiter.key_for(request)
        try:
            result = await limiter.hit(key, policy)
        except (RedisError, OSError) as exc:
            logger.warning("Rate limiter unavailable for %s: %s", key, exc)
            if config.rate_limit_fail_open:
                return await call_next(request)
            return JSONResponse(
                {"success": False, "message": "Service temporarily unavailable"},
                status_code=503,
            )

        if not result.allowed:
            logger.info(
                "Rate limit '%s' exceeded by %s on %s",
                policy_name,
                get_client_ip(request),
                request.url.path,
            )
            RATE_LIMIT_COUNTER.labels(policy_name).inc()
            return JSONResponse(
                {
                    "success": False,
                    "message": policy.message,
                    "retryAfter": result.retry_after,
                },
                status_code=429,
                headers=result.headers(),
            )

        response = await call_next(request)

        skip = (policy.skip_successful_requests and response.status_code < 400) or (
            policy.skip_failed_requests and response.status_code >= 400
        )
        if skip:
            try:
                result.current = max(0, await limiter.release(key))
            except (RedisError, OSError) as exc:
                logger.warning("Could not release rate-limit hit for %s: %s", key, exc)

        for name, value in result.headers().items():
            response.headers[name] = value
        return response
