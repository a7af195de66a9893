"""Security façade for CSRF, rate limiting, sessions and passwords."""

from .csrf import (  # noqa: F401
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    generate_csrf_token,
    issue_csrf_token,
    set_csrf_cookie,
    tokens_match,
    validate_origin,
    verify_csrf_header,
)
from .passwords import hash_password, password_problems, verify_password  # noqa: F401
from .rate_limit import RateLimiter, RateLimitResult, get_client_ip  # noqa: F401
from .session_store import RedisSessionStore  # noqa: F401

__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_HEADER_NAME",
    "generate_csrf_token",
    "issue_csrf_token",
    "set_csrf_cookie",
    "tokens_match",
    "validate_origin",
    "verify_csrf_header",
    "hash_password",
    "password_problems",
    "verify_password",
    "RateLimiter",
    "RateLimitResult",
    "get_client_ip",
    "RedisSessionStore",
]
