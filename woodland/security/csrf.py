from __future__ import annotations

import hmac
import logging
import secrets
from urllib.parse import urlsplit

from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "__csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_TOKEN_BYTES = 32
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def generate_csrf_token() -> str:
    return secrets.token_hex(CSRF_TOKEN_BYTES)


def is_secure_request(request: Request) -> bool:
    # Honor reverse proxy headers if present
    xf_proto = request.headers.get("x-forwarded-proto")
    if xf_proto:
        return "https" in xf_proto
    return request.url.scheme == "https"


def is_protected_path(path: str, prefixes: list[str]) -> bool:
    return any(path.startswith(prefix) for prefix in prefixes)


def issue_csrf_token(request: Request, cookie_name: str = CSRF_COOKIE_NAME) -> str:
    token: str | None = getattr(request.state, "csrf_token", None)
    if token:
        return token
    incoming = request.cookies.get(cookie_name)
    token = incoming or generate_csrf_token()
    request.state.csrf_token = token
    return token


def set_csrf_cookie(
    response: Response,
    token: str,
    *,
    secure: bool,
    cookie_name: str = CSRF_COOKIE_NAME,
    max_age: int = 24 * 60 * 60,
) -> None:
    # Readable by scripts so the frontend can echo it back in a header.
    response.set_cookie(
        cookie_name,
        token,
        secure=secure,
        httponly=False,
        samesite="none" if secure else "lax",
        max_age=max_age,
        path="/",
    )


def verify_csrf_header(
    request: Request, header_name: str = CSRF_HEADER_NAME
) -> str | None:
    return request.headers.get(header_name)


def tokens_match(cookie_token: str | None, header_token: str | None) -> bool:
    if not cookie_token or not header_token:
        return False
    return hmac.compare_digest(cookie_token.encode(), header_token.encode())


def validate_origin(request: Request, allowed_origins: list[str] | None = None) -> bool:
    """Check that Origin (or Referer) names this host or an allowed origin.

    Requests carrying neither header are let through; browsers always send
    at least one of them on cross-site form posts.
    """
    origin = request.headers.get("origin")
    if not origin:
        referer = request.headers.get("referer")
        if not referer:
            return True
        parts = urlsplit(referer)
        origin = f"{parts.scheme}://{parts.netloc}"

    host = request.headers.get("x-forwarded-host") or request.headers.get("host")
    if host and urlsplit(origin).netloc == host:
        return True
    if origin in (allowed_origins or []):
        return True
    logger.warning("Rejected cross-origin request from %s", origin)
    return False
