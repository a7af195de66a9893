from __future__ import annotations

import logging
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from woodland.observability.metrics import CSRF_FAILURE_COUNTER
from woodland.security.csrf import (
    SAFE_METHODS,
    is_protected_path,
    is_secure_request,
    issue_csrf_token,
    set_csrf_cookie,
    tokens_match,
    verify_csrf_header,
)
from woodland.security.rate_limit import get_client_ip

logger = logging.getLogger(__name__)

CSRF_FAILURE_MESSAGE = "Invalid CSRF token"
UNAVAILABLE_MESSAGE = "Service temporarily unavailable"


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie protection.
    - Safe methods only make sure the token cookie exists
    - Unsafe methods under a protected prefix must echo the cookie in a header
    - Verification is skipped when the settings disable it (development)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        config = request.app.state.settings
        cookie_name = config.csrf_cookie_name
        cookie_token = request.cookies.get(cookie_name)

        if (
            request.method.upper() not in SAFE_METHODS
            and config.csrf_verification_enabled
            and is_protected_path(request.url.path, config.csrf_protected_paths)
        ):
            header_token = verify_csrf_header(request, config.csrf_header_name)
            if not tokens_match(cookie_token, header_token):
                logger.warning(
                    "CSRF validation failed: %s %s from %s (cookie=%s, header=%s)",
                    request.method,
                    request.url.path,
                    get_client_ip(request),
                    "present" if cookie_token else "missing",
                    "present" if header_token else "missing",
                )
                CSRF_FAILURE_COUNTER.inc()
                return JSONResponse(
                    {"success": False, "message": CSRF_FAILURE_MESSAGE},
                    status_code=403,
                )

        token: str | None = None
        if not cookie_token:
            try:
                token = issue_csrf_token(request, cookie_name)
            except OSError:
                logger.exception("Could not generate CSRF token")
                if not config.csrf_fail_open:
                    return JSONResponse(
                        {"success": False, "message": UNAVAILABLE_MESSAGE},
                        status_code=503,
                    )
        else:
            request.state.csrf_token = cookie_token

        response = await call_next(request)

        if token:
            set_csrf_cookie(
                response,
                token,
                secure=is_secure_request(request),
                cookie_name=cookie_name,
                max_age=config.csrf_cookie_max_age,
            )
        return response
