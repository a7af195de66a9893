from __future__ import annotations

from collections.abc import Callable
from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from woodland.security.csrf import is_secure_request


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Sets hardened headers on every API response.
    - HTTPS-aware HSTS
    - A locked-down CSP, since the API never serves markup
    - no-store caching for authenticated areas
    """

    def __init__(
        self,
        app,
        *,
        csp_directives: Iterable[str] | None = None,
        hsts: str = "max-age=63072000; includeSubDomains",
        referrer_policy: str = "strict-origin-when-cross-origin",
        permissions_policy: str = "geolocation=(), microphone=(), camera=()",
        enable_hsts_on_http: bool = False,
        skip_hsts_hosts: set[str] | None = None,
        frame_options: str = "DENY",
        no_store_prefixes: Iterable[str] = ("/api/admin/", "/api/auth/"),
    ) -> None:
        super().__init__(app)
        self.hsts = hsts
        self.referrer_policy = referrer_policy
        self.permissions_policy = permissions_policy
        self.enable_hsts_on_http = enable_hsts_on_http
        self.skip_hsts_hosts = skip_hsts_hosts or {"localhost", "127.0.0.1"}
        self.frame_options = frame_options
        self.no_store_prefixes = tuple(no_store_prefixes)
        self.csp_value = "; ".join(
            csp_directives
            or [
                "default-src 'none'",
                "frame-ancestors 'none'",
                "base-uri 'none'",
                "img-src 'self' data:",
            ]
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers.setdefault("Content-Security-Policy", self.csp_value)

        # HSTS: only on HTTPS and non-dev hosts unless explicitly enabled
        if is_secure_request(request) or self.enable_hsts_on_http:
            if request.url.hostname not in self.skip_hsts_hosts:
                response.headers.setdefault("Strict-Transport-Security", self.hsts)

        response.headers.setdefault("Referrer-Policy", self.referrer_policy)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", self.frame_options)
        if self.permissions_policy:
            response.headers.setdefault("Permissions-Policy", self.permissions_policy)

        if request.url.path.startswith(self.no_store_prefixes):
            response.headers.setdefault("Cache-Control", "no-store")

        return response
