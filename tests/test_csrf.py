"""Tests for CSRF protection utilities and CSRFMiddleware."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import Request, Response

from woodland.config import settings
from woodland.security import csrf as csrf_security


def test_csrf_cookie_name_constant():
    """Test CSRF cookie and header names."""
    assert csrf_security.CSRF_COOKIE_NAME == "__csrf_token"
    assert csrf_security.CSRF_HEADER_NAME == "X-CSRF-Token"


def test_generated_token_is_64_hex_chars():
    token = csrf_security.generate_csrf_token()
    assert len(token) == 64
    int(token, 16)
    assert token != csrf_security.generate_csrf_token()


def test_issue_csrf_token_generates_new_token():
    """Test CSRF token generation for new requests."""
    mock_request = MagicMock(spec=Request)
    mock_request.state = MagicMock()
    mock_request.state.csrf_token = None
    mock_request.cookies = {}

    token = csrf_security.issue_csrf_token(mock_request)

    assert len(token) == 64
    assert mock_request.state.csrf_token == token


def test_issue_csrf_token_reuses_cookie_token():
    """Test CSRF token reuse from cookie when no state token."""
    mock_request = MagicMock(spec=Request)
    mock_request.state = MagicMock()
    mock_request.state.csrf_token = None
    mock_request.cookies = {csrf_security.CSRF_COOKIE_NAME: "cookie_token"}

    assert csrf_security.issue_csrf_token(mock_request) == "cookie_token"


def test_set_csrf_cookie_is_script_readable():
    response = Response()
    csrf_security.set_csrf_cookie(response, "tok", secure=False)

    cookie_header = response.headers.get("set-cookie", "")
    assert "__csrf_token=tok" in cookie_header
    assert "HttpOnly" not in cookie_header
    assert "samesite=lax" in cookie_header.lower()
    assert "Path=/" in cookie_header
    assert "Max-Age=86400" in cookie_header


def test_set_csrf_cookie_secure_uses_samesite_none():
    response = Response()
    csrf_security.set_csrf_cookie(response, "tok", secure=True)

    cookie_header = response.headers.get("set-cookie", "")
    assert "Secure" in cookie_header
    assert "samesite=none" in cookie_header.lower()


@pytest.mark.parametrize(
    ("cookie", "header", "expected"),
    [
        ("abc", "abc", True),
        ("abc", "abd", False),
        ("abc", None, False),
        (None, "abc", False),
        ("", "", False),
    ],
)
def test_tokens_match(cookie, header, expected):
    assert csrf_security.tokens_match(cookie, header) is expected


def test_is_protected_path():
    prefixes = ["/api/admin/", "/api/auth/"]
    assert csrf_security.is_protected_path("/api/admin/news", prefixes)
    assert not csrf_security.is_protected_path("/api/contact", prefixes)


class TestValidateOrigin:
    def _request(self, headers):
        request = MagicMock(spec=Request)
        request.headers = headers
        return request

    def test_same_host_origin_is_accepted(self):
        request = self._request(
            {"origin": "https://woodland.example", "host": "woodland.example"}
        )
        assert csrf_security.validate_origin(request)

    def test_allowed_origin_is_accepted(self):
        request = self._request(
            {"origin": "http://localhost:4321", "host": "api.example"}
        )
        assert csrf_security.validate_origin(request, ["http://localhost:4321"])

    def test_foreign_referer_is_rejected(self):
        request = self._request(
            {"referer": "https://evil.example/form", "host": "woodland.example"}
        )
        assert not csrf_security.validate_origin(request, ["http://localhost:4321"])

    def test_no_origin_headers_is_accepted(self):
        request = self._request({"host": "woodland.example"})
        assert csrf_security.validate_origin(request)


class TestCSRFMiddleware:
    def test_safe_request_issues_cookie(self, client):
        resp = client.get("/api/auth/session")
        assert resp.status_code == 200
        token = resp.cookies.get(settings.csrf_cookie_name)
        assert token and len(token) == 64
        assert resp.json()["data"]["csrfToken"] == token

    def test_existing_cookie_is_not_reissued(self, client, csrf):
        token = csrf()
        resp = client.get("/api/auth/session")
        assert settings.csrf_cookie_name not in resp.cookies
        assert resp.json()["data"]["csrfToken"] == token

    def test_unsafe_request_without_header_is_rejected(self, client):
        client.get("/api/auth/session")
        resp = client.post("/api/auth/logout")
        assert resp.status_code == 403
        assert resp.json() == {"success": False, "message": "Invalid CSRF token"}

    def test_mismatched_header_is_rejected(self, client):
        client.get("/api/auth/session")
        resp = client.post("/api/auth/logout", headers={"X-CSRF-Token": "f" * 64})
        assert resp.status_code == 403

    def test_matching_header_is_accepted(self, client, csrf):
        csrf()
        assert client.post("/api/auth/logout").status_code == 200

    def test_rejection_runs_before_rate_limiting(self, client, redis_sync):
        client.get("/api/auth/session")
        client.post("/api/auth/login", json={"email": "a@b.org", "password": "x"})
        assert list(redis_sync.scan_iter("ratelimit:*")) == []

    def test_unprotected_path_needs_no_token(self, client):
        resp = client.post("/api/contact", json={})
        assert resp.status_code == 422

    def test_verification_can_be_switched_off(self, client, monkeypatch):
        monkeypatch.setattr(settings, "csrf_verify", False)
        client.get("/api/auth/session")
        assert client.post("/api/auth/logout").status_code == 200

    def test_failure_log_omits_token_values(self, client, caplog):
        client.get("/api/auth/session")
        with caplog.at_level("WARNING", logger="woodland.middleware.csrf"):
            client.post("/api/auth/logout", headers={"X-CSRF-Token": "secret-value"})
        assert "CSRF validation failed" in caplog.text
        assert "secret-value" not in caplog.text
