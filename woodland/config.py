"""Application settings."""

from __future__ import annotations

import json
from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MB = 1024 * 1024

IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif"]
DOCUMENT_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
]


class RateLimitPolicy(BaseModel):
    """A (max requests, window) pair applied per client and path."""

    max_requests: int
    window_ms: int
    message: str = "Too many requests. Please try again later."
    skip_successful_requests: bool = False
    skip_failed_requests: bool = False


class ImageSize(BaseModel):
    width: int = 1920
    height: int = 1080


class UploadPolicy(BaseModel):
    """Per-feature upload limits and storage location."""

    enabled: bool = True
    directory: str
    url: str
    max_files: int = 10
    max_file_size: int = 10 * MB
    allowed_types: list[str] = Field(default_factory=lambda: list(IMAGE_TYPES))
    max_size: ImageSize = Field(default_factory=ImageSize)
    quality: int = 80

    @property
    def max_file_size_mb(self) -> int:
        return round(self.max_file_size / MB)


def _default_rate_limits() -> dict[str, RateLimitPolicy]:
    return {
        "auth": RateLimitPolicy(
            max_requests=5,
            window_ms=5 * 60 * 1000,
            message="Too many login attempts. Please wait 5 minutes.",
        ),
        "password_reset": RateLimitPolicy(
            max_requests=3,
            window_ms=60 * 60 * 1000,
            message="Too many password reset requests. Please wait an hour.",
        ),
        "email": RateLimitPolicy(
            max_requests=1,
            window_ms=15 * 60 * 1000,
            message="Too many emails sent. Please wait 15 minutes.",
        ),
        "general": RateLimitPolicy(max_requests=30, window_ms=60 * 1000),
        "contact": RateLimitPolicy(
            max_requests=5,
            window_ms=60 * 60 * 1000,
            message="Too many contact submissions. Please wait an hour.",
        ),
        "join": RateLimitPolicy(
            max_requests=3,
            window_ms=24 * 60 * 60 * 1000,
            message="Too many membership applications. Please try again tomorrow.",
        ),
        "token_verification": RateLimitPolicy(
            max_requests=10,
            window_ms=60 * 1000,
            message="Too many token checks. Please wait a minute.",
        ),
    }


def _default_rate_limit_routes() -> dict[str, str]:
    return {
        "/api/auth/login": "auth",
        "/api/auth/verify": "auth",
        "/api/auth/reset-password": "auth",
        "/api/auth/forgot-password": "password_reset",
        "/api/auth/verify-reset-token": "token_verification",
        "/api/contact": "contact",
        "/api/email/join": "join",
        "/api/news": "general",
        "/api/record": "general",
        "/api/location": "general",
        "/api/article": "general",
        "/api/articles": "general",
    }


def _default_uploads() -> dict[str, UploadPolicy]:
    return {
        "news": UploadPolicy(
            directory="uploads/news",
            url="/uploads/news",
            allowed_types=IMAGE_TYPES + DOCUMENT_TYPES,
        ),
        "record": UploadPolicy(directory="uploads/records", url="/uploads/records"),
        "location": UploadPolicy(
            directory="uploads/locations", url="/uploads/locations"
        ),
        "location_attachments": UploadPolicy(
            directory="uploads/location-files",
            url="/uploads/location-files",
            allowed_types=IMAGE_TYPES + DOCUMENT_TYPES,
        ),
        "article": UploadPolicy(
            directory="uploads/articles",
            url="/uploads/articles",
            max_files=1,
            max_file_size=5 * MB,
            quality=85,
        ),
    }


class Settings(BaseSettings):
    """Central configuration entrypoint for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "test", "staging", "production"] = (
        "development"
    )
    debug: bool = True

    # Server
    site_name: str = "Woodland Conservation Society"
    base_url: str = "http://127.0.0.1:8000"
    allowed_origins: list[str] = [
        "http://localhost:4321",
        "http://127.0.0.1:4321",
    ]

    # Observability
    log_level: str = "INFO"
    metrics_username: str = "prometheus"
    metrics_password: str | None = None

    # Database
    database_url: str = Field(
        default="sqlite:///./data/woodland.db",
        validation_alias=AliasChoices("DATABASE_URL"),
    )
    db_echo: bool = Field(
        default=False,
        validation_alias=AliasChoices("DB_ECHO", "SQL_ECHO"),
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL"),
    )
    redis_socket_timeout: float = 5.0
    redis_connect_timeout: float = 5.0

    # Sessions
    session_cookie_name: str = "__session"
    session_id_prefix: str = "sess:"
    session_expires: int = 30 * 60
    session_remember_me_expires: int = 120 * 24 * 60 * 60
    session_scan_count: int = 100
    session_disable_touch: bool = False
    session_disable_ttl: bool = False

    # Auth tokens
    password_reset_expires_minutes: int = 60
    verification_expires_hours: int = 72

    # CSRF protection
    csrf_cookie_name: str = "__csrf_token"
    csrf_header_name: str = "X-CSRF-Token"
    csrf_cookie_max_age: int = 24 * 60 * 60
    csrf_protected_paths: list[str] = [
        "/api/auth/",
        "/api/email/",
        "/api/admin/",
        "/api/member/",
    ]
    csrf_verify: bool | None = None
    csrf_fail_open: bool = True

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_fail_open: bool = True
    rate_limit_prefix: str = "ratelimit:"
    rate_limits: dict[str, RateLimitPolicy] = Field(
        default_factory=_default_rate_limits
    )
    rate_limit_routes: dict[str, str] = Field(
        default_factory=_default_rate_limit_routes
    )

    # Uploads
    upload_root: str = "."
    uploads: dict[str, UploadPolicy] = Field(default_factory=_default_uploads)

    # Pagination
    items_per_page: int = 10
    max_items_per_page: int = 100

    # Email configuration
    email_enabled: bool = False
    email_from_name: str = "Woodland Conservation Society"
    email_from_addr: str = "noreply@example.org"
    email_to_addr: str = "office@example.org"
    email_smtp_host: str = "localhost"
    email_smtp_port: int = 587
    email_smtp_username: str | None = None
    email_smtp_password: str | None = None
    email_smtp_ssl: bool = False
    email_smtp_starttls: bool = True

    # Bootstrap admin account
    admin_email: str | None = None
    admin_password: str | None = None
    admin_name: str = "Administrator"

    @field_validator("allowed_origins", "csrf_protected_paths", mode="before")
    @classmethod
    def parse_string_list(cls, value: str | list[str] | None) -> list[str]:
        """Normalize comma separated or JSON list env input into a list."""
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                    if isinstance(parsed, list):
                        return parsed
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in raw.split(",") if item.strip()]
        return []

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def csrf_verification_enabled(self) -> bool:
        """Header/cookie checks run everywhere but development unless forced."""
        if self.csrf_verify is not None:
            return self.csrf_verify
        return not self.is_development

    @property
    def cors_origins(self) -> list[str]:
        """Expose allowed CORS origins for middleware wiring."""
        return self.allowed_origins

    @cached_property
    def resolved_database_url(self) -> str:
        """Return the primary sync SQLAlchemy URL."""
        return self.database_url

    def upload_policy(self, feature: str) -> UploadPolicy:
        return self.uploads[feature]

    def upload_dir(self, feature: str) -> Path:
        """Absolute directory for a feature's stored files."""
        return Path(self.upload_root) / self.uploads[feature].directory


settings = Settings()
