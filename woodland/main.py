"""
FastAPI Application - Woodland conservation society CMS backend
"""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from pathlib import Path

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from woodland import __version__
from woodland.config import settings
from woodland.database import Base, SessionLocal, engine, get_db
from woodland.errors import register_exception_handlers
from woodland.middleware import (
    CSRFMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from woodland.models import Article, Location, News, Record, User  # noqa: F401
from woodland.observability.logging import configure_logging
from woodland.observability.metrics import MetricsMiddleware, metrics_response
from woodland.redis_client import create_redis
from woodland.routers.admin_articles import router as admin_articles_router
from woodland.routers.admin_locations import router as admin_locations_router
from woodland.routers.admin_news import router as admin_news_router
from woodland.routers.admin_records import router as admin_records_router
from woodland.routers.admin_users import router as admin_users_router
from woodland.routers.articles import router as articles_router
from woodland.routers.articles import taxonomy_router as article_taxonomy_router
from woodland.routers.auth import router as auth_router
from woodland.routers.forms import router as forms_router
from woodland.routers.locations import router as locations_router
from woodland.routers.news import router as news_router
from woodland.routers.records import router as records_router
from woodland.services.user_service import user_service
from woodland.staticfiles import CachedStaticFiles

logger = logging.getLogger(__name__)

# Image-only features; news and location attachments go through the
# download endpoints so member-only checks and statistics apply.
PUBLIC_UPLOAD_FEATURES = ("record", "location", "article")


# ==========================================
# Database Initialization & Seeding
# ==========================================
def init_database() -> None:
    url = settings.resolved_database_url
    if url.startswith("sqlite:///") and ":memory:" not in url:
        Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)


def create_admin_user_on_startup() -> None:
    """Create the bootstrap admin from ADMIN_EMAIL / ADMIN_PASSWORD."""
    if not (settings.admin_email and settings.admin_password):
        return
    with SessionLocal() as db:
        created = user_service.ensure_admin(
            db, settings.admin_email, settings.admin_password, settings.admin_name
        )
    if created:
        logger.info("Created admin user %s", settings.admin_email)
    else:
        logger.info("Admin user %s exists", settings.admin_email)


# ==========================================
# Application Lifespan
# ==========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application (environment=%s)", settings.environment)
    init_database()
    create_admin_user_on_startup()

    owns_redis = getattr(app.state, "redis", None) is None
    if owns_redis:
        app.state.redis = create_redis(settings)
    yield
    if owns_redis:
        await app.state.redis.aclose()
        app.state.redis = None
    logger.info("Shutting down application")


# ==========================================
# FastAPI Application
# ==========================================
configure_logging(settings.log_level.upper(), json_output=not settings.is_development)

app = FastAPI(
    title="Woodland CMS",
    description="Content management API for a nature conservation society",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
)
app.state.settings = settings
register_exception_handlers(app)

# Added innermost first. Requests flow: correlation id -> security headers
# -> CORS -> CSRF -> rate limit -> metrics -> route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(CSRFMiddleware)
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Accept", "Content-Type", settings.csrf_header_name],
    )
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

# Uploaded images
for feature in PUBLIC_UPLOAD_FEATURES:
    policy = settings.upload_policy(feature)
    upload_dir = settings.upload_dir(feature)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        policy.url,
        CachedStaticFiles(directory=str(upload_dir)),
        name=f"uploads-{feature}",
    )


# ==========================================
# Health & readiness (minimal in prod)
# ==========================================
@app.get("/healthz", tags=["system"], summary="Health check", response_model=dict)
def health_check(db: Session = Depends(get_db)) -> dict:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="unhealthy"
        ) from exc
    if settings.is_production:
        return {"status": "healthy"}
    return {"status": "healthy", "database": "connected", "version": app.version}


@app.get("/readyz", tags=["system"], summary="Readiness check", response_model=dict)
async def readiness_check(request: Request, db: Session = Depends(get_db)) -> dict:
    try:
        db.execute(text("SELECT 1"))
        await request.app.state.redis.ping()
    except (SQLAlchemyError, RedisError, OSError) as exc:
        logger.warning("Readiness check failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="not ready"
        ) from exc
    if settings.is_production:
        return {"status": "ready"}
    return {"status": "ready", "database": "connected", "redis": "connected"}


# ==========================================
# Metrics (Protected with HTTP Basic Auth)
# ==========================================
security = HTTPBasic()


def verify_metrics_auth(
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """Verify HTTP Basic Auth credentials for metrics endpoint."""
    if not settings.metrics_password:
        if settings.is_production:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Not Found"
            )
        return credentials.username

    correct_username = secrets.compare_digest(
        credentials.username, settings.metrics_username
    )
    correct_password = secrets.compare_digest(
        credentials.password, settings.metrics_password
    )
    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


@app.get("/metrics", include_in_schema=False)
def metrics(_: str = Depends(verify_metrics_auth)):
    """
    Prometheus metrics endpoint (protected with HTTP Basic Auth).

    Set METRICS_USERNAME and METRICS_PASSWORD environment variables.
    """
    return metrics_response()


# ==========================================
# Routers
# ==========================================
app.include_router(auth_router)
app.include_router(news_router)
app.include_router(records_router)
app.include_router(locations_router)
app.include_router(articles_router)
app.include_router(article_taxonomy_router)
app.include_router(forms_router)
app.include_router(admin_news_router)
app.include_router(admin_records_router)
app.include_router(admin_locations_router)
app.include_router(admin_articles_router)
app.include_router(admin_users_router)
