"""Test fixtures for API, database and Redis."""

from __future__ import annotations

import io
import os
import tempfile
from pathlib import Path

TESTS_ROOT = Path(__file__).parent
TEST_WORK_DIR = Path(tempfile.mkdtemp(prefix="woodland-tests-"))
TEST_DB_PATH = TEST_WORK_DIR / "test_app.db"

# Configure the environment *before* importing woodland modules: settings,
# the engine and the upload mounts are all built at import time.
os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("UPLOAD_ROOT", str(TEST_WORK_DIR))
os.environ.setdefault("EMAIL_ENABLED", "false")

import fakeredis  # noqa: E402
import fakeredis.aioredis  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from woodland.config import settings  # noqa: E402
from woodland.database import Base  # noqa: E402
from woodland.database import get_db as db_dependency  # noqa: E402
from woodland.main import app  # noqa: E402
from woodland.models import User, UserRole  # noqa: E402
from woodland.security.passwords import hash_password  # noqa: E402

TEST_PASSWORD = "Str0ng!Passw0rd"

REDIS_SERVER = fakeredis.FakeServer()
TESTING_SESSION_FACTORY: sessionmaker | None = None


@pytest.fixture(scope="session")
def redis_sync():
    """Synchronous view of the Redis data the app sees, for assertions."""
    return fakeredis.FakeRedis(server=REDIS_SERVER, decode_responses=True)


@pytest.fixture(scope="session")
def client(redis_sync):
    global TESTING_SESSION_FACTORY
    engine = create_engine(
        f"sqlite:///{TEST_DB_PATH}",
        connect_args={"check_same_thread": False},
    )
    TESTING_SESSION_FACTORY = sessionmaker(
        bind=engine, autocommit=False, autoflush=False
    )
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TESTING_SESSION_FACTORY()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[db_dependency] = override_get_db
    app.state.redis = fakeredis.aioredis.FakeRedis(
        server=REDIS_SERVER, decode_responses=True
    )

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(db_dependency, None)
    app.state.redis = None
    engine.dispose()
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture(autouse=True)
def clean_state(request, redis_sync):
    """Every test starts with empty tables, an empty Redis and no cookies."""
    yield
    redis_sync.flushall()
    if "client" not in request.fixturenames or TESTING_SESSION_FACTORY is None:
        return
    client = request.getfixturevalue("client")
    client.cookies.clear()
    client.headers.pop(settings.csrf_header_name, None)
    session = TESTING_SESSION_FACTORY()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    finally:
        session.close()


@pytest.fixture
def db_session(client):
    if TESTING_SESSION_FACTORY is None:
        raise RuntimeError("Session factory not initialized")
    session = TESTING_SESSION_FACTORY()
    try:
        yield session
    finally:
        session.close()


def _with_csrf(client: TestClient) -> str:
    client.get("/api/auth/session")
    token = client.cookies.get(settings.csrf_cookie_name)
    assert token, "CSRF cookie was not issued"
    client.headers[settings.csrf_header_name] = token
    return token


@pytest.fixture
def csrf(client):
    """Fetch a CSRF cookie and echo it in the header on every later request."""
    return lambda: _with_csrf(client)


@pytest.fixture
def make_user(db_session):
    def factory(
        email: str = "editor@example.org",
        role: UserRole = UserRole.EDITOR,
        password: str = TEST_PASSWORD,
        is_active: bool = True,
        name: str = "Test User",
    ) -> User:
        user = User(
            email=email,
            name=name,
            role=role.value,
            hashed_password=hash_password(password),
            is_active=is_active,
            is_verified=True,
            is_superuser=role == UserRole.ADMIN,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture
def login(client):
    def do_login(email: str, password: str = TEST_PASSWORD, **extra):
        _with_csrf(client)
        return client.post(
            "/api/auth/login", json={"email": email, "password": password, **extra}
        )

    return do_login


@pytest.fixture
def editor(make_user):
    return make_user("editor@example.org", UserRole.EDITOR)


@pytest.fixture
def editor_client(client, editor, login):
    assert login("editor@example.org").status_code == 200
    return client


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.org", UserRole.ADMIN, name="Admin")


@pytest.fixture
def admin_client(client, admin, login):
    assert login("admin@example.org").status_code == 200
    return client


def image_bytes(size=(64, 48), color=(34, 139, 34), fmt="PNG", mode="RGB") -> bytes:
    """Encode a solid-colour test image."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image():
    return image_bytes


@pytest.fixture
def png_bytes():
    return image_bytes()
