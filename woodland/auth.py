"""Cookie sessions backed by the Redis session store."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from fastapi import Depends, HTTPException, Request, Response, status
from redis.exceptions import RedisError

from woodland.models.user import User, UserRole
from woodland.schemas.auth import SessionUser
from woodland.security.csrf import is_secure_request
from woodland.security.session_store import RedisSessionStore

logger = logging.getLogger(__name__)

STAFF_ROLES = (UserRole.ADMIN, UserRole.MODERATOR, UserRole.EDITOR)


def get_session_store(request: Request) -> RedisSessionStore:
    config = request.app.state.settings
    return RedisSessionStore(
        request.app.state.redis,
        prefix=config.session_id_prefix,
        ttl=config.session_expires,
        scan_count=config.session_scan_count,
        disable_ttl=config.session_disable_ttl,
        disable_touch=config.session_disable_touch,
    )


def session_user_data(user: User) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }


def set_session_cookie(
    request: Request, response: Response, session_id: str, max_age: int
) -> None:
    config = request.app.state.settings
    response.set_cookie(
        config.session_cookie_name,
        session_id,
        max_age=max_age,
        httponly=True,
        secure=is_secure_request(request),
        samesite="lax",
        path="/",
    )


def clear_session_cookie(request: Request, response: Response) -> None:
    config = request.app.state.settings
    response.delete_cookie(
        config.session_cookie_name,
        path="/",
        httponly=True,
        secure=is_secure_request(request),
        samesite="lax",
    )


async def start_session(
    request: Request, response: Response, user: User, remember_me: bool = False
) -> str:
    """Persist a new session for ``user`` and attach its cookie to ``response``."""
    config = request.app.state.settings
    max_age = (
        config.session_remember_me_expires if remember_me else config.session_expires
    )
    session_id = secrets.token_urlsafe(32)
    session = {
        "cookie": {
            "expires": (datetime.now(UTC) + timedelta(seconds=max_age)).isoformat(),
            "originalMaxAge": max_age * 1000,
        },
        "rememberMe": remember_me,
        "user": session_user_data(user),
        "createdAt": datetime.now(UTC).isoformat(),
    }
    await get_session_store(request).set(session_id, session)
    set_session_cookie(request, response, session_id, max_age)
    return session_id


async def end_session(request: Request, response: Response) -> None:
    config = request.app.state.settings
    session_id = request.cookies.get(config.session_cookie_name)
    if session_id:
        try:
            await get_session_store(request).destroy(session_id)
        except (RedisError, OSError) as exc:
            logger.warning("Could not destroy session on logout: %s", exc)
    clear_session_cookie(request, response)


async def destroy_user_sessions(request: Request, user_id) -> int:
    try:
        return await get_session_store(request).destroy_by_user_id(user_id)
    except (RedisError, OSError) as exc:
        logger.warning("Could not destroy sessions for user %s: %s", user_id, exc)
        return 0


async def get_optional_user(
    request: Request, response: Response
) -> SessionUser | None:
    """Resolve the session cookie to a user, sliding its expiry forward.

    A session store outage is treated as an anonymous request.
    """
    cached = getattr(request.state, "session_user", None)
    if cached is not None:
        return cached

    config = request.app.state.settings
    session_id = request.cookies.get(config.session_cookie_name)
    if not session_id:
        return None

    store = get_session_store(request)
    try:
        session = await store.get(session_id)
    except (RedisError, OSError) as exc:
        logger.warning("Session lookup failed: %s", exc)
        return None
    if not session or not isinstance(session.get("user"), dict):
        return None

    if not session.get("rememberMe"):
        max_age = config.session_expires
        session.setdefault("cookie", {})["expires"] = (
            datetime.now(UTC) + timedelta(seconds=max_age)
        ).isoformat()
        try:
            await store.touch(session_id, session)
        except (RedisError, OSError) as exc:
            logger.warning("Session touch failed: %s", exc)
        else:
            if not config.session_disable_touch:
                set_session_cookie(request, response, session_id, max_age)

    user = SessionUser.model_validate(session["user"])
    request.state.session_user = user
    request.state.session_id = session_id
    return user


async def get_current_user(
    user: SessionUser | None = Depends(get_optional_user),
) -> SessionUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required"
        )
    return user


def require_roles(*roles: UserRole) -> Callable:
    allowed = {role.value for role in roles}

    async def dependency(
        user: SessionUser = Depends(get_current_user),
    ) -> SessionUser:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied"
            )
        return user

    return dependency


require_staff = require_roles(*STAFF_ROLES)
require_admin = require_roles(UserRole.ADMIN)


def is_editor(user: SessionUser) -> bool:
    return user.role == UserRole.EDITOR.value
