from __future__ import annotations

import logging
import smtplib
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from woodland.auth import destroy_user_sessions, require_admin
from woodland.database import get_db
from woodland.models.user import User
from woodland.schemas.auth import SessionUser
from woodland.schemas.common import ok
from woodland.schemas.user import UserCreate, UserOut, UserUpdate
from woodland.services.mailer import Mailer, get_mailer
from woodland.services.user_service import EmailAlreadyRegistered, user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/user", tags=["admin"])


def _get_or_404(db: Session, user_id: uuid.UUID) -> User:
    user = user_service.get(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("")
def list_users(
    db: Session = Depends(get_db), admin: SessionUser = Depends(require_admin)
):
    return ok([UserOut.model_validate(u) for u in user_service.list_users(db)])


@router.post("", status_code=201)
async def create_user(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    admin: SessionUser = Depends(require_admin),
):
    """Create an account and email the invitation link when one is needed."""
    try:
        user, token = user_service.create_user(
            db, payload, request.app.state.settings
        )
    except EmailAlreadyRegistered as exc:
        raise HTTPException(
            status_code=409, detail="That email address is already registered"
        ) from exc

    invitation_sent = False
    if token:
        try:
            invitation_sent = await run_in_threadpool(
                mailer.send_invitation, user.email, user.name, token
            )
        except (smtplib.SMTPException, OSError):
            logger.exception("Could not send invitation to %s", user.email)
    logger.info("User %s created by %s", user.email, admin.email)
    return ok(
        {"user": UserOut.model_validate(user), "invitationSent": invitation_sent},
        "User created",
    )


@router.get("/{user_id}")
def get_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: SessionUser = Depends(require_admin),
):
    return ok(UserOut.model_validate(_get_or_404(db, user_id)))


@router.patch("/{user_id}")
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: SessionUser = Depends(require_admin),
):
    """Rename, change the role of, or enable/disable an account.

    Disabling an account or changing its role logs it out everywhere, since
    sessions carry a snapshot of the role.
    """
    user = _get_or_404(db, user_id)
    if user_id == admin.user_uuid and (
        payload.is_active is False or payload.role not in (None, user.role)
    ):
        raise HTTPException(
            status_code=400, detail="You cannot disable or demote your own account"
        )

    role_changed = payload.role is not None and payload.role.value != user.role
    disabled = payload.is_active is False and user.is_active
    user_service.update_user(db, user, payload)

    if role_changed or disabled:
        removed = await destroy_user_sessions(request, user.id)
        logger.info("Ended %d session(s) of %s", removed, user.email)
    return ok(UserOut.model_validate(user), "User updated")
