from __future__ import annotations

import logging
import smtplib

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from woodland.auth import (
    destroy_user_sessions,
    end_session,
    get_optional_user,
    session_user_data,
    start_session,
)
from woodland.database import get_db
from woodland.observability.metrics import LOGIN_COUNTER
from woodland.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SessionUser,
    VerifyRequest,
)
from woodland.schemas.common import ok
from woodland.services.mailer import Mailer, get_mailer
from woodland.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_TOKEN_MESSAGE = "This link is invalid or has expired"


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Check credentials and open a session.

    Returns 401 for an unknown email or a wrong password and 403 for a
    disabled account. No session is created in either case.
    """
    user = user_service.authenticate(db, str(body.email), body.password)
    if user is None:
        logger.info("Failed login for %s", body.email)
        LOGIN_COUNTER.labels("failed").inc()
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        logger.info("Login refused for disabled account %s", user.email)
        LOGIN_COUNTER.labels("disabled").inc()
        raise HTTPException(status_code=403, detail="This account has been disabled")

    await start_session(request, response, user, remember_me=body.remember_me)
    user_service.record_login(db, user)
    logger.info("User %s logged in", user.email)
    LOGIN_COUNTER.labels("success").inc()
    return ok(
        {"user": SessionUser.model_validate(session_user_data(user))},
        "Logged in",
    )


@router.post("/logout")
async def logout(request: Request, response: Response):
    await end_session(request, response)
    return ok(message="Logged out")


@router.get("/session")
async def current_session(
    request: Request, user: SessionUser | None = Depends(get_optional_user)
):
    return ok(
        {
            "user": user,
            "csrfToken": getattr(request.state, "csrf_token", None),
        }
    )


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Email a reset link. The response never reveals whether the email exists."""
    user = user_service.get_by_email(db, str(body.email))
    if user is not None and user.is_active:
        token = user_service.issue_reset_token(db, user, request.app.state.settings)
        try:
            await run_in_threadpool(
                mailer.send_password_reset, user.email, user.name, token
            )
        except (smtplib.SMTPException, OSError):
            logger.exception("Could not send password reset email to %s", user.email)
    return ok(message="If the address is registered, a reset link has been sent")


@router.get("/verify-reset-token")
async def verify_reset_token(
    token: str | None = Query(None), db: Session = Depends(get_db)
):
    if not token:
        return JSONResponse(
            {"success": False, "data": {"valid": False}, "message": "Missing token"},
            status_code=400,
        )
    if user_service.get_by_reset_token(db, token) is None:
        return JSONResponse(
            {
                "success": False,
                "data": {"valid": False},
                "message": INVALID_TOKEN_MESSAGE,
            },
            status_code=400,
        )
    return ok({"valid": True}, "Token is valid")


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest, request: Request, db: Session = Depends(get_db)
):
    user = user_service.get_by_reset_token(db, body.token)
    if user is None:
        raise HTTPException(status_code=400, detail=INVALID_TOKEN_MESSAGE)
    user_service.reset_password(db, user, body.new_password)
    # A password change ends every session of the user.
    await destroy_user_sessions(request, user.id)
    logger.info("Password reset for %s", user.email)
    return ok(message="Password changed. Please log in with your new password.")


@router.post("/verify")
async def verify_account(body: VerifyRequest, db: Session = Depends(get_db)):
    """Accept an invitation: set the first password and enable the account."""
    user = user_service.get_by_verification_token(db, body.token)
    if user is None:
        raise HTTPException(status_code=400, detail=INVALID_TOKEN_MESSAGE)
    user_service.activate(db, user, body.password)
    logger.info("Account %s verified", user.email)
    return ok(message="Your account is active. Please log in.")
