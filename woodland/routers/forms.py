"""Public contact and membership application forms, delivered by email."""

from __future__ import annotations

import logging
import smtplib

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from woodland.schemas.common import ok
from woodland.schemas.contact import ContactForm, JoinForm
from woodland.security.csrf import validate_origin
from woodland.security.rate_limit import get_client_ip
from woodland.services.mailer import Mailer, get_mailer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["forms"])

SEND_FAILED_MESSAGE = "Your message could not be sent. Please try again later."


async def _deliver(send, form) -> None:
    try:
        await run_in_threadpool(send, form)
    except (smtplib.SMTPException, OSError) as exc:
        logger.exception("Could not deliver %s", type(form).__name__)
        raise HTTPException(status_code=502, detail=SEND_FAILED_MESSAGE) from exc


@router.post("/api/contact")
async def submit_contact(
    form: ContactForm, request: Request, mailer: Mailer = Depends(get_mailer)
):
    """Forward a contact form to the office mailbox.

    This path is outside the CSRF token allowlist, so cross-site posts are
    refused by checking Origin/Referer instead.
    """
    if not validate_origin(request, request.app.state.settings.allowed_origins):
        raise HTTPException(status_code=403, detail="Invalid request origin")
    await _deliver(mailer.send_contact, form)
    logger.info("Contact form submitted from %s", get_client_ip(request))
    return ok(message="Thank you. Your message has been sent.")


@router.post("/api/email/join")
async def submit_join(
    form: JoinForm, request: Request, mailer: Mailer = Depends(get_mailer)
):
    await _deliver(mailer.send_join_application, form)
    logger.info(
        "Membership application (%s) from %s",
        form.member_type.value,
        get_client_ip(request),
    )
    return ok(message="Thank you. Your application has been received.")
