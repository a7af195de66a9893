from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from woodland.auth import is_editor, require_staff
from woodland.database import get_db
from woodland.models.record import Record
from woodland.routers.common import (
    PageParams,
    parse_json_field,
    real_files,
    resize_uploads,
    tally_message,
    uploader,
)
from woodland.schemas.auth import SessionUser
from woodland.schemas.common import Pagination, ok
from woodland.schemas.record import RecordOut, RecordPayload, parse_date_for_filename
from woodland.services.record_service import record_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/record", tags=["admin"])


def _get_owned_or_404(db: Session, record_id: int, user: SessionUser) -> Record:
    record = record_service.get(db, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    if is_editor(user) and record.creator_id != user.user_uuid:
        raise HTTPException(
            status_code=403, detail="Editors can only change their own records"
        )
    return record


@router.get("")
def list_records(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    items, total = record_service.list_admin(
        db,
        page=paging.page,
        per_page=paging.per_page,
        creator_id=user.user_uuid if is_editor(user) else None,
    )
    return ok(
        {
            "records": [RecordOut.model_validate(r) for r in items],
            "pagination": Pagination.build(paging.page, paging.per_page, total),
        }
    )


@router.post("", status_code=201)
async def create_record(
    request: Request,
    data: str = Form(...),
    date_for_filename: str | None = Form(None, alias="dateForFilename"),
    images: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    """Create an activity record from multipart form data.

    Photos are resized one by one; a photo that fails is reported in
    ``failedImages`` while the record is still saved with the rest.

    Args:
        request: FastAPI request object
        data: Record fields as a JSON document
        date_for_filename: Activity date as ``YYYYMMDD``; defaults to today
        images: Photos to attach
        db: Database session
        user: Currently authenticated staff user

    Returns:
        The stored record and a message with the upload tally
    """
    raw = parse_json_field(data)
    raw["images"] = []
    payload = RecordPayload.model_validate(raw)
    result = await resize_uploads(
        uploader(request, "record"), real_files(images), feature="record"
    )
    record = record_service.create(
        db,
        payload,
        parse_date_for_filename(date_for_filename),
        result.succeeded,
        user.user_uuid,
    )
    logger.info("Record %s created by %s", record.id, user.email)
    return ok(
        {
            "record": RecordOut.model_validate(record),
            "failedImages": [vars(f) for f in result.failed],
        },
        tally_message("Record created", result),
    )


@router.get("/{record_id}")
def get_record(
    record_id: int,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    return ok(RecordOut.model_validate(_get_owned_or_404(db, record_id, user)))


@router.put("/{record_id}")
async def update_record(
    record_id: int,
    request: Request,
    data: str = Form(...),
    date_for_filename: str | None = Form(None, alias="dateForFilename"),
    images: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    """Replace a record. ``data.images`` names the stored photos to keep."""
    record = _get_owned_or_404(db, record_id, user)
    payload = RecordPayload.model_validate(parse_json_field(data))
    known = set(record.images or [])
    kept = [name for name in payload.images if name in known]

    images_uploader = uploader(request, "record")
    result = await resize_uploads(
        images_uploader, real_files(images), len(kept), feature="record"
    )
    event_date = (
        parse_date_for_filename(date_for_filename) if date_for_filename else None
    )
    removed = record_service.update(
        db, record, payload, event_date, kept + result.succeeded
    )
    await images_uploader.delete_files(removed)
    return ok(
        {
            "record": RecordOut.model_validate(record),
            "failedImages": [vars(f) for f in result.failed],
        },
        tally_message("Record updated", result),
    )


@router.delete("/{record_id}")
async def delete_record(
    record_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    record = _get_owned_or_404(db, record_id, user)
    images = record_service.delete(db, record)
    await uploader(request, "record").delete_files(images)
    logger.info("Record %s deleted by %s", record_id, user.email)
    return ok(message="Record deleted")
