from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from woodland.auth import require_staff
from woodland.database import get_db
from woodland.models.location import Location
from woodland.routers.common import (
    parse_json_field,
    real_files,
    resize_uploads,
    store_uploads,
    tally_message,
    uploader,
)
from woodland.schemas.auth import SessionUser
from woodland.schemas.common import Attachment, CaptionedImage, ok
from woodland.schemas.location import LocationOut, LocationPayload
from woodland.services.downloads import attachment_response
from woodland.services.images import ImageProcessingResult
from woodland.services.location_service import location_service
from woodland.services.storage import FileUploader

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/location", tags=["admin"])


def _get_or_404(db: Session, location_id: str) -> Location:
    location = location_service.get(db, location_id)
    if location is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


def _parse_captions(raw: str | None) -> dict[str, str]:
    if not raw:
        return {}
    try:
        captions = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=400, detail="'imageCaptions' must be valid JSON"
        ) from exc
    if not isinstance(captions, dict):
        raise HTTPException(
            status_code=400, detail="'imageCaptions' must map file names to captions"
        )
    return {str(k): str(v)[:30] for k, v in captions.items() if v}


def _new_images(
    images_uploader: FileUploader,
    result: ImageProcessingResult,
    captions: dict[str, str],
) -> list[CaptionedImage]:
    images = []
    for filename in result.succeeded:
        original = result.original_names.get(filename, filename)
        path = images_uploader.storage.path_for(filename)
        images.append(
            CaptionedImage(
                name=original,
                filename=filename,
                size=path.stat().st_size if path.is_file() else 0,
                caption=captions.get(original),
            )
        )
    return images


def _response(location: Location, result: ImageProcessingResult, base: str) -> dict:
    return ok(
        {
            "location": LocationOut.model_validate(location),
            "failedImages": [vars(f) for f in result.failed],
        },
        tally_message(base, result),
    )


@router.get("")
def list_locations(
    type: str | None = None,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    locations = location_service.list_all(
        db, location_type=type, include_drafts=True
    )
    return ok([LocationOut.model_validate(loc) for loc in locations])


@router.post("", status_code=201)
async def create_location(
    request: Request,
    data: str = Form(...),
    image_captions: str | None = Form(None, alias="imageCaptions"),
    images: list[UploadFile] | None = File(None),
    attachments: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    """Create a location with photos and downloadable attachments.

    Photos are resized and stored one by one. Attachments are validated as a
    batch first; a bad attachment rejects the request before anything is
    written.
    """
    raw = parse_json_field(data)
    raw["images"] = []
    raw["attachments"] = []
    payload = LocationPayload.model_validate(raw)
    if location_service.get(db, payload.id) is not None:
        raise HTTPException(
            status_code=409, detail=f"Location '{payload.id}' already exists"
        )

    stored_attachments = await store_uploads(
        uploader(request, "location_attachments"), real_files(attachments)
    )
    images_uploader = uploader(request, "location")
    result = await resize_uploads(
        images_uploader, real_files(images), feature="location"
    )
    payload.images = _new_images(
        images_uploader, result, _parse_captions(image_captions)
    )
    payload.attachments = [Attachment(**a) for a in stored_attachments]

    location = location_service.create(db, payload)
    logger.info("Location %s created by %s", location.id, user.email)
    return _response(location, result, "Location created")


@router.get("/download/{filename}")
def download_attachment(
    filename: str,
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    display_name = location_service.attachment_name(db, filename) or filename
    directory = request.app.state.settings.upload_dir("location_attachments")
    return attachment_response(directory, filename, display_name, "location")


@router.get("/{location_id}")
def get_location(
    location_id: str,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    return ok(LocationOut.model_validate(_get_or_404(db, location_id)))


@router.put("/{location_id}")
async def update_location(
    location_id: str,
    request: Request,
    data: str = Form(...),
    image_captions: str | None = Form(None, alias="imageCaptions"),
    images: list[UploadFile] | None = File(None),
    attachments: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    """Replace a location.

    ``data.images`` and ``data.attachments`` list the stored files to keep,
    with their (possibly edited) captions and display names. Files dropped
    from those lists are deleted once the row is saved.
    """
    location = _get_or_404(db, location_id)
    payload = LocationPayload.model_validate(parse_json_field(data))
    if payload.id != location.id:
        raise HTTPException(status_code=400, detail="Location id cannot be changed")

    known_images = {i["filename"] for i in location.images or []}
    known_files = {a["filename"] for a in location.attachments or []}
    kept_images = [i for i in payload.images if i.filename in known_images]
    kept_files = [a for a in payload.attachments if a.filename in known_files]

    files_uploader = uploader(request, "location_attachments")
    stored_attachments = await store_uploads(
        files_uploader, real_files(attachments), len(kept_files)
    )
    images_uploader = uploader(request, "location")
    result = await resize_uploads(
        images_uploader, real_files(images), len(kept_images), feature="location"
    )
    payload.images = kept_images + _new_images(
        images_uploader, result, _parse_captions(image_captions)
    )
    payload.attachments = kept_files + [Attachment(**a) for a in stored_attachments]

    removed = location_service.update(db, location, payload)
    await images_uploader.delete_files(removed["images"])
    await files_uploader.delete_files(removed["attachments"])
    return _response(location, result, "Location updated")


@router.delete("/{location_id}")
async def delete_location(
    location_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    location = _get_or_404(db, location_id)
    removed = location_service.delete(db, location)
    await uploader(request, "location").delete_files(removed["images"])
    await uploader(request, "location_attachments").delete_files(
        removed["attachments"]
    )
    logger.info("Location %s deleted by %s", location_id, user.email)
    return ok(message="Location deleted")
