from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from woodland.database import get_db
from woodland.models.location import Location
from woodland.schemas.common import ok
from woodland.schemas.location import LocationOut, LocationType
from woodland.services.downloads import attachment_response, find_attachment
from woodland.services.location_service import location_service

router = APIRouter(prefix="/api/location", tags=["locations"])


def _published_or_404(location: Location | None) -> Location:
    if location is None or location.is_draft:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


@router.get("")
def list_locations(type: LocationType | None = None, db: Session = Depends(get_db)):
    locations = location_service.list_all(
        db, location_type=type.value if type else None
    )
    return ok([LocationOut.model_validate(loc) for loc in locations])


@router.get("/download/{location_id}/{filename}")
def download_attachment(
    location_id: str,
    filename: str,
    request: Request,
    db: Session = Depends(get_db),
):
    location = _published_or_404(location_service.get(db, location_id))
    attachment = find_attachment(location.attachments, filename)
    if attachment is None:
        raise HTTPException(status_code=404, detail="File not found")
    response = attachment_response(
        request.app.state.settings.upload_dir("location_attachments"),
        filename,
        attachment.get("name") or filename,
        "location",
    )
    location_service.count_download(db, location, filename)
    return response


@router.get("/{location_id}")
def get_location(location_id: str, db: Session = Depends(get_db)):
    location = _published_or_404(location_service.get(db, location_id))
    return ok(LocationOut.model_validate(location))
