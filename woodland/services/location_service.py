"""Data access for activity locations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from woodland.models.location import Location
from woodland.schemas.location import LocationPayload
from woodland.services.downloads import find_attachment, record_download

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

_SCALAR_FIELDS = (
    "name",
    "activities",
    "image",
    "address",
    "has_detail",
    "is_draft",
    "activity_details",
    "field_characteristics",
    "access",
    "facilities",
    "schedule",
    "requirements",
    "participation_fee",
    "contact",
    "organizer",
    "started_date",
    "notes",
    "other",
    "meeting_address",
    "meeting_time",
    "meeting_map_url",
    "meeting_additional_info",
)


def _filenames(items: list[dict] | None) -> set[str]:
    return {i["filename"] for i in items or [] if isinstance(i, dict)}


class LocationService:
    def list_all(
        self,
        db: Session,
        *,
        location_type: str | None = None,
        include_drafts: bool = False,
    ) -> list[Location]:
        query = db.query(Location)
        if not include_drafts:
            query = query.filter(Location.is_draft.is_(False))
        if location_type:
            query = query.filter(Location.type == location_type)
        return query.order_by(Location.type, Location.name).all()

    def get(self, db: Session, location_id: str) -> Location | None:
        return db.get(Location, location_id)

    def create(self, db: Session, payload: LocationPayload) -> Location:
        location = Location(id=payload.id, download_stats={})
        self._apply(location, payload)
        db.add(location)
        db.commit()
        db.refresh(location)
        return location

    def update(self, db: Session, location: Location, payload: LocationPayload) -> dict:
        """Apply ``payload``; returns unreferenced ``images`` and ``attachments``."""
        new_images = [i.model_dump() for i in payload.images]
        new_attachments = [a.model_dump() for a in payload.attachments]
        removed = {
            "images": sorted(_filenames(location.images) - _filenames(new_images)),
            "attachments": sorted(
                _filenames(location.attachments) - _filenames(new_attachments)
            ),
        }
        self._apply(location, payload)
        db.commit()
        db.refresh(location)
        return removed

    def delete(self, db: Session, location: Location) -> dict:
        removed = {
            "images": sorted(_filenames(location.images)),
            "attachments": sorted(_filenames(location.attachments)),
        }
        db.delete(location)
        db.commit()
        return removed

    def attachment_name(self, db: Session, filename: str) -> str | None:
        for (attachments,) in db.query(Location.attachments):
            match = find_attachment(attachments, filename)
            if match:
                return match.get("name") or filename
        return None

    def count_download(self, db: Session, location: Location, filename: str) -> None:
        location.download_stats = record_download(location.download_stats, filename)
        db.commit()

    @staticmethod
    def _apply(location: Location, payload: LocationPayload) -> None:
        for field in _SCALAR_FIELDS:
            setattr(location, field, getattr(payload, field))
        location.position = list(payload.position)
        location.type = payload.type.value
        location.images = [i.model_dump() for i in payload.images]
        location.attachments = [a.model_dump() for a in payload.attachments]
        location.upcoming_dates = list(payload.upcoming_dates)


location_service = LocationService()
