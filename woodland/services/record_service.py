"""Data access for activity records."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING

from woodland.models.record import Record
from woodland.schemas.record import RecordPayload
from woodland.services.pagination import paginate

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class RecordService:
    def list_public(
        self, db: Session, *, page: int, per_page: int, category: str | None = None
    ) -> tuple[list[Record], int]:
        query = (
            db.query(Record)
            .filter(Record.is_draft.is_(False))
            .order_by(Record.event_date.desc(), Record.id.desc())
        )
        if category:
            matching = [r for r in query.all() if category in (r.categories or [])]
            start = (page - 1) * per_page
            return matching[start : start + per_page], len(matching)
        return paginate(query, page, per_page)

    def list_admin(
        self,
        db: Session,
        *,
        page: int,
        per_page: int,
        creator_id: uuid.UUID | None = None,
    ) -> tuple[list[Record], int]:
        query = db.query(Record)
        if creator_id is not None:
            query = query.filter(Record.creator_id == creator_id)
        query = query.order_by(Record.event_date.desc(), Record.id.desc())
        return paginate(query, page, per_page)

    def get(self, db: Session, record_id: int) -> Record | None:
        return db.get(Record, record_id)

    def create(
        self,
        db: Session,
        payload: RecordPayload,
        event_date: dt.date,
        images: list[str],
        creator_id: uuid.UUID | None,
    ) -> Record:
        record = Record(event_date=event_date, creator_id=creator_id)
        self._apply(record, payload, images)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    def update(
        self,
        db: Session,
        record: Record,
        payload: RecordPayload,
        event_date: dt.date | None,
        images: list[str],
    ) -> list[str]:
        """Apply ``payload`` and return image filenames no longer referenced."""
        removed = set(record.images or []) - set(images)
        self._apply(record, payload, images)
        if event_date is not None:
            record.event_date = event_date
        db.commit()
        db.refresh(record)
        return sorted(removed)

    def delete(self, db: Session, record: Record) -> list[str]:
        images = list(record.images or [])
        db.delete(record)
        db.commit()
        return images

    @staticmethod
    def _apply(record: Record, payload: RecordPayload, images: list[str]) -> None:
        record.location = payload.location
        record.datetime = payload.datetime
        record.weather = payload.weather
        record.participants = payload.participants
        record.reporter = payload.reporter
        record.content = payload.content
        record.near_miss = payload.near_miss or None
        record.equipment = payload.equipment or None
        record.remarks = payload.remarks or None
        record.categories = payload.categories
        record.images = images
        record.is_draft = payload.is_draft


record_service = RecordService()
