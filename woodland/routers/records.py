from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from woodland.database import get_db
from woodland.routers.common import PageParams
from woodland.schemas.common import Pagination, ok
from woodland.schemas.record import RecordOut
from woodland.services.record_service import record_service

router = APIRouter(prefix="/api/record", tags=["records"])


@router.get("")
def list_records(
    category: str | None = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    items, total = record_service.list_public(
        db, page=paging.page, per_page=paging.per_page, category=category
    )
    return ok(
        {
            "records": [RecordOut.model_validate(r) for r in items],
            "pagination": Pagination.build(paging.page, paging.per_page, total),
        }
    )


@router.get("/{record_id}")
def get_record(record_id: int, db: Session = Depends(get_db)):
    record = record_service.get(db, record_id)
    if record is None or record.is_draft:
        raise HTTPException(status_code=404, detail="Record not found")
    return ok(RecordOut.model_validate(record))
