from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from woodland.auth import require_staff
from woodland.database import get_db
from woodland.routers.common import (
    PageParams,
    parse_json_field,
    real_files,
    store_uploads,
    uploader,
)
from woodland.schemas.auth import SessionUser
from woodland.schemas.common import Pagination, ok
from woodland.schemas.news import NewsOut, NewsPayload
from woodland.services.downloads import attachment_response
from woodland.services.news_service import news_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/news", tags=["admin"])


def _get_or_404(db: Session, news_id: int):
    news = news_service.get(db, news_id)
    if news is None:
        raise HTTPException(status_code=404, detail="News not found")
    return news


@router.get("")
def list_news(
    search: str | None = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    items, total = news_service.list_admin(
        db, page=paging.page, per_page=paging.per_page, search=search
    )
    return ok(
        {
            "news": [NewsOut.model_validate(n) for n in items],
            "pagination": Pagination.build(paging.page, paging.per_page, total),
        }
    )


@router.post("", status_code=201)
async def create_news(
    request: Request,
    data: str = Form(...),
    files: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    """Create a news item with optional attachments.

    The form carries the item as JSON in ``data`` and the new attachments as
    repeated ``files`` parts. Every file is validated before any is stored.

    Raises:
        HTTPException: 400 for a bad file, 403 when attachments are disabled
    """
    payload = NewsPayload.model_validate(parse_json_field(data))
    # A new item owns only the files uploaded with it.
    attachments = await store_uploads(uploader(request, "news"), real_files(files))
    news = news_service.create(db, payload, attachments, user.user_uuid)
    logger.info("News %s created by %s", news.id, user.email)
    return ok(NewsOut.model_validate(news), "News created")


@router.get("/download/{filename}")
def download_attachment(
    filename: str,
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    display_name = news_service.attachment_name(db, filename) or filename
    directory = request.app.state.settings.upload_dir("news")
    return attachment_response(directory, filename, display_name, "news")


@router.get("/{news_id}")
def get_news(
    news_id: int,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    return ok(NewsOut.model_validate(_get_or_404(db, news_id)))


@router.put("/{news_id}")
async def update_news(
    news_id: int,
    request: Request,
    data: str = Form(...),
    files: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    """Replace a news item.

    ``data.attachments`` lists the attachments to keep; entries this item does
    not own are ignored. Stored files missing from it are deleted from disk
    once the row is saved.
    """
    news = _get_or_404(db, news_id)
    payload = NewsPayload.model_validate(parse_json_field(data))
    owned = {a["filename"]: a for a in news.attachments or []}
    kept = [owned.pop(a.filename) for a in payload.attachments if a.filename in owned]

    files_uploader = uploader(request, "news")
    stored = await store_uploads(files_uploader, real_files(files), len(kept))
    attachments = kept + stored
    removed = news_service.update(db, news, payload, attachments)
    deleted = await files_uploader.delete_files(removed)
    if deleted:
        logger.info("Removed %d unreferenced file(s) from news %s", deleted, news.id)
    return ok(NewsOut.model_validate(news), "News updated")


@router.delete("/{news_id}")
async def delete_news(
    news_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    news = _get_or_404(db, news_id)
    filenames = news_service.delete(db, news)
    await uploader(request, "news").delete_files(filenames)
    logger.info("News %s deleted by %s", news_id, user.email)
    return ok(message="News deleted")
