from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from woodland.auth import get_optional_user
from woodland.database import get_db
from woodland.models.news import News
from woodland.routers.common import PageParams
from woodland.schemas.auth import SessionUser
from woodland.schemas.common import Pagination, ok
from woodland.schemas.news import NewsOut, NewsStatus
from woodland.services.downloads import attachment_response, find_attachment
from woodland.services.news_service import news_service

router = APIRouter(prefix="/api/news", tags=["news"])


def _visible_or_error(news: News | None, user: SessionUser | None) -> News:
    if news is None or news.status != NewsStatus.PUBLISHED.value:
        raise HTTPException(status_code=404, detail="News not found")
    if news.is_member_only and user is None:
        raise HTTPException(status_code=401, detail="Members only")
    return news


@router.get("")
def list_news(
    category: str | None = None,
    priority: str | None = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    user: SessionUser | None = Depends(get_optional_user),
):
    """Published news, newest first. Member-only items need a session."""
    items, total = news_service.list_public(
        db,
        page=paging.page,
        per_page=paging.per_page,
        category=category,
        priority=priority,
        include_member_only=user is not None,
    )
    return ok(
        {
            "news": [NewsOut.model_validate(n) for n in items],
            "pagination": Pagination.build(paging.page, paging.per_page, total),
        }
    )


@router.get("/download/{news_id}/{filename}")
def download_attachment(
    news_id: int,
    filename: str,
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser | None = Depends(get_optional_user),
):
    news = _visible_or_error(news_service.get(db, news_id), user)
    attachment = find_attachment(news.attachments, filename)
    if attachment is None:
        raise HTTPException(status_code=404, detail="File not found")
    response = attachment_response(
        request.app.state.settings.upload_dir("news"),
        filename,
        attachment.get("name") or filename,
        "news",
    )
    news_service.count_download(db, news, filename)
    return response


@router.get("/{news_id}")
def get_news(
    news_id: int,
    db: Session = Depends(get_db),
    user: SessionUser | None = Depends(get_optional_user),
):
    news = _visible_or_error(news_service.get(db, news_id), user)
    return ok(NewsOut.model_validate(news))
