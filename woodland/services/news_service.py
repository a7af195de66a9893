"""Data access for news items."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import or_

from woodland.models.news import News
from woodland.schemas.news import NewsPayload, NewsStatus
from woodland.services.downloads import find_attachment, record_download
from woodland.services.pagination import paginate

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _filenames(attachments: list[dict] | None) -> set[str]:
    return {a["filename"] for a in attachments or [] if isinstance(a, dict)}


class NewsService:
    """Service for news operations."""

    def list_public(
        self,
        db: Session,
        *,
        page: int,
        per_page: int,
        category: str | None = None,
        priority: str | None = None,
        include_member_only: bool = True,
    ) -> tuple[list[News], int]:
        query = db.query(News).filter(News.status == NewsStatus.PUBLISHED.value)
        if not include_member_only:
            query = query.filter(News.is_member_only.is_(False))
        if priority:
            query = query.filter(News.priority == priority)
        items = query.order_by(News.date.desc(), News.id.desc())
        if category:
            # Categories live in a JSON list; filter in Python to stay portable.
            matching = [n for n in items.all() if category in (n.categories or [])]
            start = (page - 1) * per_page
            return matching[start : start + per_page], len(matching)
        return paginate(items, page, per_page)

    def list_admin(
        self, db: Session, *, page: int, per_page: int, search: str | None = None
    ) -> tuple[list[News], int]:
        query = db.query(News)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(News.title.ilike(pattern), News.content.ilike(pattern))
            )
        query = query.order_by(News.date.desc(), News.id.desc())
        return paginate(query, page, per_page)

    def get(self, db: Session, news_id: int) -> News | None:
        return db.get(News, news_id)

    def create(
        self,
        db: Session,
        payload: NewsPayload,
        attachments: list[dict],
        creator_id: uuid.UUID | None,
    ) -> News:
        news = News(
            title=payload.title,
            content=payload.content,
            date=payload.date_value,
            categories=payload.categories,
            priority=payload.priority,
            is_member_only=payload.is_member_only,
            author=payload.author,
            attachments=attachments,
            download_stats={},
            status=payload.status.value,
            creator_id=creator_id,
        )
        db.add(news)
        db.commit()
        db.refresh(news)
        return news

    def update(
        self, db: Session, news: News, payload: NewsPayload, attachments: list[dict]
    ) -> list[str]:
        """Apply ``payload`` and return filenames no longer referenced."""
        removed = _filenames(news.attachments) - _filenames(attachments)
        news.title = payload.title
        news.content = payload.content
        news.date = payload.date_value
        news.categories = payload.categories
        news.priority = payload.priority
        news.is_member_only = payload.is_member_only
        news.author = payload.author
        news.attachments = attachments
        news.status = payload.status.value
        if removed:
            news.download_stats = {
                k: v for k, v in (news.download_stats or {}).items() if k not in removed
            }
        db.commit()
        db.refresh(news)
        return sorted(removed)

    def delete(self, db: Session, news: News) -> list[str]:
        filenames = sorted(_filenames(news.attachments))
        db.delete(news)
        db.commit()
        return filenames

    def attachment_name(self, db: Session, filename: str) -> str | None:
        """Display name of a stored attachment, searching every news item."""
        for (attachments,) in db.query(News.attachments):
            match = find_attachment(attachments, filename)
            if match:
                return match.get("name") or filename
        return None

    def count_download(self, db: Session, news: News, filename: str) -> None:
        news.download_stats = record_download(news.download_stats, filename)
        db.commit()


news_service = NewsService()
