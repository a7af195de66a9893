"""Article persistence and slug handling."""

from __future__ import annotations

import uuid
from collections import Counter
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from slugify import slugify
from sqlalchemy import or_

from woodland.models.article import Article
from woodland.schemas.article import ArticlePayload, ArticleStatus
from woodland.services.pagination import paginate

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class ArticleService:
    """Service for article operations."""

    @staticmethod
    def generate_slug(title: str) -> str:
        """Generate URL-safe slug from title.

        Args:
            title: Article title

        Returns:
            URL-safe slug, or a random one when the title has no latin characters
        """
        slug = slugify(title, max_length=200)
        return slug or f"article-{uuid.uuid4().hex[:8]}"

    def unique_slug(
        self, db: Session, base: str, exclude_id: int | None = None
    ) -> str:
        """Append ``-2``, ``-3`` ... until the slug is unused.

        Args:
            db: Database session
            base: Preferred slug
            exclude_id: Article allowed to keep the slug (on update)

        Returns:
            A slug no other article uses
        """
        candidate = base
        suffix = 2
        while True:
            query = db.query(Article.id).filter(Article.slug == candidate)
            if exclude_id is not None:
                query = query.filter(Article.id != exclude_id)
            if query.first() is None:
                return candidate
            candidate = f"{base}-{suffix}"
            suffix += 1

    def list_public(
        self,
        db: Session,
        *,
        page: int,
        per_page: int,
        category: str | None = None,
        tag: str | None = None,
        search: str | None = None,
        include_member_only: bool = True,
    ) -> tuple[list[Article], int]:
        query = db.query(Article).filter(
            Article.status == ArticleStatus.PUBLISHED.value
        )
        if not include_member_only:
            query = query.filter(Article.is_member_only.is_(False))
        if category:
            query = query.filter(Article.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Article.title.ilike(pattern), Article.content.ilike(pattern))
            )
        query = query.order_by(Article.published_at.desc(), Article.id.desc())
        if tag:
            matching = [a for a in query.all() if tag in (a.tags or [])]
            start = (page - 1) * per_page
            return matching[start : start + per_page], len(matching)
        return paginate(query, page, per_page)

    def list_admin(
        self,
        db: Session,
        *,
        page: int,
        per_page: int,
        status: str | None = None,
        author_id: uuid.UUID | None = None,
    ) -> tuple[list[Article], int]:
        query = db.query(Article)
        if status:
            query = query.filter(Article.status == status)
        if author_id is not None:
            query = query.filter(Article.author_id == author_id)
        query = query.order_by(Article.updated_at.desc(), Article.id.desc())
        return paginate(query, page, per_page)

    def get(self, db: Session, article_id: int) -> Article | None:
        return db.get(Article, article_id)

    def get_published_by_slug(self, db: Session, slug: str) -> Article | None:
        return (
            db.query(Article)
            .filter(
                Article.slug == slug,
                Article.status == ArticleStatus.PUBLISHED.value,
            )
            .first()
        )

    def create(
        self, db: Session, payload: ArticlePayload, author_id: uuid.UUID | None
    ) -> Article:
        base = slugify(payload.slug) if payload.slug else ""
        article = Article(
            slug=self.unique_slug(db, base or self.generate_slug(payload.title)),
            author_id=author_id,
            view_count=0,
            download_stats={},
        )
        self._apply(article, payload)
        db.add(article)
        db.commit()
        db.refresh(article)
        return article

    def update(self, db: Session, article: Article, payload: ArticlePayload) -> Article:
        if payload.slug:
            base = slugify(payload.slug) or article.slug
            article.slug = self.unique_slug(db, base, exclude_id=article.id)
        self._apply(article, payload)
        db.commit()
        db.refresh(article)
        return article

    def delete(self, db: Session, article: Article) -> None:
        db.delete(article)
        db.commit()

    def increment_views(self, db: Session, article: Article) -> None:
        article.view_count = (article.view_count or 0) + 1
        db.commit()

    def categories(self, db: Session) -> list[str]:
        rows = (
            db.query(Article.category)
            .filter(
                Article.status == ArticleStatus.PUBLISHED.value,
                Article.category.is_not(None),
            )
            .distinct()
            .order_by(Article.category)
            .all()
        )
        return [row[0] for row in rows if row[0]]

    def tag_counts(self, db: Session) -> list[tuple[str, int]]:
        counter: Counter[str] = Counter()
        published = db.query(Article.tags).filter(
            Article.status == ArticleStatus.PUBLISHED.value
        )
        for (tags,) in published:
            counter.update(tags or [])
        return sorted(counter.items(), key=lambda item: (-item[1], item[0]))

    @staticmethod
    def _apply(article: Article, payload: ArticlePayload) -> None:
        article.title = payload.title
        article.content = payload.content
        article.description = payload.description
        article.featured_image = payload.featured_image
        article.images = list(payload.images)
        article.attachments = [a.model_dump() for a in payload.attachments]
        article.tags = list(payload.tags)
        article.category = payload.category
        article.seo_description = payload.seo_description
        article.seo_keywords = payload.seo_keywords
        article.is_member_only = payload.is_member_only
        status = payload.status.value
        if status == ArticleStatus.PUBLISHED.value and article.published_at is None:
            article.published_at = payload.published_at or datetime.now(UTC)
        elif payload.published_at is not None:
            article.published_at = payload.published_at
        article.status = status


article_service = ArticleService()
