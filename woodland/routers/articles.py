from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from woodland.auth import get_optional_user
from woodland.database import get_db
from woodland.models.article import Article
from woodland.routers.common import PageParams
from woodland.schemas.article import ArticleOut, ArticleStatus, TagCount
from woodland.schemas.auth import SessionUser
from woodland.schemas.common import Pagination, ok
from woodland.services.article_service import article_service

router = APIRouter(prefix="/api/article", tags=["articles"])
taxonomy_router = APIRouter(prefix="/api/articles", tags=["articles"])


def _visible_or_error(article: Article | None, user: SessionUser | None) -> Article:
    if article is None or article.status != ArticleStatus.PUBLISHED.value:
        raise HTTPException(status_code=404, detail="Article not found")
    if article.is_member_only and user is None:
        raise HTTPException(status_code=401, detail="Members only")
    return article


@router.get("")
def list_articles(
    category: str | None = None,
    tag: str | None = None,
    search: str | None = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    user: SessionUser | None = Depends(get_optional_user),
):
    items, total = article_service.list_public(
        db,
        page=paging.page,
        per_page=paging.per_page,
        category=category,
        tag=tag,
        search=search,
        include_member_only=user is not None,
    )
    return ok(
        {
            "articles": [ArticleOut.model_validate(a) for a in items],
            "pagination": Pagination.build(paging.page, paging.per_page, total),
        }
    )


@router.get("/slug/{slug}")
def get_article_by_slug(
    slug: str,
    db: Session = Depends(get_db),
    user: SessionUser | None = Depends(get_optional_user),
):
    """Published article by slug. Each successful read counts as one view."""
    article = _visible_or_error(article_service.get_published_by_slug(db, slug), user)
    article_service.increment_views(db, article)
    return ok(ArticleOut.model_validate(article))


@router.get("/{article_id}")
def get_article(
    article_id: int,
    db: Session = Depends(get_db),
    user: SessionUser | None = Depends(get_optional_user),
):
    article = _visible_or_error(article_service.get(db, article_id), user)
    return ok(ArticleOut.model_validate(article))


@taxonomy_router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    return ok(article_service.categories(db))


@taxonomy_router.get("/tags")
def list_tags(db: Session = Depends(get_db)):
    counts = article_service.tag_counts(db)
    return ok([TagCount(name=name, count=count) for name, count in counts])
