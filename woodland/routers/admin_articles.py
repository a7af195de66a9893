from __future__ import annotations

import logging
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from sqlalchemy.orm import Session

from woodland.auth import is_editor, require_staff
from woodland.database import get_db
from woodland.models.article import Article
from woodland.routers.common import PageParams, resize_uploads, uploader
from woodland.schemas.article import ArticleOut, ArticlePayload, ArticleStatus
from woodland.schemas.auth import SessionUser
from woodland.schemas.common import Pagination, ok
from woodland.services.article_service import article_service
from woodland.services.storage import is_safe_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/article", tags=["admin"])


def _get_owned_or_404(db: Session, article_id: int, user: SessionUser) -> Article:
    article = article_service.get(db, article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    if is_editor(user) and article.author_id != user.user_uuid:
        raise HTTPException(
            status_code=403, detail="Editors can only change their own articles"
        )
    return article


@router.get("")
def list_articles(
    status: ArticleStatus | None = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    items, total = article_service.list_admin(
        db,
        page=paging.page,
        per_page=paging.per_page,
        status=status.value if status else None,
        author_id=user.user_uuid if is_editor(user) else None,
    )
    return ok(
        {
            "articles": [ArticleOut.model_validate(a) for a in items],
            "pagination": Pagination.build(paging.page, paging.per_page, total),
        }
    )


@router.post("", status_code=201)
def create_article(
    payload: ArticlePayload,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    article = article_service.create(db, payload, user.user_uuid)
    logger.info("Article %s (%s) created by %s", article.id, article.slug, user.email)
    return ok(ArticleOut.model_validate(article), "Article created")


@router.post("/upload", status_code=201)
async def upload_image(
    request: Request,
    image: UploadFile = File(...),
    user: SessionUser = Depends(require_staff),
):
    """Resize and store one image for use inside an article body.

    Returns:
        The stored filename and its public URL
    """
    images_uploader = uploader(request, "article")
    result = await resize_uploads(images_uploader, [image], feature="article")
    if result.failed:
        raise HTTPException(status_code=400, detail=result.failed[0].error)
    filename = result.succeeded[0]
    url = await images_uploader.storage.get_url(filename)
    return ok({"filename": filename, "url": url}, "Image uploaded")


@router.delete("/upload")
async def delete_image(
    request: Request,
    url: str = Query(..., min_length=1),
    user: SessionUser = Depends(require_staff),
):
    images_uploader = uploader(request, "article")
    prefix = images_uploader.policy.url.rstrip("/") + "/"
    path = urlsplit(url).path
    if not path.startswith(prefix):
        raise HTTPException(status_code=400, detail="Not an article image URL")
    filename = path[len(prefix) :]
    if not is_safe_filename(filename):
        raise HTTPException(status_code=400, detail="Invalid file name")
    if not await images_uploader.delete_file(filename):
        raise HTTPException(status_code=404, detail="Image not found")
    return ok(message="Image deleted")


@router.get("/{article_id}")
def get_article(
    article_id: int,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    return ok(ArticleOut.model_validate(_get_owned_or_404(db, article_id, user)))


@router.put("/{article_id}")
def update_article(
    article_id: int,
    payload: ArticlePayload,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    article = _get_owned_or_404(db, article_id, user)
    article_service.update(db, article, payload)
    return ok(ArticleOut.model_validate(article), "Article updated")


@router.delete("/{article_id}")
def delete_article(
    article_id: int,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(require_staff),
):
    article = _get_owned_or_404(db, article_id, user)
    article_service.delete(db, article)
    logger.info("Article %s deleted by %s", article_id, user.email)
    return ok(message="Article deleted")
