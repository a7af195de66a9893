from __future__ import annotations

from sqlalchemy.orm import Query

from woodland.config import settings


def clamp_page(page: int | None, per_page: int | None) -> tuple[int, int]:
    """Normalise query parameters to a 1-based page and bounded page size."""
    page = page if page and page > 0 else 1
    if not per_page or per_page <= 0:
        per_page = settings.items_per_page
    return page, min(per_page, settings.max_items_per_page)


def paginate(query: Query, page: int, per_page: int) -> tuple[list, int]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return items, total
