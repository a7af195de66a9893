"""Shared schema building blocks and the response envelope."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys while using snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Attachment(CamelModel):
    """A stored file referenced from a content row."""

    name: str
    filename: str
    size: int = 0

    @field_validator("filename")
    @classmethod
    def filename_is_plain(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError("invalid filename")
        return value


class CaptionedImage(Attachment):
    caption: str | None = Field(default=None, max_length=30)


def coerce_attachments(value: Any) -> Any:
    """Accept bare filename strings alongside attachment dicts."""
    if isinstance(value, list):
        return [
            {"name": item, "filename": item, "size": 0}
            if isinstance(item, str)
            else item
            for item in value
        ]
    return value


class Pagination(CamelModel):
    current_page: int
    items_per_page: int
    total_count: int
    total_pages: int

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> Pagination:
        return cls(
            current_page=page,
            items_per_page=per_page,
            total_count=total,
            total_pages=math.ceil(total / per_page) if per_page else 0,
        )


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Wrap a payload in the success envelope."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body
