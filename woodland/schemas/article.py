"""Schemas for articles."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import ConfigDict, Field, field_validator

from woodland.schemas.common import Attachment, CamelModel, coerce_attachments


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ArticlePayload(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    content: str = Field(..., min_length=1)
    description: str | None = Field(default=None, max_length=500)
    featured_image: str | None = None
    images: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    category: str | None = Field(default=None, max_length=50)
    status: ArticleStatus = ArticleStatus.DRAFT
    published_at: dt.datetime | None = None
    seo_description: str | None = Field(default=None, max_length=300)
    seo_keywords: str | None = Field(default=None, max_length=300)
    is_member_only: bool = False

    @field_validator("attachments", mode="before")
    @classmethod
    def accept_bare_filenames(cls, value):
        return coerce_attachments(value)

    @field_validator("tags")
    @classmethod
    def drop_blank_tags(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in (t.strip() for t in value):
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class ArticleOut(CamelModel):
    id: int
    slug: str
    title: str
    content: str
    description: str | None = None
    featured_image: str | None = None
    images: list[str]
    attachments: list[Attachment]
    tags: list[str]
    category: str | None = None
    status: str
    published_at: dt.datetime | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None
    is_member_only: bool
    view_count: int
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class TagCount(CamelModel):
    name: str
    count: int
