"""Schemas for news items."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import ConfigDict, Field, field_validator

from woodland.schemas.common import Attachment, CamelModel, coerce_attachments


class NewsStatus(str, Enum):
    PUBLISHED = "published"
    DRAFT = "draft"


class NewsPayload(CamelModel):
    """Body accepted by the admin create and update endpoints."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=5000)
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    categories: list[str] = Field(..., min_length=1)
    priority: str | None = None
    is_member_only: bool = False
    author: str = Field(..., min_length=1, max_length=50)
    attachments: list[Attachment] = Field(default_factory=list)
    status: NewsStatus = NewsStatus.PUBLISHED

    @field_validator("attachments", mode="before")
    @classmethod
    def accept_bare_filenames(cls, value):
        return coerce_attachments(value)

    @field_validator("date")
    @classmethod
    def date_is_real(cls, value: str) -> str:
        dt.date.fromisoformat(value)
        return value

    @property
    def date_value(self) -> dt.date:
        return dt.date.fromisoformat(self.date)


class NewsOut(CamelModel):
    id: int
    title: str
    content: str
    date: dt.date
    categories: list[str]
    priority: str | None = None
    is_member_only: bool
    author: str
    attachments: list[Attachment]
    download_stats: dict = Field(default_factory=dict)
    status: str
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
