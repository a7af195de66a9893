"""Schemas for activity locations."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from urllib.parse import urlsplit

from pydantic import ConfigDict, Field, field_validator

from woodland.schemas.common import Attachment, CamelModel, CaptionedImage

LOCATION_ID_PATTERN = r"^[a-z0-9-]+$"


class LocationType(str, Enum):
    REGULAR = "regular"
    COLLABORATION = "collaboration"
    OTHER = "other"


class LocationPayload(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1, max_length=50, pattern=LOCATION_ID_PATTERN)
    name: str = Field(..., min_length=1, max_length=100)
    position: list[float] = Field(..., min_length=2, max_length=2)
    type: LocationType
    activities: str | None = Field(default=None, max_length=200)
    image: str | None = None
    address: str | None = None
    has_detail: bool = False
    is_draft: bool = False

    activity_details: str | None = None
    field_characteristics: str | None = None
    access: str | None = None
    facilities: str | None = None
    schedule: str | None = None
    requirements: str | None = None
    participation_fee: str | None = None
    contact: str | None = None
    organizer: str | None = None
    started_date: str | None = None
    notes: str | None = None
    other: str | None = None

    meeting_address: str | None = None
    meeting_time: str | None = None
    meeting_map_url: str | None = None
    meeting_additional_info: str | None = None

    images: list[CaptionedImage] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    upcoming_dates: list[str] = Field(default_factory=list)

    @field_validator("images", "attachments", "upcoming_dates", mode="before")
    @classmethod
    def null_means_empty(cls, value):
        return [] if value is None else value

    @field_validator("meeting_map_url")
    @classmethod
    def map_url_is_url(cls, value: str | None) -> str | None:
        if not value:
            return None
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("Map URL must be an http or https address")
        return value


class LocationOut(CamelModel):
    id: str
    name: str
    position: list[float]
    type: str
    activities: str | None = None
    image: str | None = None
    address: str | None = None
    has_detail: bool
    is_draft: bool

    activity_details: str | None = None
    field_characteristics: str | None = None
    access: str | None = None
    facilities: str | None = None
    schedule: str | None = None
    requirements: str | None = None
    participation_fee: str | None = None
    contact: str | None = None
    organizer: str | None = None
    started_date: str | None = None
    notes: str | None = None
    other: str | None = None

    meeting_address: str | None = None
    meeting_time: str | None = None
    meeting_map_url: str | None = None
    meeting_additional_info: str | None = None

    images: list[CaptionedImage]
    attachments: list[Attachment]
    upcoming_dates: list[str]
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
