"""Schemas for activity records."""

from __future__ import annotations

import datetime as dt
import re
import uuid

from pydantic import ConfigDict, Field

from woodland.schemas.common import CamelModel

DATE_FOR_FILENAME_RE = re.compile(r"^\d{8}$")


def parse_date_for_filename(value: str | None) -> dt.date:
    """Turn a ``YYYYMMDD`` form value into a date, defaulting to today."""
    if value and DATE_FOR_FILENAME_RE.match(value):
        try:
            return dt.date(int(value[:4]), int(value[4:6]), int(value[6:8]))
        except ValueError:
            pass
    return dt.date.today()


class RecordPayload(CamelModel):
    """The JSON document sent in the ``data`` form field."""

    model_config = ConfigDict(str_strip_whitespace=True)

    location: str = Field(..., min_length=1, max_length=100)
    datetime: str = Field(..., min_length=1, max_length=100)
    weather: str = Field(..., min_length=1, max_length=200)
    participants: str = Field(..., min_length=1, max_length=500)
    reporter: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=2000)
    near_miss: str | None = Field(default=None, max_length=1000)
    equipment: str | None = Field(default=None, max_length=500)
    remarks: str | None = Field(default=None, max_length=1000)
    categories: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    is_draft: bool = False


class RecordOut(CamelModel):
    id: int
    location: str
    datetime: str
    event_date: dt.date
    weather: str
    participants: str
    reporter: str
    content: str
    near_miss: str | None = None
    equipment: str | None = None
    remarks: str | None = None
    categories: list[str]
    images: list[str]
    is_draft: bool
    creator_id: uuid.UUID | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
