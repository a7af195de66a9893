"""Activity records (field reports)."""

from __future__ import annotations

import datetime as dt
import uuid

from fastapi_users_db_sqlalchemy.generics import GUID
from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from woodland.database import Base


class Record(Base):
    __tablename__ = "records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    location: Mapped[str] = mapped_column(String(100))
    datetime: Mapped[str] = mapped_column(String(100))  # display text
    event_date: Mapped[dt.date] = mapped_column(Date, index=True)
    weather: Mapped[str] = mapped_column(String(200))
    participants: Mapped[str] = mapped_column(String(500))
    reporter: Mapped[str] = mapped_column(String(100))
    content: Mapped[str] = mapped_column(Text)
    near_miss: Mapped[str | None] = mapped_column(Text, nullable=True)
    equipment: Mapped[str | None] = mapped_column(String(500), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    categories: Mapped[list] = mapped_column(JSON, default=list)
    images: Mapped[list] = mapped_column(JSON, default=list)  # stored filenames
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    creator_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
