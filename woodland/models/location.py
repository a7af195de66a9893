"""Activity locations shown on the map."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from woodland.database import Base


class Location(Base):
    """A place where the society works.

    The primary key is a human-chosen slug (``[a-z0-9-]+``). ``images`` holds
    captioned gallery entries and ``attachments`` downloadable documents; both
    are lists of ``{"name", "filename", "size"}`` dicts.
    """

    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    position: Mapped[list] = mapped_column(JSON)  # [lat, lng]
    type: Mapped[str] = mapped_column(String(20), index=True)
    activities: Mapped[str | None] = mapped_column(String(200), nullable=True)
    image: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(200), nullable=True)
    has_detail: Mapped[bool] = mapped_column(Boolean, default=False)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    activity_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_characteristics: Mapped[str | None] = mapped_column(Text, nullable=True)
    access: Mapped[str | None] = mapped_column(Text, nullable=True)
    facilities: Mapped[str | None] = mapped_column(Text, nullable=True)
    schedule: Mapped[str | None] = mapped_column(Text, nullable=True)
    requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    participation_fee: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact: Mapped[str | None] = mapped_column(String(200), nullable=True)
    organizer: Mapped[str | None] = mapped_column(String(100), nullable=True)
    started_date: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    other: Mapped[str | None] = mapped_column(Text, nullable=True)

    meeting_address: Mapped[str | None] = mapped_column(String(200), nullable=True)
    meeting_time: Mapped[str | None] = mapped_column(String(100), nullable=True)
    meeting_map_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meeting_additional_info: Mapped[str | None] = mapped_column(Text, nullable=True)

    images: Mapped[list] = mapped_column(JSON, default=list)
    attachments: Mapped[list] = mapped_column(JSON, default=list)
    upcoming_dates: Mapped[list] = mapped_column(JSON, default=list)
    download_stats: Mapped[dict] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
