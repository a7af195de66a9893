"""User accounts for the admin area."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID
from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from woodland.database import Base


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    EDITOR = "EDITOR"
    MEMBER = "MEMBER"


class User(SQLAlchemyBaseUserTableUUID, Base):
    """Account row. ``is_active`` doubles as the enabled/disabled switch.

    Invited accounts start inactive with a verification token; they become
    active once the invitee sets a password.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), default="")
    role: Mapped[str] = mapped_column(
        String(20), default=UserRole.EDITOR.value, server_default="EDITOR"
    )
    verification_token: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    verification_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reset_token: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    reset_token_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
