"""Schemas for admin user management."""

from __future__ import annotations

import datetime as dt
import uuid

from pydantic import EmailStr, Field, field_validator

from woodland.models.user import UserRole
from woodland.schemas.common import CamelModel
from woodland.security.passwords import password_problems


class UserCreate(CamelModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.EDITOR
    password: str | None = None
    require_email_verification: bool = True

    @field_validator("password")
    @classmethod
    def password_is_strong(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        problems = password_problems(value)
        if problems:
            raise ValueError(problems[0])
        return value


class UserUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    role: UserRole | None = None
    is_active: bool | None = None


class UserOut(CamelModel):
    id: uuid.UUID
    email: str
    name: str
    role: str
    is_active: bool
    is_verified: bool
    last_login_at: dt.datetime | None = None
    created_at: dt.datetime | None = None
