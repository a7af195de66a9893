"""Schemas for the authentication endpoints."""

from __future__ import annotations

import uuid

from pydantic import EmailStr, Field, field_validator

from woodland.schemas.common import CamelModel
from woodland.security.passwords import MIN_PASSWORD_LENGTH, password_problems


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    remember_me: bool = False


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class VerifyRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def password_is_strong(cls, value: str) -> str:
        problems = password_problems(value)
        if problems:
            raise ValueError(problems[0])
        return value


class SessionUser(CamelModel):
    id: str
    email: str
    name: str
    role: str

    @property
    def user_uuid(self) -> uuid.UUID:
        return uuid.UUID(self.id)
