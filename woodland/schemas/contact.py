"""Schemas for the public contact and membership forms."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_NAME_LENGTH = 50
MAX_SUBJECT_LENGTH = 100
MAX_MESSAGE_LENGTH = 2000


class _FormModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    @field_validator("privacy", check_fields=False)
    @classmethod
    def privacy_accepted(cls, value: bool) -> bool:
        if value is not True:
            raise ValueError("You must agree to the privacy policy")
        return value


class ContactMemberType(str, Enum):
    MEMBER = "member"
    NON_MEMBER = "non-member"


class ContactForm(_FormModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: EmailStr
    member_type: ContactMemberType
    subject: str = Field(..., min_length=1, max_length=MAX_SUBJECT_LENGTH)
    message: str = Field(..., min_length=10, max_length=MAX_MESSAGE_LENGTH)
    privacy: bool


class MembershipType(str, Enum):
    REGULAR = "regular"
    SUPPORT = "support"


class JoinForm(_FormModel):
    member_type: MembershipType
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    furigana: str = Field(
        ..., min_length=1, max_length=MAX_NAME_LENGTH, pattern=r"^[ァ-ヶー\s　]+$"
    )
    email: EmailStr
    tel: str = Field(..., min_length=1, max_length=20, pattern=r"^[0-9-]+$")
    address: str = Field(..., min_length=1, max_length=500)
    birth_date: str = Field(..., min_length=1)
    occupation: str | None = Field(default=None, max_length=100)
    experience: str | None = Field(default=None, max_length=MAX_MESSAGE_LENGTH)
    motivation: str = Field(..., min_length=10, max_length=MAX_MESSAGE_LENGTH)
    privacy: bool
