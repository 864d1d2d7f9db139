"""
Admin accounts domain — Pydantic V2 schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel


class _Base(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _Out(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CreateAdminRequest(_Base):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(None, max_length=150)


class UpdateAdminRequest(_Base):
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8, max_length=128)
    full_name: str | None = Field(None, max_length=150)

    @model_validator(mode="after")
    def at_least_one_field(self) -> "UpdateAdminRequest":
        if self.email is None and self.password is None and self.full_name is None:
            raise ValueError("Provide at least one of email, password or fullName.")
        return self


class AdminItem(_Out):
    id: uuid.UUID
    email: str
    full_name: str | None
    created_by: uuid.UUID | None
    last_login_at: datetime | None
    created_at: datetime


class AdminListResponse(_Out):
    items: list[AdminItem]
    total: int
    page: int
    size: int
