"""
Auth domain — Pydantic V2 request/response schemas.

Wire names are camelCase (``redirectUri``, ``debugOtp``); Python code uses
snake_case via the alias generator.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from portal.auth.constants import DoctorStatus
from portal_shared.constants import Role

E164_PATTERN = r"^\+[1-9]\d{7,14}$"


class _Base(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _Out(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ──────────────────────────────────────────────────────────────────

class LoginRequest(_Base):
    """Password login for any role. ``identifier`` is an email, or a phone for patients."""

    identifier: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)
    role: Role


class OTPRequestSchema(_Base):
    phone: str = Field(pattern=E164_PATTERN, examples=["+15551234567"])


class OTPVerifyRequest(_Base):
    phone: str = Field(pattern=E164_PATTERN)
    otp: str = Field(pattern=r"^\d{6}$")


class OAuthCallbackRequest(_Base):
    code: str = Field(min_length=1)
    redirect_uri: str = Field(min_length=1, max_length=2048)


class DoctorRegisterRequest(_Base):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=1, max_length=150)
    phone: str | None = Field(None, pattern=E164_PATTERN)
    license_number: str | None = Field(None, max_length=100)
    specialty: str | None = Field(None, max_length=100)


class PatientRegisterRequest(_Base):
    """Omit ``password`` to register OTP-only; a code is sent immediately."""

    phone: str = Field(pattern=E164_PATTERN)
    password: str | None = Field(None, min_length=8, max_length=128)
    full_name: str | None = Field(None, max_length=150)


# ── Responses ─────────────────────────────────────────────────────────────────

class UserView(_Out):
    id: uuid.UUID
    role: Role
    email: str | None = None
    phone: str | None = None
    full_name: str | None = None
    status: DoctorStatus | None = None


class AuthResponse(_Out):
    success: bool = True
    token: str
    user: UserView


class OTPRequestResponse(_Out):
    success: bool = True
    message: str
    # Only present when the debug echo flag is on (never in production)
    debug_otp: str | None = None


class RegistrationResponse(_Out):
    success: bool = True
    message: str
    user: UserView
    token: str | None = None
    require_otp: bool | None = None
    debug_otp: str | None = None


class DoctorStatusResponse(_Out):
    email: str
    status: DoctorStatus


class SessionResponse(_Out):
    success: bool = True
    subject_id: uuid.UUID
    role: Role
    issued_at: datetime
    expires_at: datetime
    pending_approval: bool


class MessageResponse(_Out):
    success: bool = True
    message: str
