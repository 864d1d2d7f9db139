"""
Portal — SQLAlchemy ORM models for the credential store.

Tables owned by this module (one per role, disjoint):
  - super_admins   Email-keyed, password only
  - admins         Email-keyed, password only, created by a super-admin
  - doctors        Email-keyed, password or Google sign-in, approval state
  - patients       Phone-keyed (E.164), password and/or OTP challenge

Each model exposes a read-only ``role`` so callers never branch on the
table a record came from.
"""
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from portal_shared.constants import Role
from portal_shared.database import Base, UTCDateTime, utcnow

from portal.auth.constants import DoctorStatus


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, server_default=func.now()
    )


class SuperAdmin(Base):
    __tablename__ = "super_admins"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = _created_at()

    @property
    def role(self) -> Role:
        return Role.SUPERADMIN


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    # ondelete=SET NULL keeps the admin if the creating super-admin is removed
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid, sa.ForeignKey("super_admins.id", ondelete="SET NULL"), nullable=True
    )
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = _created_at()

    @property
    def role(self) -> Role:
        return Role.ADMIN


class Doctor(Base):
    """
    A doctor account and its approval state.

    State machine (one-way):
      PENDING  →  APPROVED  (admin approves; future tokens carry ``doctor``)
      PENDING  →  REJECTED  (admin rejects; login denied, record retained)

    decided_by is a bare UUID: the deciding actor may be an admin or a
    super-admin, which live in different tables.
    """

    __tablename__ = "doctors"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False, index=True)
    # nullable: doctors provisioned through Google sign-in have no password
    password_hash: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    full_name: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    phone: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)
    license_number: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    specialty: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    google_id: Mapped[str | None] = mapped_column(sa.String(255), unique=True, nullable=True)
    status: Mapped[DoctorStatus] = mapped_column(
        sa.Enum(
            DoctorStatus,
            name="doctorstatus",
            native_enum=False,
            length=20,
            values_callable=lambda e: [x.value for x in e],
        ),
        nullable=False,
        default=DoctorStatus.PENDING,
        index=True,
    )
    decided_by: Mapped[uuid.UUID | None] = mapped_column(sa.Uuid, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = _created_at()

    @property
    def role(self) -> Role:
        if self.status == DoctorStatus.APPROVED:
            return Role.DOCTOR
        return Role.PENDING_DOCTOR


class Patient(Base):
    """
    A patient account keyed by E.164 phone number.

    At most one OTP challenge is live at a time: otp_hash / otp_expires_at /
    otp_attempts_remaining are overwritten by every new request and cleared
    on successful verification or when the attempt budget runs out.
    """

    __tablename__ = "patients"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    phone: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False, index=True)
    # nullable: OTP-only patients have no password
    password_hash: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    full_name: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    otp_hash: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    otp_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    otp_attempts_remaining: Mapped[int] = mapped_column(
        sa.SmallInteger(), nullable=False, default=0, server_default="0"
    )
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = _created_at()

    @property
    def role(self) -> Role:
        return Role.PATIENT

    def clear_otp(self) -> None:
        self.otp_hash = None
        self.otp_expires_at = None
        self.otp_attempts_remaining = 0


# Any record that can hold a session.
Identity = SuperAdmin | Admin | Doctor | Patient
