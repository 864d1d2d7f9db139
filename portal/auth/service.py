"""
Portal — credential verification and credential-store business logic.

Rules:
  - Zero FastAPI imports (exceptions come from portal.exceptions).
  - Only the SQLAlchemy async session passed in; services flush, get_db commits.
  - All I/O functions are async def.
  - Time is injectable (``now=``) wherever expiry is decided.
"""
from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

import redis.asyncio as aioredis
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.constants import (
    LOGIN_FAIL_WINDOW_SECONDS,
    LOGIN_LOCK_SECONDS,
    LOGIN_MAX_ATTEMPTS,
    OTP_EXPIRE_SECONDS,
    OTP_MAX_ATTEMPTS,
    DoctorStatus,
)
from portal.auth.models import Admin, Doctor, Identity, Patient, SuperAdmin
from portal.auth.utils import hash_password, normalize_email, verify_password
from portal.exceptions import (
    AccountLocked,
    AccountPendingApproval,
    AccountRejected,
    EmailAlreadyExists,
    InvalidCredentials,
    InvalidOrExpiredOTP,
    OTPAttemptsExhausted,
    PhoneAlreadyExists,
    UserNotFound,
)
from portal_shared.constants import Role
from portal_shared.database import utcnow


# ── Identity queries ──────────────────────────────────────────────────────────

async def get_super_admin_by_email(session: AsyncSession, email: str) -> SuperAdmin | None:
    result = await session.execute(
        select(SuperAdmin).where(func.lower(SuperAdmin.email) == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def get_admin_by_email(session: AsyncSession, email: str) -> Admin | None:
    result = await session.execute(
        select(Admin).where(func.lower(Admin.email) == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def get_doctor_by_email(session: AsyncSession, email: str) -> Doctor | None:
    result = await session.execute(
        select(Doctor).where(func.lower(Doctor.email) == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def get_patient_by_phone(session: AsyncSession, phone: str) -> Patient | None:
    result = await session.execute(select(Patient).where(Patient.phone == phone.strip()))
    return result.scalar_one_or_none()


async def get_doctor_by_id(session: AsyncSession, doctor_id: uuid.UUID) -> Doctor | None:
    return await session.get(Doctor, doctor_id)


Lookup = Callable[[AsyncSession, str], Awaitable[Identity | None]]

# Which table a password login is checked against. pending_doctor shares the
# doctor table; the record's approval state decides the final role.
_LOOKUP_BY_ROLE: dict[Role, Lookup] = {
    Role.SUPERADMIN: get_super_admin_by_email,
    Role.ADMIN: get_admin_by_email,
    Role.DOCTOR: get_doctor_by_email,
    Role.PENDING_DOCTOR: get_doctor_by_email,
    Role.PATIENT: get_patient_by_phone,
}


async def find_identity(session: AsyncSession, role: Role, identifier: str) -> Identity | None:
    return await _LOOKUP_BY_ROLE[role](session, identifier)


async def assert_email_unclaimed(session: AsyncSession, email: str) -> None:
    """
    Raise EmailAlreadyExists if any email-keyed table already holds ``email``.

    Uniqueness constraints are per table; this keeps one email from resolving
    to two roles during Google sign-in.
    """
    for lookup in (get_super_admin_by_email, get_admin_by_email, get_doctor_by_email):
        if await lookup(session, email) is not None:
            raise EmailAlreadyExists()


# ── Guard: doctor approval state ─────────────────────────────────────────────

def assert_doctor_can_sign_in(doctor: Doctor) -> None:
    if doctor.status == DoctorStatus.PENDING:
        raise AccountPendingApproval()
    if doctor.status == DoctorStatus.REJECTED:
        raise AccountRejected()


# ── Password flow ─────────────────────────────────────────────────────────────

async def authenticate(
    session: AsyncSession,
    *,
    role: Role,
    identifier: str,
    password: str,
) -> Identity:
    """
    Check ``password`` against the record for ``identifier`` in ``role``'s table.

    Raises:
      UserNotFound           no record in that table
      InvalidCredentials     password mismatch (always reported before approval state)
      AccountPendingApproval doctor awaiting approval
      AccountRejected        doctor was rejected
    """
    identity = await find_identity(session, role, identifier)
    if identity is None:
        verify_password(password, None)
        raise UserNotFound()

    if not verify_password(password, identity.password_hash):
        raise InvalidCredentials()

    if isinstance(identity, Doctor):
        assert_doctor_can_sign_in(identity)

    return identity


async def record_login(session: AsyncSession, identity: Identity) -> None:
    """Stamp last_login_at without ending the transaction."""
    identity.last_login_at = utcnow()
    await session.flush()


# ── Registration ──────────────────────────────────────────────────────────────

async def register_doctor(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str,
    phone: str | None = None,
    license_number: str | None = None,
    specialty: str | None = None,
) -> Doctor:
    """Create a doctor in PENDING state. No session is issued until approval."""
    await assert_email_unclaimed(session, email)
    doctor = Doctor(
        email=normalize_email(email),
        password_hash=hash_password(password),
        full_name=full_name,
        phone=phone,
        license_number=license_number,
        specialty=specialty,
        status=DoctorStatus.PENDING,
    )
    session.add(doctor)
    await session.flush()
    return doctor


async def register_patient(
    session: AsyncSession,
    *,
    phone: str,
    password: str | None = None,
    full_name: str | None = None,
) -> Patient:
    if await get_patient_by_phone(session, phone) is not None:
        raise PhoneAlreadyExists()
    patient = Patient(
        phone=phone.strip(),
        password_hash=hash_password(password) if password else None,
        full_name=full_name,
        otp_attempts_remaining=0,
    )
    session.add(patient)
    await session.flush()
    return patient


# ── OTP flow (patients) ───────────────────────────────────────────────────────

async def issue_otp_challenge(
    session: AsyncSession,
    patient: Patient,
    plain_otp: str,
    *,
    now: datetime | None = None,
    expire_seconds: int = OTP_EXPIRE_SECONDS,
) -> datetime:
    """
    Store a hashed OTP on the patient with a fresh attempt budget.

    Overwrites any live challenge, so only the newest code can succeed.
    Returns the expiry instant. The caller delivers plain_otp.
    """
    expires_at = (now or utcnow()) + timedelta(seconds=expire_seconds)
    patient.otp_hash = hash_password(plain_otp)
    patient.otp_expires_at = expires_at
    patient.otp_attempts_remaining = OTP_MAX_ATTEMPTS
    await session.flush()
    return expires_at


async def verify_otp_challenge(
    session: AsyncSession,
    *,
    phone: str,
    plain_otp: str,
    now: datetime | None = None,
) -> Patient:
    """
    Consume the live challenge for ``phone`` if ``plain_otp`` matches.

    Raises:
      InvalidOrExpiredOTP   no patient, no live challenge, expired, or wrong code
      OTPAttemptsExhausted  wrong code and the attempt budget is now spent
    """
    patient = await get_patient_by_phone(session, phone)
    if patient is None or patient.otp_hash is None or patient.otp_expires_at is None:
        raise InvalidOrExpiredOTP()

    current = now or utcnow()
    if current >= patient.otp_expires_at:
        patient.clear_otp()
        await _persist_then_fail(session, InvalidOrExpiredOTP())

    if not verify_password(plain_otp, patient.otp_hash):
        patient.otp_attempts_remaining -= 1
        if patient.otp_attempts_remaining <= 0:
            patient.clear_otp()
            await _persist_then_fail(session, OTPAttemptsExhausted())
        await _persist_then_fail(session, InvalidOrExpiredOTP())

    patient.clear_otp()
    await session.flush()
    return patient


async def _persist_then_fail(session: AsyncSession, exc: Exception) -> None:
    # The request-level rollback would otherwise refund the spent attempt.
    await session.commit()
    raise exc


# ── Per-account login lockout (Redis) ─────────────────────────────────────────

_LOGIN_FAIL_PREFIX = "login_fails:"
_LOGIN_LOCK_PREFIX = "login_lock:"


def _lockout_key(role: Role, identifier: str) -> str:
    # pending_doctor and doctor share a table, so they share a counter.
    table_role = Role.DOCTOR if role is Role.PENDING_DOCTOR else role
    return f"{table_role.value}:{identifier.strip().lower()}"


async def check_login_lock(redis: aioredis.Redis, role: Role, identifier: str) -> None:
    """Raise AccountLocked (403) if the account is currently in lockout."""
    locked = await redis.get(f"{_LOGIN_LOCK_PREFIX}{_lockout_key(role, identifier)}")
    if locked is not None:
        raise AccountLocked()


async def record_failed_login(redis: aioredis.Redis, role: Role, identifier: str) -> bool:
    """
    Increment the per-account failure counter.

    Returns True if the account just crossed the threshold and is now locked.
    """
    key = _lockout_key(role, identifier)
    key_fails = f"{_LOGIN_FAIL_PREFIX}{key}"

    count = await redis.incr(key_fails)
    if count == 1:
        await redis.expire(key_fails, LOGIN_FAIL_WINDOW_SECONDS)

    if count >= LOGIN_MAX_ATTEMPTS:
        await redis.setex(f"{_LOGIN_LOCK_PREFIX}{key}", LOGIN_LOCK_SECONDS, "1")
        await redis.delete(key_fails)
        return True

    return False


async def clear_failed_logins(redis: aioredis.Redis, role: Role, identifier: str) -> None:
    """Reset the failure counter on successful login."""
    await redis.delete(f"{_LOGIN_FAIL_PREFIX}{_lockout_key(role, identifier)}")
