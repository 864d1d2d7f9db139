from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth import utils
from portal.auth.constants import OTP_MAX_ATTEMPTS, DoctorStatus
from portal.auth.service import (
    assert_email_unclaimed,
    authenticate,
    check_login_lock,
    clear_failed_logins,
    get_patient_by_phone,
    issue_otp_challenge,
    record_failed_login,
    register_doctor,
    register_patient,
    verify_otp_challenge,
)
from portal.auth.utils import generate_otp
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
from tests.conftest import PASSWORD

PHONE = "+15551234567"
T0 = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


# ── Password flow ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_authenticate_each_table(seed, db_session: AsyncSession) -> None:
    root = await seed.super_admin()
    admin = await seed.admin()
    doctor = await seed.doctor()
    patient = await seed.patient(password=PASSWORD)

    cases = [
        (Role.SUPERADMIN, "root@example.com", root.id, Role.SUPERADMIN),
        (Role.ADMIN, "admin@example.com", admin.id, Role.ADMIN),
        (Role.DOCTOR, "doc@example.com", doctor.id, Role.DOCTOR),
        (Role.PATIENT, PHONE, patient.id, Role.PATIENT),
    ]
    for role, identifier, expected_id, expected_role in cases:
        identity = await authenticate(db_session, role=role, identifier=identifier, password=PASSWORD)
        assert identity.id == expected_id
        assert identity.role is expected_role


@pytest.mark.asyncio
async def test_email_lookup_is_case_insensitive(seed, db_session: AsyncSession) -> None:
    await seed.admin(email="admin@example.com")
    identity = await authenticate(
        db_session, role=Role.ADMIN, identifier="Admin@Example.COM", password=PASSWORD
    )
    assert identity.email == "admin@example.com"


@pytest.mark.asyncio
async def test_tables_are_disjoint(seed, db_session: AsyncSession) -> None:
    await seed.admin(email="someone@example.com")
    with pytest.raises(UserNotFound):
        await authenticate(
            db_session, role=Role.SUPERADMIN, identifier="someone@example.com", password=PASSWORD
        )


@pytest.mark.asyncio
async def test_wrong_password(seed, db_session: AsyncSession) -> None:
    await seed.admin()
    with pytest.raises(InvalidCredentials):
        await authenticate(db_session, role=Role.ADMIN, identifier="admin@example.com", password="nope")


@pytest.mark.asyncio
async def test_unknown_account(db_session: AsyncSession) -> None:
    with pytest.raises(UserNotFound):
        await authenticate(db_session, role=Role.ADMIN, identifier="ghost@example.com", password=PASSWORD)


@pytest.mark.asyncio
async def test_otp_only_patient_cannot_use_password(seed, db_session: AsyncSession) -> None:
    await seed.patient(password=None)
    with pytest.raises(InvalidCredentials):
        await authenticate(db_session, role=Role.PATIENT, identifier=PHONE, password=PASSWORD)


@pytest.fixture
def hasher_calls(monkeypatch) -> list[str]:
    calls: list[str] = []
    original = utils.context.verify

    def counting_verify(secret, hashed, **kwargs):
        calls.append(hashed)
        return original(secret, hashed, **kwargs)

    monkeypatch.setattr(utils.context, "verify", counting_verify)
    return calls


@pytest.mark.asyncio
async def test_unknown_account_still_runs_hasher(db_session: AsyncSession, hasher_calls: list[str]) -> None:
    with pytest.raises(UserNotFound):
        await authenticate(db_session, role=Role.ADMIN, identifier="ghost@example.com", password=PASSWORD)
    assert len(hasher_calls) == 1


@pytest.mark.asyncio
async def test_passwordless_account_still_runs_hasher(
    seed, db_session: AsyncSession, hasher_calls: list[str]
) -> None:
    await seed.patient(password=None)
    with pytest.raises(InvalidCredentials):
        await authenticate(db_session, role=Role.PATIENT, identifier=PHONE, password=PASSWORD)
    assert len(hasher_calls) == 1


@pytest.mark.asyncio
async def test_wrong_password_runs_hasher_once(seed, db_session: AsyncSession, hasher_calls: list[str]) -> None:
    await seed.admin()
    with pytest.raises(InvalidCredentials):
        await authenticate(db_session, role=Role.ADMIN, identifier="admin@example.com", password="nope")
    assert len(hasher_calls) == 1


@pytest.mark.asyncio
async def test_pending_doctor_with_correct_password_is_denied(seed, db_session: AsyncSession) -> None:
    await seed.doctor(status=DoctorStatus.PENDING)
    with pytest.raises(AccountPendingApproval) as exc_info:
        await authenticate(db_session, role=Role.DOCTOR, identifier="doc@example.com", password=PASSWORD)
    assert exc_info.value.account_status == "pending"
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_pending_doctor_role_maps_to_doctor_table(seed, db_session: AsyncSession) -> None:
    await seed.doctor(status=DoctorStatus.PENDING)
    with pytest.raises(AccountPendingApproval):
        await authenticate(
            db_session, role=Role.PENDING_DOCTOR, identifier="doc@example.com", password=PASSWORD
        )


@pytest.mark.asyncio
async def test_pending_doctor_wrong_password_reports_credentials_first(seed, db_session: AsyncSession) -> None:
    await seed.doctor(status=DoctorStatus.PENDING)
    with pytest.raises(InvalidCredentials):
        await authenticate(db_session, role=Role.DOCTOR, identifier="doc@example.com", password="nope")


@pytest.mark.asyncio
async def test_rejected_doctor_is_denied(seed, db_session: AsyncSession) -> None:
    await seed.doctor(status=DoctorStatus.REJECTED)
    with pytest.raises(AccountRejected) as exc_info:
        await authenticate(db_session, role=Role.DOCTOR, identifier="doc@example.com", password=PASSWORD)
    assert exc_info.value.account_status == "rejected"


# ── Registration ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_register_doctor_starts_pending(db_session: AsyncSession) -> None:
    doctor = await register_doctor(
        db_session, email="New.Doc@Example.com", password=PASSWORD, full_name="Dr. New"
    )
    assert doctor.status == DoctorStatus.PENDING
    assert doctor.role is Role.PENDING_DOCTOR
    assert doctor.email == "new.doc@example.com"
    assert doctor.password_hash != PASSWORD


@pytest.mark.asyncio
@pytest.mark.parametrize("holder", ["super_admin", "admin", "doctor"])
async def test_doctor_email_unique_across_tables(seed, db_session: AsyncSession, holder: str) -> None:
    await getattr(seed, holder)(email="taken@example.com")
    with pytest.raises(EmailAlreadyExists):
        await register_doctor(db_session, email="taken@example.com", password=PASSWORD, full_name="X")


@pytest.mark.asyncio
async def test_assert_email_unclaimed_passes_for_fresh_email(db_session: AsyncSession) -> None:
    await assert_email_unclaimed(db_session, "fresh@example.com")


@pytest.mark.asyncio
async def test_register_patient_duplicate_phone(seed, db_session: AsyncSession) -> None:
    await seed.patient()
    with pytest.raises(PhoneAlreadyExists):
        await register_patient(db_session, phone=PHONE)


# ── OTP flow ──────────────────────────────────────────────────────────────────

def test_generate_otp_is_six_digits() -> None:
    for _ in range(200):
        code = generate_otp()
        assert len(code) == 6
        assert code.isdigit()


@pytest.mark.asyncio
async def test_otp_success_clears_challenge(seed, db_session: AsyncSession) -> None:
    await seed.patient()
    patient = await get_patient_by_phone(db_session, PHONE)
    await issue_otp_challenge(db_session, patient, "123456", now=T0)

    verified = await verify_otp_challenge(
        db_session, phone=PHONE, plain_otp="123456", now=T0 + timedelta(minutes=9)
    )
    assert verified.id == patient.id
    assert verified.otp_hash is None
    assert verified.otp_expires_at is None

    # Single use: the same code cannot be replayed.
    with pytest.raises(InvalidOrExpiredOTP):
        await verify_otp_challenge(db_session, phone=PHONE, plain_otp="123456", now=T0)


@pytest.mark.asyncio
async def test_otp_code_is_stored_hashed(seed, db_session: AsyncSession) -> None:
    await seed.patient()
    patient = await get_patient_by_phone(db_session, PHONE)
    await issue_otp_challenge(db_session, patient, "654321", now=T0)
    assert patient.otp_hash != "654321"
    assert patient.otp_attempts_remaining == OTP_MAX_ATTEMPTS


@pytest.mark.asyncio
async def test_newer_otp_supersedes_older(seed, db_session: AsyncSession) -> None:
    await seed.patient()
    patient = await get_patient_by_phone(db_session, PHONE)
    await issue_otp_challenge(db_session, patient, "111111", now=T0)
    await issue_otp_challenge(db_session, patient, "222222", now=T0 + timedelta(seconds=5))

    with pytest.raises(InvalidOrExpiredOTP):
        await verify_otp_challenge(db_session, phone=PHONE, plain_otp="111111", now=T0 + timedelta(seconds=10))

    verified = await verify_otp_challenge(
        db_session, phone=PHONE, plain_otp="222222", now=T0 + timedelta(seconds=20)
    )
    assert verified.id == patient.id


@pytest.mark.asyncio
async def test_expired_otp_rejected(seed, db_session: AsyncSession) -> None:
    await seed.patient()
    patient = await get_patient_by_phone(db_session, PHONE)
    await issue_otp_challenge(db_session, patient, "123456", now=T0)

    with pytest.raises(InvalidOrExpiredOTP):
        await verify_otp_challenge(
            db_session, phone=PHONE, plain_otp="123456", now=T0 + timedelta(minutes=10)
        )


@pytest.mark.asyncio
async def test_otp_attempts_exhaust(seed, db_session: AsyncSession) -> None:
    await seed.patient()
    patient = await get_patient_by_phone(db_session, PHONE)
    await issue_otp_challenge(db_session, patient, "123456", now=T0)

    for _ in range(OTP_MAX_ATTEMPTS - 1):
        with pytest.raises(InvalidOrExpiredOTP):
            await verify_otp_challenge(db_session, phone=PHONE, plain_otp="000000", now=T0)
    with pytest.raises(OTPAttemptsExhausted):
        await verify_otp_challenge(db_session, phone=PHONE, plain_otp="000000", now=T0)

    # The challenge is gone; even the right code fails now.
    with pytest.raises(InvalidOrExpiredOTP):
        await verify_otp_challenge(db_session, phone=PHONE, plain_otp="123456", now=T0)


@pytest.mark.asyncio
async def test_otp_for_unknown_phone(db_session: AsyncSession) -> None:
    with pytest.raises(InvalidOrExpiredOTP):
        await verify_otp_challenge(db_session, phone="+15550000000", plain_otp="123456")


# ── Lockout ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_lockout_after_five_failures(fake_redis) -> None:
    for _ in range(4):
        assert await record_failed_login(fake_redis, Role.ADMIN, "admin@example.com") is False
        await check_login_lock(fake_redis, Role.ADMIN, "admin@example.com")

    assert await record_failed_login(fake_redis, Role.ADMIN, "Admin@Example.com") is True
    with pytest.raises(AccountLocked):
        await check_login_lock(fake_redis, Role.ADMIN, "admin@example.com")

    # Same email in another table is a different account.
    await check_login_lock(fake_redis, Role.SUPERADMIN, "admin@example.com")


@pytest.mark.asyncio
async def test_clear_failed_logins_resets_counter(fake_redis) -> None:
    for _ in range(4):
        await record_failed_login(fake_redis, Role.PATIENT, PHONE)
    await clear_failed_logins(fake_redis, Role.PATIENT, PHONE)
    assert await record_failed_login(fake_redis, Role.PATIENT, PHONE) is False
