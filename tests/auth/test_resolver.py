import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.constants import DoctorStatus
from portal.auth.models import Admin, Doctor, SuperAdmin
from portal.auth.resolver import resolve_oauth_identity
from portal.exceptions import AccountRejected
from portal_shared.constants import Role


@pytest.mark.asyncio
async def test_unknown_email_provisions_pending_doctor(db_session: AsyncSession) -> None:
    resolved = await resolve_oauth_identity(
        db_session, email="Newdoc@Example.com", full_name="New Doc", provider_id="google-sub-1"
    )
    assert resolved.created is True
    assert resolved.role is Role.PENDING_DOCTOR
    assert isinstance(resolved.record, Doctor)
    assert resolved.record.status == DoctorStatus.PENDING
    assert resolved.record.email == "newdoc@example.com"
    assert resolved.record.google_id == "google-sub-1"

    admins = (await db_session.execute(select(func.count()).select_from(Admin))).scalar_one()
    supers = (await db_session.execute(select(func.count()).select_from(SuperAdmin))).scalar_one()
    assert admins == 0
    assert supers == 0


@pytest.mark.asyncio
async def test_second_sign_in_reuses_provisioned_doctor(db_session: AsyncSession) -> None:
    first = await resolve_oauth_identity(db_session, email="newdoc@example.com")
    second = await resolve_oauth_identity(db_session, email="newdoc@example.com")
    assert second.created is False
    assert second.subject_id == first.subject_id
    assert second.role is Role.PENDING_DOCTOR


@pytest.mark.asyncio
async def test_super_admin_wins(seed, db_session: AsyncSession) -> None:
    root = await seed.super_admin(email="root@example.com")
    resolved = await resolve_oauth_identity(db_session, email="root@example.com")
    assert resolved.role is Role.SUPERADMIN
    assert resolved.subject_id == root.id


@pytest.mark.asyncio
async def test_admin_resolves_to_admin(seed, db_session: AsyncSession) -> None:
    admin = await seed.admin(email="admin@example.com")
    resolved = await resolve_oauth_identity(db_session, email="ADMIN@example.com")
    assert resolved.role is Role.ADMIN
    assert resolved.subject_id == admin.id


@pytest.mark.asyncio
async def test_precedence_when_email_is_in_several_tables(seed, db_session: AsyncSession) -> None:
    # Write-time checks prevent this; seed directly to prove the order anyway.
    await seed.doctor(email="dup@example.com")
    admin = await seed.admin(email="dup@example.com")
    resolved = await resolve_oauth_identity(db_session, email="dup@example.com")
    assert resolved.role is Role.ADMIN
    assert resolved.subject_id == admin.id

    root = await seed.super_admin(email="dup@example.com")
    resolved = await resolve_oauth_identity(db_session, email="dup@example.com")
    assert resolved.role is Role.SUPERADMIN
    assert resolved.subject_id == root.id


@pytest.mark.asyncio
async def test_approved_doctor_resolves_to_doctor(seed, db_session: AsyncSession) -> None:
    doctor = await seed.doctor(status=DoctorStatus.APPROVED)
    resolved = await resolve_oauth_identity(db_session, email="doc@example.com")
    assert resolved.role is Role.DOCTOR
    assert resolved.subject_id == doctor.id


@pytest.mark.asyncio
async def test_existing_pending_doctor_gets_pending_role(seed, db_session: AsyncSession) -> None:
    await seed.doctor(status=DoctorStatus.PENDING)
    resolved = await resolve_oauth_identity(db_session, email="doc@example.com")
    assert resolved.role is Role.PENDING_DOCTOR
    assert resolved.created is False


@pytest.mark.asyncio
async def test_rejected_doctor_is_refused(seed, db_session: AsyncSession) -> None:
    await seed.doctor(status=DoctorStatus.REJECTED)
    with pytest.raises(AccountRejected):
        await resolve_oauth_identity(db_session, email="doc@example.com")
