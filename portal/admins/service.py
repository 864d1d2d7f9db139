"""
Admin accounts domain — pure business logic (zero FastAPI imports).

Admins are created and managed by super-admins only.  Emails are unique
across every email-keyed table, not just ``admins``.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.models import Admin, SuperAdmin
from portal.auth.service import assert_email_unclaimed, get_super_admin_by_email
from portal.auth.utils import hash_password, normalize_email
from portal.exceptions import AdminNotFound

logger = logging.getLogger(__name__)


async def create_admin(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str | None,
    created_by: uuid.UUID,
) -> Admin:
    """Guards: cross-table email uniqueness. Happy path last."""
    await assert_email_unclaimed(session, email)

    admin = Admin(
        email=normalize_email(email),
        password_hash=hash_password(password),
        full_name=full_name,
        created_by=created_by,
    )
    session.add(admin)
    await session.flush()
    return admin


async def list_admins(
    session: AsyncSession, *, page: int, size: int
) -> tuple[list[Admin], int]:
    total = (await session.execute(select(func.count()).select_from(Admin))).scalar_one()
    result = await session.execute(
        select(Admin).order_by(Admin.created_at.desc(), Admin.id).offset((page - 1) * size).limit(size)
    )
    return list(result.scalars().all()), total


async def get_admin(session: AsyncSession, admin_id: uuid.UUID) -> Admin:
    admin = await session.get(Admin, admin_id)
    if admin is None:
        raise AdminNotFound()
    return admin


async def update_admin(
    session: AsyncSession,
    admin_id: uuid.UUID,
    *,
    email: str | None = None,
    password: str | None = None,
    full_name: str | None = None,
) -> Admin:
    admin = await get_admin(session, admin_id)

    if email is not None and normalize_email(email) != admin.email:
        await assert_email_unclaimed(session, email)
        admin.email = normalize_email(email)
    if password is not None:
        admin.password_hash = hash_password(password)
    if full_name is not None:
        admin.full_name = full_name

    await session.flush()
    return admin


async def delete_admin(session: AsyncSession, admin_id: uuid.UUID) -> None:
    admin = await get_admin(session, admin_id)
    await session.delete(admin)
    await session.flush()


async def ensure_super_admin(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str | None = None,
) -> tuple[SuperAdmin, bool]:
    """
    Create the super-admin for ``email`` unless one already exists.

    Returns (record, created).  An existing record is left untouched,
    including its password.
    """
    existing = await get_super_admin_by_email(session, email)
    if existing is not None:
        return existing, False

    await assert_email_unclaimed(session, email)
    super_admin = SuperAdmin(
        email=normalize_email(email),
        password_hash=hash_password(password),
        full_name=full_name or "Super Admin",
    )
    session.add(super_admin)
    await session.flush()
    logger.info("Bootstrapped super-admin %s", super_admin.id)
    return super_admin, True
