"""
Portal — role resolution for externally authenticated identities.

An OAuth profile carries only an email.  resolve_oauth_identity() maps it to
exactly one stored record, searching the email-keyed tables in precedence
order, and provisions a pending doctor when nothing matches.  Provisioning
never creates a super-admin or an admin.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.constants import DoctorStatus
from portal.auth.models import Doctor, Identity
from portal.auth.service import (
    get_admin_by_email,
    get_doctor_by_email,
    get_super_admin_by_email,
)
from portal.auth.utils import normalize_email
from portal.exceptions import AccountRejected
from portal_shared.constants import Role

logger = logging.getLogger(__name__)

# Highest privilege first; the first table holding the email wins.
RESOLUTION_ORDER = (get_super_admin_by_email, get_admin_by_email, get_doctor_by_email)


@dataclass(frozen=True, slots=True)
class ResolvedIdentity:
    record: Identity
    role: Role
    created: bool

    @property
    def subject_id(self) -> uuid.UUID:
        return self.record.id


def role_for(record: Identity) -> Role:
    """The role a session minted for ``record`` right now would carry."""
    return record.role


async def resolve_oauth_identity(
    session: AsyncSession,
    *,
    email: str,
    full_name: str | None = None,
    provider_id: str | None = None,
) -> ResolvedIdentity:
    """
    Raises AccountRejected for a rejected doctor; every other outcome yields a
    role (pending doctors get ``pending_doctor`` so they can see their notice).
    """
    for lookup in RESOLUTION_ORDER:
        record = await lookup(session, email)
        if record is None:
            continue
        if isinstance(record, Doctor):
            if record.status == DoctorStatus.REJECTED:
                raise AccountRejected()
            if provider_id and record.google_id is None:
                record.google_id = provider_id
                await session.flush()
        return ResolvedIdentity(record=record, role=role_for(record), created=False)

    doctor = Doctor(
        email=normalize_email(email),
        full_name=full_name,
        google_id=provider_id,
        status=DoctorStatus.PENDING,
    )
    session.add(doctor)
    await session.flush()
    logger.info("Provisioned pending doctor %s from Google sign-in", doctor.id)
    return ResolvedIdentity(record=doctor, role=Role.PENDING_DOCTOR, created=True)
