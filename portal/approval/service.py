"""
Approval workflow — doctor state machine.

  pending --approve--> approved
  pending --reject-->  rejected

Both targets are terminal.  A doctor's role is derived from this state at
token issuance, so a decision only affects sessions minted afterwards.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.constants import ApprovalDecision, DoctorStatus
from portal.auth.models import Doctor
from portal.exceptions import ApprovalAlreadyDecided, DoctorNotFound
from portal_shared.database import utcnow

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[ApprovalDecision, DoctorStatus] = {
    ApprovalDecision.APPROVE: DoctorStatus.APPROVED,
    ApprovalDecision.REJECT: DoctorStatus.REJECTED,
}


async def list_doctors(
    session: AsyncSession,
    *,
    status: DoctorStatus | None = None,
    page: int = 1,
    size: int = 20,
) -> tuple[list[Doctor], int]:
    """Oldest first, so the approval queue is worked FIFO."""
    base = select(Doctor)
    count_q = select(func.count()).select_from(Doctor)
    if status is not None:
        base = base.where(Doctor.status == status)
        count_q = count_q.where(Doctor.status == status)

    total = (await session.execute(count_q)).scalar_one()
    result = await session.execute(
        base.order_by(Doctor.created_at.asc(), Doctor.id).offset((page - 1) * size).limit(size)
    )
    return list(result.scalars().all()), total


async def get_doctor(session: AsyncSession, doctor_id: uuid.UUID) -> Doctor:
    doctor = await session.get(Doctor, doctor_id)
    if doctor is None:
        raise DoctorNotFound()
    return doctor


async def decide(
    session: AsyncSession,
    *,
    doctor_id: uuid.UUID,
    decision: ApprovalDecision,
    actor_id: uuid.UUID,
    now: datetime | None = None,
) -> Doctor:
    """
    Apply ``decision`` to a pending doctor.

    Raises DoctorNotFound, or ApprovalAlreadyDecided when the doctor has left
    the pending state.  The row is locked for the duration of the request so
    two admins cannot both decide it.
    """
    result = await session.execute(
        select(Doctor).where(Doctor.id == doctor_id).with_for_update()
    )
    doctor = result.scalar_one_or_none()
    if doctor is None:
        raise DoctorNotFound()
    if doctor.status != DoctorStatus.PENDING:
        raise ApprovalAlreadyDecided(doctor.status.value)

    doctor.status = _TRANSITIONS[decision]
    doctor.decided_by = actor_id
    doctor.decided_at = now or utcnow()
    await session.flush()
    logger.info("Doctor %s %s by %s", doctor.id, doctor.status.value, actor_id)
    return doctor
