"""
Approval domain — controller.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from portal.approval import service as svc
from portal.approval.schemas import DecisionResponse, DoctorItem, DoctorQueueResponse
from portal.auth.constants import ApprovalDecision, DoctorStatus
from portal_shared.models import CurrentSession


async def get_queue(
    session: AsyncSession, status: DoctorStatus | None, page: int, size: int
) -> DoctorQueueResponse:
    doctors, total = await svc.list_doctors(session, status=status, page=page, size=size)
    return DoctorQueueResponse(
        items=[DoctorItem.model_validate(d) for d in doctors],
        total=total,
        page=page,
        size=size,
    )


async def get_doctor(session: AsyncSession, doctor_id: uuid.UUID) -> DoctorItem:
    return DoctorItem.model_validate(await svc.get_doctor(session, doctor_id))


async def decide(
    session: AsyncSession,
    doctor_id: uuid.UUID,
    decision: ApprovalDecision,
    actor: CurrentSession,
) -> DecisionResponse:
    doctor = await svc.decide(
        session, doctor_id=doctor_id, decision=decision, actor_id=actor.subject_id
    )
    return DecisionResponse(
        message=f"Doctor {doctor.status.value}.",
        doctor=DoctorItem.model_validate(doctor),
    )
