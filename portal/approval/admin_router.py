"""
Approval domain — admin-facing routes.

Routes:
  GET   /api/v1/admin/doctors                  Paged doctor list (filter by status)
  GET   /api/v1/admin/doctors/{doctor_id}      One doctor
  POST  /api/v1/admin/doctors/decision         {doctorId, decision}
  PATCH /api/v1/admin/doctors/{id}/decision    {decision}

Requires: admin or superadmin role.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from portal.approval import controller as ctrl
from portal.approval.schemas import (
    DecisionBody,
    DecisionRequest,
    DecisionResponse,
    DoctorItem,
    DoctorQueueResponse,
)
from portal.auth.constants import DoctorStatus
from portal.auth.dependencies import require_admin
from portal.database import get_db
from portal_shared.models import CurrentSession

router = APIRouter(prefix="/admin/doctors", tags=["admin-approval"])


@router.get(
    "",
    response_model=DoctorQueueResponse,
    summary="[Admin] List doctors, oldest first",
)
async def list_doctors(
    status: DoctorStatus | None = Query(DoctorStatus.PENDING, description="Filter by approval state"),
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Items per page"),
    admin: CurrentSession = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> DoctorQueueResponse:
    return await ctrl.get_queue(session, status, page, size)


@router.post(
    "/decision",
    response_model=DecisionResponse,
    summary="[Admin] Approve or reject a pending doctor",
)
async def decide(
    body: DecisionRequest,
    admin: CurrentSession = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> DecisionResponse:
    return await ctrl.decide(session, body.doctor_id, body.decision, admin)


@router.get(
    "/{doctor_id}",
    response_model=DoctorItem,
    summary="[Admin] Get one doctor",
)
async def get_doctor(
    doctor_id: uuid.UUID,
    admin: CurrentSession = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> DoctorItem:
    return await ctrl.get_doctor(session, doctor_id)


@router.patch(
    "/{doctor_id}/decision",
    response_model=DecisionResponse,
    summary="[Admin] Approve or reject a pending doctor",
    description="Only pending doctors can be decided; approved and rejected are terminal (409).",
)
async def decide_by_path(
    doctor_id: uuid.UUID,
    body: DecisionBody,
    admin: CurrentSession = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
) -> DecisionResponse:
    return await ctrl.decide(session, doctor_id, body.decision, admin)
