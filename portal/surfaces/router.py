"""
Role landing surfaces.

JSON stand-ins for the portal pages.  The protected ones are only reached
after session_routing_middleware has allowed the request, so the claims are
always on request.state; the pending/rejected notices are public.
"""
from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from portal_shared.constants import Role
from portal_shared.models import CurrentSession

router = APIRouter(tags=["surfaces"])

_PENDING_NOTICE = "Your account is pending approval. You will be able to use the portal once an administrator approves it."
_REJECTED_NOTICE = "Your registration was not approved. Please contact support."


class SurfaceResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    surface: str
    role: Role | None = None
    subject_id: str | None = None
    pending_approval: bool = False
    notice: str | None = None


def _surface(request: Request, name: str) -> SurfaceResponse:
    claims: CurrentSession = request.state.session_claims
    pending = bool(getattr(request.state, "pending_approval", False))
    return SurfaceResponse(
        surface=name,
        role=claims.role,
        subject_id=str(claims.subject_id),
        pending_approval=pending,
        notice=_PENDING_NOTICE if pending else None,
    )


@router.get("/admin/super", response_model=SurfaceResponse, response_model_exclude_none=True)
async def super_admin_home(request: Request) -> SurfaceResponse:
    return _surface(request, "superadmin")


@router.get("/admin/dashboard", response_model=SurfaceResponse, response_model_exclude_none=True)
async def admin_dashboard(request: Request) -> SurfaceResponse:
    return _surface(request, "admin")


@router.get("/doctor/dashboard", response_model=SurfaceResponse, response_model_exclude_none=True)
async def doctor_dashboard(request: Request) -> SurfaceResponse:
    return _surface(request, "doctor")


@router.get("/patient/dashboard", response_model=SurfaceResponse, response_model_exclude_none=True)
async def patient_dashboard(request: Request) -> SurfaceResponse:
    return _surface(request, "patient")


@router.get("/doctor/pending", response_model=SurfaceResponse, response_model_exclude_none=True)
async def doctor_pending() -> SurfaceResponse:
    return SurfaceResponse(surface="doctor-pending", pending_approval=True, notice=_PENDING_NOTICE)


@router.get("/doctor/rejected", response_model=SurfaceResponse, response_model_exclude_none=True)
async def doctor_rejected() -> SurfaceResponse:
    return SurfaceResponse(surface="doctor-rejected", notice=_REJECTED_NOTICE)
