"""
Approval domain — Pydantic V2 request/response schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from portal.auth.constants import ApprovalDecision, DoctorStatus


class _Base(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _Out(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class DecisionRequest(_Base):
    doctor_id: uuid.UUID
    decision: ApprovalDecision


class DecisionBody(_Base):
    """Body for PATCH /admin/doctors/{id}/decision (the id is in the path)."""

    decision: ApprovalDecision


class DoctorItem(_Out):
    id: uuid.UUID
    email: str
    full_name: str | None
    phone: str | None
    license_number: str | None
    specialty: str | None
    status: DoctorStatus
    decided_by: uuid.UUID | None
    decided_at: datetime | None
    created_at: datetime


class DoctorQueueResponse(_Out):
    items: list[DoctorItem]
    total: int
    page: int
    size: int


class DecisionResponse(_Out):
    success: bool = True
    message: str
    doctor: DoctorItem
