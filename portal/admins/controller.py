"""
Admin accounts domain — controller.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from portal.admins import service as svc
from portal.admins.schemas import (
    AdminItem,
    AdminListResponse,
    CreateAdminRequest,
    UpdateAdminRequest,
)
from portal_shared.models import CurrentSession


async def create_admin(
    session: AsyncSession, body: CreateAdminRequest, actor: CurrentSession
) -> AdminItem:
    admin = await svc.create_admin(
        session,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        created_by=actor.subject_id,
    )
    return AdminItem.model_validate(admin)


async def list_admins(session: AsyncSession, page: int, size: int) -> AdminListResponse:
    admins, total = await svc.list_admins(session, page=page, size=size)
    return AdminListResponse(
        items=[AdminItem.model_validate(a) for a in admins],
        total=total,
        page=page,
        size=size,
    )


async def get_admin(session: AsyncSession, admin_id: uuid.UUID) -> AdminItem:
    return AdminItem.model_validate(await svc.get_admin(session, admin_id))


async def update_admin(
    session: AsyncSession, admin_id: uuid.UUID, body: UpdateAdminRequest
) -> AdminItem:
    admin = await svc.update_admin(
        session,
        admin_id,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
    )
    return AdminItem.model_validate(admin)


async def delete_admin(session: AsyncSession, admin_id: uuid.UUID) -> None:
    await svc.delete_admin(session, admin_id)
