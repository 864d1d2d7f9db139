"""
Admin accounts — super-admin routes.

Routes:
  GET    /api/v1/superadmin/admins             Paged admin list
  POST   /api/v1/superadmin/admins             Create an admin
  GET    /api/v1/superadmin/admins/{admin_id}  One admin
  PATCH  /api/v1/superadmin/admins/{admin_id}  Update email / password / name
  DELETE /api/v1/superadmin/admins/{admin_id}  Remove an admin

Requires: superadmin role.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.admins import controller as ctrl
from portal.admins.schemas import (
    AdminItem,
    AdminListResponse,
    CreateAdminRequest,
    UpdateAdminRequest,
)
from portal.auth.dependencies import require_super_admin
from portal.database import get_db
from portal_shared.models import CurrentSession

router = APIRouter(prefix="/superadmin/admins", tags=["superadmin-admins"])


@router.get("", response_model=AdminListResponse, summary="[Super-admin] List admins")
async def list_admins(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    actor: CurrentSession = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db),
) -> AdminListResponse:
    return await ctrl.list_admins(session, page, size)


@router.post(
    "",
    response_model=AdminItem,
    status_code=status.HTTP_201_CREATED,
    summary="[Super-admin] Create an admin account",
)
async def create_admin(
    body: CreateAdminRequest,
    actor: CurrentSession = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db),
) -> AdminItem:
    return await ctrl.create_admin(session, body, actor)


@router.get("/{admin_id}", response_model=AdminItem, summary="[Super-admin] Get an admin")
async def get_admin(
    admin_id: uuid.UUID,
    actor: CurrentSession = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db),
) -> AdminItem:
    return await ctrl.get_admin(session, admin_id)


@router.patch("/{admin_id}", response_model=AdminItem, summary="[Super-admin] Update an admin")
async def update_admin(
    admin_id: uuid.UUID,
    body: UpdateAdminRequest,
    actor: CurrentSession = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db),
) -> AdminItem:
    return await ctrl.update_admin(session, admin_id, body)


@router.delete(
    "/{admin_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Super-admin] Delete an admin",
)
async def delete_admin(
    admin_id: uuid.UUID,
    actor: CurrentSession = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db),
) -> None:
    await ctrl.delete_admin(session, admin_id)
