"""
StayHub Backend: Settings Route Handlers
=========================================

What:  The caller's settings (GET/PUT /api/settings) and admin access to
       another user's settings (GET/PUT /api/settings/user/{user_id}).

Sessions:
    Own settings run on the caller-scoped session. The admin routes check
    the role first and then use the trusted session, since row-level
    policies only expose the caller's own row.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_current_principal, get_scoped_session
from stayhub.database import get_db_session
from stayhub.schemas.common import ErrorResponse
from stayhub.schemas.settings import SettingsRecord, SettingsUpdateRequest
from stayhub.services.identity_service import Principal
from stayhub.services.settings_service import settings_service

router = APIRouter(prefix="/api/settings", tags=["Settings"])

_ADMIN_RESPONSES = {
    403: {"description": "Caller is not an admin", "model": ErrorResponse},
    500: {"description": "Database error", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=SettingsRecord,
    summary="The caller's settings",
    description="Missing sections are filled with defaults; a user without a row gets one created.",
)
async def get_settings(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> SettingsRecord:
    return await settings_service.get_settings(db, principal.user_id)


@router.put(
    "",
    response_model=SettingsRecord,
    summary="Partially update the caller's settings",
    description="Only the keys sent are changed; other keys of each section are kept.",
)
async def update_settings(
    body: SettingsUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> SettingsRecord:
    return await settings_service.update_settings(db, principal.user_id, body)


@router.get(
    "/user/{user_id}",
    response_model=SettingsRecord,
    responses=_ADMIN_RESPONSES,
    summary="Settings of any user (admin)",
)
async def get_user_settings(
    user_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
) -> SettingsRecord:
    await settings_service.ensure_can_access(db, principal, user_id)
    return await settings_service.get_settings(db, user_id)


@router.put(
    "/user/{user_id}",
    response_model=SettingsRecord,
    responses=_ADMIN_RESPONSES,
    summary="Partially update any user's settings (admin)",
)
async def update_user_settings(
    user_id: UUID,
    body: SettingsUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
) -> SettingsRecord:
    await settings_service.ensure_can_access(db, principal, user_id)
    return await settings_service.update_settings(db, user_id, body)
