"""
StayHub Backend: User Route Handlers
=====================================

What:  Catalogs, profile read/update, profile image upload.
Who:   The profile and account screens of the web and mobile clients.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_current_principal, get_scoped_session
from stayhub.exceptions import ValidationError
from stayhub.schemas.auth import (
    CatalogsResponse,
    ProfileImageResponse,
    UserProfile,
    UserProfileWithStats,
    UserUpdateRequest,
)
from stayhub.schemas.common import ErrorResponse
from stayhub.services.identity_service import Principal
from stayhub.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


# Registered before /{user_id} so "catalogs" is never parsed as an id
@router.get(
    "/catalogs",
    response_model=CatalogsResponse,
    summary="Languages and genders accepted on the profile",
)
async def get_catalogs(db: AsyncSession = Depends(get_scoped_session)) -> CatalogsResponse:
    return await user_service.catalogs(db)


@router.get(
    "/{user_id}",
    response_model=UserProfileWithStats,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Profile and stats of a user",
)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_scoped_session),
) -> UserProfileWithStats:
    return await user_service.get_profile(db, user_id)


@router.put(
    "/{user_id}",
    response_model=UserProfile,
    responses={
        400: {"description": "Unknown language or gender code", "model": ErrorResponse},
        403: {"description": "Not the caller's profile", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Update the caller's profile",
)
async def update_user(
    user_id: UUID,
    body: UserUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> UserProfile:
    return await user_service.update_profile(db, principal, user_id, body)


@router.put(
    "/{user_id}/profile-image",
    response_model=ProfileImageResponse,
    responses={
        400: {"description": "Missing, empty, too large or unsupported image", "model": ErrorResponse},
        403: {"description": "Not the caller's profile", "model": ErrorResponse},
        500: {"description": "Storage upload failed", "model": ErrorResponse},
    },
    summary="Upload a new profile image",
    description="Multipart form with an `image` field. JPEG, PNG or GIF, 5 MB at most.",
)
async def update_profile_image(
    user_id: UUID,
    image: Optional[UploadFile] = File(default=None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> ProfileImageResponse:
    if image is None:
        raise ValidationError(message="No se proporcionó ninguna imagen", field="image")

    content = await image.read()
    return await user_service.update_profile_image(
        db,
        principal,
        user_id,
        filename=image.filename,
        content_type=image.content_type,
        content=content,
    )
