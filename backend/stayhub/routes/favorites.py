"""
StayHub Backend: Favorites Route Handlers
==========================================

What:  GET/POST /api/favorites and DELETE /api/favorites/{room_id}.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_current_principal, get_scoped_session
from stayhub.schemas.common import ErrorResponse, SuccessResponse
from stayhub.schemas.favorite import FavoriteCreatedResponse, FavoriteCreateRequest
from stayhub.schemas.room import RoomListResponse
from stayhub.services.favorite_service import favorite_service
from stayhub.services.identity_service import Principal

router = APIRouter(prefix="/api/favorites", tags=["Favorites"])


@router.get("", response_model=RoomListResponse, summary="The caller's favorite rooms")
async def list_favorites(
    sort: str = Query(default="created_at:desc"),
    page: int = Query(default=1),
    limit: int = Query(default=10),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> RoomListResponse:
    return await favorite_service.list_favorites(
        db, principal.user_id, sort=sort, page=page, limit=limit
    )


@router.post(
    "",
    response_model=FavoriteCreatedResponse,
    status_code=201,
    responses={
        400: {"description": "Room already in favorites", "model": ErrorResponse},
        404: {"description": "Room not found", "model": ErrorResponse},
    },
    summary="Add a room to favorites",
)
async def add_favorite(
    body: FavoriteCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> FavoriteCreatedResponse:
    return await favorite_service.add_favorite(db, principal.user_id, body.room_id)


@router.delete("/{room_id}", response_model=SuccessResponse, summary="Remove a room from favorites")
async def remove_favorite(
    room_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> SuccessResponse:
    return await favorite_service.remove_favorite(db, principal.user_id, room_id)
