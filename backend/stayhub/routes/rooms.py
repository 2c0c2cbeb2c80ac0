"""
StayHub Backend: Room Route Handlers
=====================================

What:  Room listing with filters, featured rooms, detail, images, amenities,
       a single image, and the type/price search.

Path order matters: /rooms/featured, /rooms/search and /rooms/image/{id}
are registered before /rooms/{room_id}.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_scoped_session
from stayhub.schemas.common import ErrorResponse
from stayhub.schemas.room import (
    RoomAmenitiesResponse,
    RoomCardsResponse,
    RoomDetail,
    RoomImageResponse,
    RoomImagesResponse,
    RoomListResponse,
    RoomSearchRequest,
    RoomSearchResponse,
)
from stayhub.services.room_service import room_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rooms", tags=["Rooms"])


@router.get(
    "",
    response_model=RoomListResponse,
    responses={400: {"description": "Bad pagination or sort", "model": ErrorResponse}},
    summary="List rooms with filters, sorting and pagination",
    description=(
        "Filters: location (case-insensitive substring), minPrice, maxPrice, type, "
        "amenities (comma-separated amenity ids, all required). "
        "Sort: `column[:asc|desc]` over created_at, price, rating, title, name."
    ),
)
async def list_rooms(
    location: Optional[str] = Query(default=None),
    min_price: Optional[float] = Query(default=None, alias="minPrice"),
    max_price: Optional[float] = Query(default=None, alias="maxPrice"),
    room_type: Optional[str] = Query(default=None, alias="type"),
    amenities: Optional[str] = Query(default=None),
    sort: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    limit: int = Query(default=10),
    db: AsyncSession = Depends(get_scoped_session),
) -> RoomListResponse:
    return await room_service.list_rooms(
        db,
        location=location,
        min_price=min_price,
        max_price=max_price,
        room_type=room_type,
        amenities=amenities,
        sort=sort,
        page=page,
        limit=limit,
    )


@router.get("/featured", response_model=RoomCardsResponse, summary="Featured rooms")
async def featured_rooms(db: AsyncSession = Depends(get_scoped_session)) -> RoomCardsResponse:
    return await room_service.featured_rooms(db)


@router.post("/search", response_model=RoomSearchResponse, summary="Search rooms by type and max price")
async def search_rooms(
    body: RoomSearchRequest,
    db: AsyncSession = Depends(get_scoped_session),
) -> RoomSearchResponse:
    return await room_service.search(db, room_type=body.type, max_price=body.max_price)


@router.get(
    "/image/{image_id}",
    response_model=RoomImageResponse,
    responses={404: {"description": "Image not found", "model": ErrorResponse}},
    summary="A single room image with its room",
)
async def get_image(
    image_id: UUID,
    db: AsyncSession = Depends(get_scoped_session),
) -> RoomImageResponse:
    return await room_service.get_image(db, image_id)


@router.get(
    "/{room_id}",
    response_model=RoomDetail,
    responses={404: {"description": "Room not found", "model": ErrorResponse}},
    summary="Room detail with amenities, images and host",
)
async def get_room(
    room_id: UUID,
    db: AsyncSession = Depends(get_scoped_session),
) -> RoomDetail:
    return await room_service.get_room(db, room_id)


@router.get(
    "/{room_id}/images",
    response_model=RoomImagesResponse,
    responses={404: {"description": "Room has no images", "model": ErrorResponse}},
    summary="Images of a room, primary first",
)
async def get_room_images(
    room_id: UUID,
    db: AsyncSession = Depends(get_scoped_session),
) -> RoomImagesResponse:
    return await room_service.room_images(db, room_id)


@router.get(
    "/{room_id}/amenities",
    response_model=RoomAmenitiesResponse,
    responses={404: {"description": "Room not found", "model": ErrorResponse}},
    summary="Amenities of a room",
)
async def get_room_amenities(
    room_id: UUID,
    db: AsyncSession = Depends(get_scoped_session),
) -> RoomAmenitiesResponse:
    return await room_service.room_amenities(db, room_id)
