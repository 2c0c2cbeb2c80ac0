"""
StayHub Backend: Booking Route Handlers
========================================

What:  List, create, detail and cancel the caller's bookings.

Price is computed server side (room price × nights); clients never send it.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_current_principal, get_scoped_session
from stayhub.schemas.booking import (
    BookingCreateRequest,
    BookingDetail,
    BookingListResponse,
    BookingOut,
)
from stayhub.schemas.common import ErrorResponse, SuccessResponse
from stayhub.services.booking_service import booking_service
from stayhub.services.identity_service import Principal

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.get(
    "",
    response_model=BookingListResponse,
    responses={400: {"description": "Bad status, sort or pagination", "model": ErrorResponse}},
    summary="The caller's bookings, newest first",
)
async def list_bookings(
    status: Optional[str] = Query(default=None, description="active, cancelled or paid"),
    sort: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    limit: int = Query(default=10),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> BookingListResponse:
    return await booking_service.list_bookings(
        db, principal.user_id, status=status, sort=sort, page=page, limit=limit
    )


@router.post(
    "",
    response_model=BookingOut,
    status_code=201,
    responses={
        400: {"description": "End date not after start date", "model": ErrorResponse},
        404: {"description": "Room not found", "model": ErrorResponse},
    },
    summary="Book a room",
)
async def create_booking(
    body: BookingCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> BookingOut:
    return await booking_service.create_booking(db, principal.user_id, body)


@router.get(
    "/{booking_id}",
    response_model=BookingDetail,
    responses={404: {"description": "Booking not found", "model": ErrorResponse}},
    summary="Booking detail with room, host and reviews",
)
async def get_booking(
    booking_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> BookingDetail:
    return await booking_service.get_booking(db, principal.user_id, booking_id)


@router.put(
    "/{booking_id}/cancel",
    response_model=SuccessResponse,
    responses={
        400: {"description": "Booking is not active", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
    },
    summary="Cancel an active booking",
)
async def cancel_booking(
    booking_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> SuccessResponse:
    return await booking_service.cancel_booking(db, principal.user_id, booking_id)
