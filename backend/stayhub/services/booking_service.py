"""
StayHub Backend: Booking Service
=================================

What:  Create, list, detail and cancel bookings for the calling user.

Pricing:
    nights = ceil((end - start) / 24h)
    price  = room.price × nights     (fixed at creation, never recomputed)

    A range with nights <= 0 (end on or before start) is rejected with 400.

Counters:
    Creating a booking bumps user_stats.bookings with an atomic UPDATE in
    the same transaction as the insert; if either fails, neither is kept.
"""

import logging
import math
import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stayhub.exceptions import DatabaseError, NotFoundError, StayHubError, ValidationError
from stayhub.models.booking import (
    BOOKING_ACTIVE,
    BOOKING_CANCELLED,
    BOOKING_PAID,
    Booking,
)
from stayhub.models.room import Review, Room
from stayhub.schemas.booking import (
    BookingCreateRequest,
    BookingDetail,
    BookingListResponse,
    BookingOut,
    BookingRoom,
    ReviewItem,
    ReviewSummary,
    ReviewUser,
)
from stayhub.schemas.common import SuccessResponse
from stayhub.services.pagination import build_pagination, order_clause, resolve_page_window
from stayhub.services.room_service import host_out, primary_first, room_columns
from stayhub.services.stats import increment_counter

logger = logging.getLogger(__name__)

SECONDS_PER_NIGHT = 86400
BOOKING_STATUSES = {BOOKING_ACTIVE, BOOKING_CANCELLED, BOOKING_PAID}

BOOKING_SORT_COLUMNS = {
    "created_at": Booking.created_at,
    "start_date": Booking.start_date,
    "end_date": Booking.end_date,
    "price": Booking.price,
}
DEFAULT_BOOKING_SORT = "created_at:desc"

DateLike = Union[date, datetime]


def _as_utc_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def count_nights(start: DateLike, end: DateLike) -> int:
    """
    >>> count_nights(date(2024, 4, 10), date(2024, 4, 12))
    2
    """
    seconds = (_as_utc_datetime(end) - _as_utc_datetime(start)).total_seconds()
    return math.ceil(seconds / SECONDS_PER_NIGHT)


def booking_out(booking: Booking) -> BookingOut:
    """Requires booking.room and booking.room.images to be loaded."""
    room = booking.room
    images = primary_first(room.images) if room is not None else []
    return BookingOut(
        id=booking.id,
        room_id=booking.room_id,
        room_name=room.display_name if room is not None else None,
        room_image=images[0].url if images else None,
        start_date=booking.start_date,
        end_date=booking.end_date,
        price=booking.price,
        status=booking.status,
        created_at=booking.created_at,
    )


class BookingService:

    async def _load(
        self, session: AsyncSession, booking_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[Booking]:
        result = await session.execute(
            select(Booking)
            .options(selectinload(Booking.room).selectinload(Room.images))
            .where(Booking.id == booking_id, Booking.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_booking(
        self,
        session: AsyncSession,
        user_id: uuid.UUID,
        request: BookingCreateRequest,
    ) -> BookingOut:
        """
        Raises:
            NotFoundError: room does not exist
            ValidationError: end date not after start date
            DatabaseError: insert or counter update failed
        """
        room = await session.scalar(select(Room).where(Room.id == request.room_id))
        if room is None:
            raise NotFoundError(resource="Habitación", resource_id=str(request.room_id))

        nights = count_nights(request.start_date, request.end_date)
        if nights <= 0:
            raise ValidationError(
                message="La fecha de salida debe ser posterior a la fecha de entrada",
                field="endDate",
                context={"nights": nights},
            )

        price = Decimal(room.price) * nights

        try:
            booking = Booking(
                user_id=user_id,
                room_id=room.id,
                start_date=_as_date(request.start_date),
                end_date=_as_date(request.end_date),
                price=price,
                status=BOOKING_ACTIVE,
            )
            session.add(booking)
            await session.flush()
            await increment_counter(session, user_id, "bookings", 1)

            created = await self._load(session, booking.id, user_id)
        except StayHubError:
            raise
        except Exception as e:
            logger.error("Error creating booking for room %s: %s", room.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Error al crear la reserva",
                context={"room_id": str(room.id), "original_error": type(e).__name__},
            )

        logger.info("Booking %s created: %d nights, price %s", booking.id, nights, price)
        return booking_out(created)

    async def list_bookings(
        self,
        session: AsyncSession,
        user_id: uuid.UUID,
        status: Optional[str] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> BookingListResponse:
        window = resolve_page_window(page, limit)
        order = order_clause(sort, BOOKING_SORT_COLUMNS, DEFAULT_BOOKING_SORT)

        filters = [Booking.user_id == user_id]
        if status:
            if status not in BOOKING_STATUSES:
                raise ValidationError(
                    message=f"Invalid status '{status}'",
                    field="status",
                    context={"allowed": sorted(BOOKING_STATUSES)},
                )
            filters.append(Booking.status == status)

        try:
            total = await session.scalar(
                select(func.count()).select_from(Booking).where(*filters)
            )
            result = await session.execute(
                select(Booking)
                .options(selectinload(Booking.room).selectinload(Room.images))
                .where(*filters)
                .order_by(order, Booking.id)
                .offset(window.offset)
                .limit(window.limit)
            )
            bookings = result.scalars().all()
        except Exception as e:
            logger.error("Error listing bookings: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error al obtener reservas")

        return BookingListResponse(
            data=[booking_out(b) for b in bookings],
            pagination=build_pagination(total or 0, window.page, window.limit),
        )

    async def get_booking(
        self, session: AsyncSession, user_id: uuid.UUID, booking_id: uuid.UUID
    ) -> BookingDetail:
        """Booking with its room, host and reviews (average rating included)."""
        result = await session.execute(
            select(Booking)
            .options(
                selectinload(Booking.room).selectinload(Room.images),
                selectinload(Booking.room).selectinload(Room.host),
                selectinload(Booking.room)
                .selectinload(Room.reviews)
                .selectinload(Review.user),
            )
            .where(Booking.id == booking_id, Booking.user_id == user_id)
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError(resource="Reserva", resource_id=str(booking_id))

        room = booking.room
        reviews = room.reviews
        average = sum(r.rating for r in reviews) / len(reviews) if reviews else 0

        summary = ReviewSummary(
            average=average,
            count=len(reviews),
            items=[
                ReviewItem(
                    id=r.id,
                    user=ReviewUser(id=r.user.id, name=r.user.name, image=r.user.profile_image)
                    if r.user is not None
                    else None,
                    rating=r.rating,
                    comment=r.comment,
                    date=r.created_at,
                )
                for r in reviews
            ],
        )

        return BookingDetail(
            **booking_out(booking).model_dump(),
            room=BookingRoom(
                **room_columns(room),
                images=[img.url for img in primary_first(room.images)],
                host=host_out(room),
                reviews=summary,
            ),
        )

    async def cancel_booking(
        self, session: AsyncSession, user_id: uuid.UUID, booking_id: uuid.UUID
    ) -> SuccessResponse:
        """Only active bookings can be cancelled; paid ones go through refunds."""
        booking = await session.scalar(
            select(Booking).where(Booking.id == booking_id, Booking.user_id == user_id)
        )
        if booking is None:
            raise NotFoundError(resource="Reserva", resource_id=str(booking_id))

        if booking.status != BOOKING_ACTIVE:
            raise ValidationError(
                message="Solo se pueden cancelar reservas activas",
                field="status",
                context={"status": booking.status},
            )

        booking.status = BOOKING_CANCELLED
        await session.flush()
        logger.info("Booking %s cancelled", booking_id)
        return SuccessResponse()


# Singleton instance
booking_service = BookingService()
