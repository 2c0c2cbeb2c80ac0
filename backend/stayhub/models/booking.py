"""
StayHub Backend: Booking Model
===============================

What:  ORM mapping of the `bookings` table.

Lifecycle:
    active     Created by POST /api/bookings (pay-at-property flow)
    paid       Created by the payment webhook after a completed checkout
    cancelled  Set by PUT /api/bookings/{id}/cancel (only from `active`)

    `price` is fixed at creation (room price × nights) and never recomputed.
    `payment_session_id` links a paid booking to its checkout session and is
    unique, which makes webhook redelivery idempotent.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stayhub.database import Base
from stayhub.models.room import Room

BOOKING_ACTIVE = "active"
BOOKING_CANCELLED = "cancelled"
BOOKING_PAID = "paid"


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    room_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("rooms.id"), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BOOKING_ACTIVE, server_default=text("'active'")
    )
    payment_session_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    room: Mapped[Room] = relationship(lazy="raise")

    __table_args__ = (
        Index("idx_bookings_user_created", "user_id", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, room_id={self.room_id}, status='{self.status}')>"
