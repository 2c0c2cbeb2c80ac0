"""
StayHub Backend: Booking Schemas
=================================

What:  Create body, list items and the booking detail view.

Dates:
    startDate/endDate accept plain dates ("2024-04-10") or datetimes. The
    night count is ceil(span / 24h) computed on the values as sent; only the
    date part is stored.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from stayhub.schemas.common import CamelModel, PaginationMeta
from stayhub.schemas.room import HostOut, RoomBase


class BookingCreateRequest(CamelModel):
    room_id: uuid.UUID = Field(alias="roomId")
    start_date: Union[date, datetime] = Field(alias="startDate")
    end_date: Union[date, datetime] = Field(alias="endDate")


class BookingOut(CamelModel):
    id: uuid.UUID
    room_id: uuid.UUID = Field(alias="roomId")
    room_name: Optional[str] = Field(default=None, alias="roomName")
    room_image: Optional[str] = Field(default=None, alias="roomImage")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    price: float
    status: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class BookingListResponse(BaseModel):
    data: List[BookingOut]
    pagination: PaginationMeta


class ReviewUser(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    image: Optional[str] = None


class ReviewItem(BaseModel):
    id: uuid.UUID
    user: Optional[ReviewUser] = None
    rating: int
    comment: Optional[str] = None
    date: Optional[datetime] = None


class ReviewSummary(BaseModel):
    average: float = 0
    count: int = 0
    items: List[ReviewItem] = Field(default_factory=list)


class BookingRoom(RoomBase):
    images: List[str] = Field(default_factory=list)
    host: Optional[HostOut] = None
    reviews: ReviewSummary = Field(default_factory=ReviewSummary)


class BookingDetail(BookingOut):
    room: BookingRoom
