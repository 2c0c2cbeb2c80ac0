"""
StayHub Backend: Room Schemas
==============================

What:  Response shapes for /api/rooms/* and the room cards embedded in
       favorites and collections.

Two image shapes exist on purpose:
    Room cards (lists, favorites, collections) carry `images` as a flat list
    of URLs, primary first. Room detail and /rooms/{id}/images carry full
    image objects with isPrimary/createdAt.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from stayhub.schemas.common import CamelModel, PaginationMeta


class AmenityOut(BaseModel):
    id: uuid.UUID
    name: str
    icon: Optional[str] = None

    model_config = {"from_attributes": True}


class RoomImageOut(CamelModel):
    id: uuid.UUID
    url: str
    is_primary: bool = Field(alias="isPrimary")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class HostOut(CamelModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: Optional[str] = None
    profile_image: Optional[str] = Field(default=None, alias="profileImage")


class RoomBase(CamelModel):
    """Columns of the `rooms` table as returned to clients."""
    id: uuid.UUID
    title: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: float
    location: Optional[str] = None
    type: Optional[str] = None
    rating: Optional[float] = None
    is_featured: bool = False
    host_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RoomCard(RoomBase):
    images: List[str] = Field(default_factory=list, description="Image URLs, primary first")
    amenities: List[AmenityOut] = Field(default_factory=list)
    is_new: bool = Field(default=False, alias="isNew", description="Listed in the last 7 days")


class RoomListResponse(BaseModel):
    data: List[RoomCard]
    pagination: PaginationMeta


class RoomCardsResponse(BaseModel):
    data: List[RoomCard]


class RoomDetail(RoomBase):
    images: List[RoomImageOut] = Field(default_factory=list)
    amenities: List[AmenityOut] = Field(default_factory=list)
    host: Optional[HostOut] = None


class RoomImagesResponse(BaseModel):
    data: List[RoomImageOut]


class RoomAmenitiesResponse(BaseModel):
    success: bool = True
    data: List[AmenityOut]


class ImageRoomRef(BaseModel):
    id: uuid.UUID
    title: Optional[str] = None
    location: Optional[str] = None


class RoomImageDetail(RoomImageOut):
    room: Optional[ImageRoomRef] = None


class RoomImageResponse(BaseModel):
    data: RoomImageDetail


# ── POST /api/rooms/search ────────────────────────────────────────────────


class RoomSearchRequest(CamelModel):
    type: Optional[str] = None
    max_price: Optional[float] = Field(default=None, ge=0, alias="maxPrice")


class SearchImageOut(CamelModel):
    url: str
    is_primary: bool = Field(alias="isPrimary")


class RoomSearchItem(CamelModel):
    id: uuid.UUID
    name: Optional[str] = None
    description: Optional[str] = None
    price: float
    type: Optional[str] = None
    location: Optional[str] = None
    rating: Optional[float] = None
    images: List[SearchImageOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RoomSearchResponse(BaseModel):
    success: bool = True
    data: List[RoomSearchItem]
    count: int = 0
    message: Optional[str] = None
