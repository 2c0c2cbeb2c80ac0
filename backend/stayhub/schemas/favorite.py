"""
StayHub Backend: Favorite and Collection Schemas
=================================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from stayhub.schemas.common import CamelModel
from stayhub.schemas.room import RoomCard


class FavoriteCreateRequest(CamelModel):
    room_id: uuid.UUID = Field(alias="roomId")


class FavoriteOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    room_id: uuid.UUID
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class FavoriteCreatedResponse(BaseModel):
    success: bool = True
    favorite: FavoriteOut


class CollectionCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    room_ids: Optional[List[uuid.UUID]] = Field(default=None, alias="roomIds")


class CollectionUpdateRequest(CamelModel):
    """
    Omitted fields are left alone. `roomIds`, when present, replaces the
    whole room set (an empty list clears it).
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    room_ids: Optional[List[uuid.UUID]] = Field(default=None, alias="roomIds")


class CollectionOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CollectionWithRooms(CollectionOut):
    rooms: List[RoomCard] = Field(default_factory=list)
