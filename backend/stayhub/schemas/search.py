"""
StayHub Backend: Search Schemas
================================
"""

import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel


class Suggestion(BaseModel):
    type: Literal["room", "location"]
    id: uuid.UUID
    name: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None


class SuggestionsResponse(BaseModel):
    success: bool = True
    data: List[Suggestion]


class LocationOut(BaseModel):
    id: uuid.UUID
    name: str
    city: Optional[str] = None
    popularity: int = 0

    model_config = {"from_attributes": True}


class LocationsResponse(BaseModel):
    success: bool = True
    data: List[LocationOut]
