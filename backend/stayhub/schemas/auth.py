"""
StayHub Backend: Auth and Profile Schemas
==========================================

What:  Bodies and responses for /api/auth/* and the profile views of
       /api/users/*.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from stayhub.schemas.common import CamelModel


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class UserStatsOut(BaseModel):
    bookings: int = 0
    favorites: int = 0
    reviews: int = 0

    model_config = {"from_attributes": True}


class UserProfile(CamelModel):
    """Row of the `users` table as shown to clients."""
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    profile_image: Optional[str] = Field(default=None, alias="profileImage")
    phone: Optional[str] = None
    bio: Optional[str] = None
    language: Optional[str] = None
    gender: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserProfileWithStats(UserProfile):
    stats: Optional[UserStatsOut] = None


class PrincipalOut(BaseModel):
    """The identity backend's view of the caller."""
    id: uuid.UUID
    email: Optional[str] = None
    role: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class VerifiedUser(PrincipalOut):
    """Principal fields, enriched with the profile row when it exists."""
    name: Optional[str] = None
    profile_image: Optional[str] = Field(default=None, alias="profileImage")
    phone: Optional[str] = None
    bio: Optional[str] = None
    language: Optional[str] = None
    gender: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"populate_by_name": True}


class RegisterResponse(BaseModel):
    message: str = "Usuario registrado exitosamente"
    user: UserProfile


class LoginResponse(BaseModel):
    """
    `session` is passed through from the identity backend untouched
    (access_token, refresh_token, expires_in, ...).

    `user` is the profile row; if loading the profile failed the login still
    succeeds and `user` falls back to the identity backend's principal.
    """
    message: str
    session: Dict[str, Any]
    user: Union[UserProfile, PrincipalOut]


class MeResponse(BaseModel):
    user: UserProfileWithStats


class VerifyTokenResponse(BaseModel):
    success: bool = True
    message: str = "Token válido"
    user: VerifiedUser


# ══════════════════════════════════════════════════════════════════════════
# Users: catalogs, updates, profile image
# ══════════════════════════════════════════════════════════════════════════


class CatalogItem(BaseModel):
    code: str
    name: str

    model_config = {"from_attributes": True}


class CatalogsResponse(BaseModel):
    languages: List[CatalogItem]
    genders: List[CatalogItem]


class UserUpdateRequest(BaseModel):
    """
    Editable profile fields. Anything else in the body is ignored, so a
    client can't overwrite email or id through this endpoint.
    """
    name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=2000)
    language: Optional[str] = Field(default=None, max_length=10)
    gender: Optional[str] = Field(default=None, max_length=20)

    model_config = {"extra": "ignore"}


class ProfileImageResponse(CamelModel):
    image_url: str = Field(alias="imageUrl")
