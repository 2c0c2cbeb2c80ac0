"""
StayHub Backend: User Profile Service
======================================

What:  Profile bootstrap (users + user_stats rows), profile reads and
       updates, catalogs, and the profile image flow.

Bootstrap:
    The identity backend owns credentials; the `users` row is created here
    the first time a user registers or logs in, named after the local part
    of the email. INSERT ... ON CONFLICT DO NOTHING makes repeated logins
    (or two concurrent ones) harmless.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stayhub.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    StayHubError,
    ValidationError,
)
from stayhub.models.user import Gender, Language, User, UserStats
from stayhub.schemas.auth import (
    CatalogItem,
    CatalogsResponse,
    ProfileImageResponse,
    UserProfile,
    UserProfileWithStats,
    UserStatsOut,
    UserUpdateRequest,
)
from stayhub.services.file_service import file_service
from stayhub.services.identity_service import Principal

logger = logging.getLogger(__name__)


def profile_out(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        email=user.email,
        name=user.name,
        profile_image=user.profile_image,
        phone=user.phone,
        bio=user.bio,
        language=user.language,
        gender=user.gender,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserService:

    async def ensure_profile(
        self, session: AsyncSession, user_id: uuid.UUID, email: str
    ) -> User:
        """Return the profile row, creating it (and its stats row) if missing."""
        try:
            await session.execute(
                pg_insert(User)
                .values(id=user_id, email=email, name=email.split("@")[0])
                .on_conflict_do_nothing(index_elements=[User.id])
            )
            await session.execute(
                pg_insert(UserStats)
                .values(user_id=user_id, bookings=0, favorites=0, reviews=0)
                .on_conflict_do_nothing(index_elements=[UserStats.user_id])
            )
            user = await session.scalar(select(User).where(User.id == user_id))
        except Exception as e:
            logger.error("Profile bootstrap failed for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Error al crear el perfil de usuario",
                context={"user_id": str(user_id), "original_error": type(e).__name__},
            )
        return user

    async def get_profile(self, session: AsyncSession, user_id: uuid.UUID) -> UserProfileWithStats:
        user = await session.scalar(
            select(User).options(selectinload(User.stats)).where(User.id == user_id)
        )
        if user is None:
            raise NotFoundError(resource="Usuario", resource_id=str(user_id))

        return UserProfileWithStats(
            **profile_out(user).model_dump(),
            stats=UserStatsOut.model_validate(user.stats) if user.stats else None,
        )

    async def catalogs(self, session: AsyncSession) -> CatalogsResponse:
        languages = (await session.execute(select(Language).order_by(Language.name))).scalars()
        genders = (await session.execute(select(Gender).order_by(Gender.name))).scalars()
        return CatalogsResponse(
            languages=[CatalogItem.model_validate(lang) for lang in languages],
            genders=[CatalogItem.model_validate(g) for g in genders],
        )

    async def _validate_catalog_fields(
        self, session: AsyncSession, request: UserUpdateRequest
    ) -> None:
        if request.language:
            found = await session.scalar(
                select(Language.code).where(Language.code == request.language)
            )
            if found is None:
                raise ValidationError(
                    message="Idioma no válido. Use uno de los códigos del catálogo.",
                    field="language",
                )
        if request.gender:
            found = await session.scalar(select(Gender.code).where(Gender.code == request.gender))
            if found is None:
                raise ValidationError(
                    message="Género no válido. Use uno de los códigos del catálogo.",
                    field="gender",
                )

    @staticmethod
    def _ensure_self(principal: Principal, user_id: uuid.UUID, message: str) -> None:
        if principal.id != str(user_id):
            raise AuthorizationError(message=message, context={"user_id": str(user_id)})

    async def update_profile(
        self,
        session: AsyncSession,
        principal: Principal,
        user_id: uuid.UUID,
        request: UserUpdateRequest,
    ) -> UserProfile:
        """
        Raises:
            AuthorizationError: updating someone else's profile
            ValidationError: language/gender not in the catalogs
            NotFoundError: no profile row
        """
        self._ensure_self(principal, user_id, "No autorizado para actualizar este perfil")
        await self._validate_catalog_fields(session, request)

        user = await session.scalar(select(User).where(User.id == user_id))
        if user is None:
            raise NotFoundError(resource="Usuario", resource_id=str(user_id))

        for field_name, value in request.model_dump(exclude_unset=True).items():
            setattr(user, field_name, value)
        user.updated_at = datetime.now(timezone.utc)
        await session.flush()

        logger.info("Profile %s updated", user_id)
        return profile_out(user)

    async def update_profile_image(
        self,
        session: AsyncSession,
        principal: Principal,
        user_id: uuid.UUID,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> ProfileImageResponse:
        self._ensure_self(principal, user_id, "No autorizado para actualizar esta imagen")

        user = await session.scalar(select(User).where(User.id == user_id))
        if user is None:
            raise NotFoundError(resource="Usuario", resource_id=str(user_id))

        stored = await file_service.upload_profile_image(
            user_id=str(user_id),
            filename=filename,
            content_type=content_type,
            content=content,
        )

        try:
            user.profile_image = stored.url
            user.updated_at = datetime.now(timezone.utc)
            await session.flush()
        except Exception as e:
            logger.error("Could not store image URL for %s: %s", user_id, str(e), exc_info=True)
            # Nothing references the new object
            await file_service.cleanup_object(stored.name)
            if isinstance(e, StayHubError):
                raise
            raise DatabaseError(message="Error al actualizar la imagen de perfil")

        return ProfileImageResponse(image_url=stored.url)


# Singleton instance
user_service = UserService()
