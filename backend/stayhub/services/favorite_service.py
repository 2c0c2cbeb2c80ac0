"""
StayHub Backend: Favorites Service
===================================

What:  List, add and remove the caller's favorite rooms.

Uniqueness:
    (user_id, room_id) is unique. add_favorite checks first so the common
    case gets a clean 400; the unique constraint covers two concurrent adds.

Counters:
    Adding bumps user_stats.favorites. Removing decrements it only when a
    row was actually deleted, and the UPDATE clamps at zero.
"""

import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stayhub.exceptions import ConflictError, DatabaseError, NotFoundError
from stayhub.models.favorite import Favorite
from stayhub.models.room import Room
from stayhub.schemas.common import SuccessResponse
from stayhub.schemas.favorite import FavoriteCreatedResponse, FavoriteOut
from stayhub.schemas.room import RoomListResponse
from stayhub.services.pagination import build_pagination, order_clause, resolve_page_window
from stayhub.services.room_service import room_card
from stayhub.services.stats import increment_counter

logger = logging.getLogger(__name__)

FAVORITE_SORT_COLUMNS = {"created_at": Favorite.created_at}
DEFAULT_FAVORITE_SORT = "created_at:desc"


class FavoriteService:

    async def list_favorites(
        self,
        session: AsyncSession,
        user_id: uuid.UUID,
        sort: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> RoomListResponse:
        window = resolve_page_window(page, limit)
        order = order_clause(sort, FAVORITE_SORT_COLUMNS, DEFAULT_FAVORITE_SORT)

        try:
            total = await session.scalar(
                select(func.count()).select_from(Favorite).where(Favorite.user_id == user_id)
            )
            result = await session.execute(
                select(Favorite)
                .options(
                    selectinload(Favorite.room).selectinload(Room.images),
                    selectinload(Favorite.room).selectinload(Room.amenities),
                )
                .where(Favorite.user_id == user_id)
                .order_by(order, Favorite.id)
                .offset(window.offset)
                .limit(window.limit)
            )
            favorites = result.scalars().all()
        except Exception as e:
            logger.error("Error listing favorites: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error al obtener favoritos")

        return RoomListResponse(
            data=[room_card(fav.room, with_amenities=True) for fav in favorites if fav.room],
            pagination=build_pagination(total or 0, window.page, window.limit),
        )

    async def add_favorite(
        self, session: AsyncSession, user_id: uuid.UUID, room_id: uuid.UUID
    ) -> FavoriteCreatedResponse:
        """
        Raises:
            NotFoundError: room does not exist
            ConflictError: room already in the caller's favorites (400)
        """
        room_exists = await session.scalar(select(Room.id).where(Room.id == room_id))
        if room_exists is None:
            raise NotFoundError(resource="Habitación", resource_id=str(room_id))

        existing = await session.scalar(
            select(Favorite.id).where(Favorite.user_id == user_id, Favorite.room_id == room_id)
        )
        if existing is not None:
            raise ConflictError(
                message="La habitación ya está en favoritos", field="roomId"
            )

        favorite = Favorite(user_id=user_id, room_id=room_id)
        session.add(favorite)
        try:
            await session.flush()
        except IntegrityError:
            # Lost a race with a concurrent add of the same pair
            raise ConflictError(message="La habitación ya está en favoritos", field="roomId")

        await increment_counter(session, user_id, "favorites", 1)
        logger.info("Room %s added to favorites of %s", room_id, user_id)
        return FavoriteCreatedResponse(favorite=FavoriteOut.model_validate(favorite))

    async def remove_favorite(
        self, session: AsyncSession, user_id: uuid.UUID, room_id: uuid.UUID
    ) -> SuccessResponse:
        """Removing a room that isn't a favorite is a no-op success."""
        result = await session.execute(
            delete(Favorite).where(Favorite.user_id == user_id, Favorite.room_id == room_id)
        )
        if result.rowcount:
            await increment_counter(session, user_id, "favorites", -1)
            logger.info("Room %s removed from favorites of %s", room_id, user_id)
        return SuccessResponse()


# Singleton instance
favorite_service = FavoriteService()
