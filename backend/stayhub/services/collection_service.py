"""
StayHub Backend: Collections Service
=====================================

What:  The caller's named room collections: list (with room cards), create,
       update (optionally replacing the room set), delete.

Ownership:
    Every lookup filters on user_id as well as id, so another user's
    collection is indistinguishable from a missing one (404).
"""

import logging
import uuid
from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stayhub.exceptions import DatabaseError, NotFoundError, StayHubError, ValidationError
from stayhub.models.favorite import Collection, collection_rooms
from stayhub.models.room import Room
from stayhub.schemas.common import SuccessResponse
from stayhub.schemas.favorite import (
    CollectionCreateRequest,
    CollectionOut,
    CollectionUpdateRequest,
    CollectionWithRooms,
)
from stayhub.services.room_service import room_card

logger = logging.getLogger(__name__)


class CollectionService:

    async def _owned(
        self, session: AsyncSession, user_id: uuid.UUID, collection_id: uuid.UUID
    ) -> Collection:
        collection = await session.scalar(
            select(Collection).where(
                Collection.id == collection_id, Collection.user_id == user_id
            )
        )
        if collection is None:
            raise NotFoundError(resource="Colección", resource_id=str(collection_id))
        return collection

    async def _attach_rooms(
        self, session: AsyncSession, collection_id: uuid.UUID, room_ids: Iterable[uuid.UUID]
    ) -> None:
        unique_ids: List[uuid.UUID] = list(dict.fromkeys(room_ids))
        if not unique_ids:
            return
        try:
            async with session.begin_nested():
                await session.execute(
                    pg_insert(collection_rooms)
                    .values([{"collection_id": collection_id, "room_id": rid} for rid in unique_ids])
                    .on_conflict_do_nothing()
                )
        except IntegrityError:
            raise ValidationError(
                message="Una o más habitaciones no existen",
                field="roomIds",
                context={"room_ids": [str(r) for r in unique_ids]},
            )

    async def list_collections(
        self, session: AsyncSession, user_id: uuid.UUID
    ) -> List[CollectionWithRooms]:
        try:
            result = await session.execute(
                select(Collection)
                .options(selectinload(Collection.rooms).selectinload(Room.images))
                .where(Collection.user_id == user_id)
                .order_by(Collection.created_at.desc())
            )
            collections = result.scalars().all()
        except Exception as e:
            logger.error("Error listing collections: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error al obtener colecciones")

        return [
            CollectionWithRooms(
                **CollectionOut.model_validate(c).model_dump(),
                rooms=[room_card(room) for room in c.rooms],
            )
            for c in collections
        ]

    async def create_collection(
        self, session: AsyncSession, user_id: uuid.UUID, request: CollectionCreateRequest
    ) -> CollectionOut:
        try:
            collection = Collection(
                user_id=user_id, name=request.name, description=request.description
            )
            session.add(collection)
            await session.flush()
            if request.room_ids:
                await self._attach_rooms(session, collection.id, request.room_ids)
        except StayHubError:
            raise
        except Exception as e:
            logger.error("Error creating collection: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error al crear colección")

        logger.info("Collection %s created for %s", collection.id, user_id)
        return CollectionOut.model_validate(collection)

    async def update_collection(
        self,
        session: AsyncSession,
        user_id: uuid.UUID,
        collection_id: uuid.UUID,
        request: CollectionUpdateRequest,
    ) -> CollectionOut:
        collection = await self._owned(session, user_id, collection_id)

        fields = request.model_fields_set
        if "name" in fields and request.name is not None:
            collection.name = request.name
        if "description" in fields:
            collection.description = request.description

        try:
            await session.flush()
            if request.room_ids is not None:
                await session.execute(
                    delete(collection_rooms).where(
                        collection_rooms.c.collection_id == collection_id
                    )
                )
                await self._attach_rooms(session, collection_id, request.room_ids)
        except StayHubError:
            raise
        except Exception as e:
            logger.error("Error updating collection %s: %s", collection_id, str(e), exc_info=True)
            raise DatabaseError(message="Error al actualizar colección")

        return CollectionOut.model_validate(collection)

    async def delete_collection(
        self, session: AsyncSession, user_id: uuid.UUID, collection_id: uuid.UUID
    ) -> SuccessResponse:
        await self._owned(session, user_id, collection_id)
        # collection_rooms rows go with it (ON DELETE CASCADE)
        await session.execute(
            delete(Collection).where(
                Collection.id == collection_id, Collection.user_id == user_id
            )
        )
        logger.info("Collection %s deleted", collection_id)
        return SuccessResponse()


# Singleton instance
collection_service = CollectionService()
