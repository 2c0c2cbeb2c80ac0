"""
StayHub Backend: Room Service
==============================

What:  Room catalog queries: filtered/paginated listing, featured rooms,
       detail, images, amenities, single image, and the simple POST search.
Who:   /api/rooms/* routes; room_card() is reused by favorites and
       collections.

Query pattern:
    One COUNT with the filters, then one page SELECT with images (and, for
    cards that show them, amenities) loaded through selectinload. All
    queries run on the caller's scoped session.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stayhub.exceptions import DatabaseError, NotFoundError, StayHubError, ValidationError
from stayhub.models.room import Room, RoomImage, room_amenities
from stayhub.schemas.room import (
    AmenityOut,
    HostOut,
    ImageRoomRef,
    RoomAmenitiesResponse,
    RoomCard,
    RoomCardsResponse,
    RoomDetail,
    RoomImageDetail,
    RoomImageOut,
    RoomImageResponse,
    RoomImagesResponse,
    RoomListResponse,
    RoomSearchItem,
    RoomSearchResponse,
    SearchImageOut,
)
from stayhub.services.pagination import build_pagination, order_clause, resolve_page_window

logger = logging.getLogger(__name__)

NEW_ROOM_WINDOW = timedelta(days=7)
FEATURED_LIMIT = 10

ROOM_SORT_COLUMNS = {
    "created_at": Room.created_at,
    "price": Room.price,
    "rating": Room.rating,
    "title": Room.title,
    "name": Room.name,
}
DEFAULT_ROOM_SORT = "created_at:desc"


# ══════════════════════════════════════════════════════════════════════════
# Shaping helpers
# ══════════════════════════════════════════════════════════════════════════


def room_columns(room: Room) -> Dict[str, Any]:
    return {
        "id": room.id,
        "title": room.title,
        "name": room.name,
        "description": room.description,
        "price": room.price,
        "location": room.location,
        "type": room.type,
        "rating": room.rating,
        "is_featured": room.is_featured,
        "host_id": room.host_id,
        "created_at": room.created_at,
        "updated_at": room.updated_at,
    }


def primary_first(images: List[RoomImage]) -> List[RoomImage]:
    # sorted() is stable, so non-primary images keep their upload order
    return sorted(images, key=lambda img: not img.is_primary)


def is_new(created_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if created_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return now - created_at < NEW_ROOM_WINDOW


def room_card(room: Room, with_amenities: bool = False) -> RoomCard:
    """
    Room as a list card. `with_amenities` must only be set when the query
    loaded Room.amenities; the relationship raises otherwise.
    """
    return RoomCard(
        **room_columns(room),
        images=[img.url for img in primary_first(room.images)],
        amenities=[AmenityOut.model_validate(a) for a in room.amenities] if with_amenities else [],
        is_new=is_new(room.created_at),
    )


def image_out(image: RoomImage) -> RoomImageOut:
    return RoomImageOut(
        id=image.id,
        url=image.url,
        is_primary=image.is_primary,
        created_at=image.created_at,
    )


def host_out(room: Room) -> Optional[HostOut]:
    if room.host is None:
        return None
    return HostOut(
        id=room.host.id,
        name=room.host.name,
        email=room.host.email,
        profile_image=room.host.profile_image,
    )


def parse_amenity_ids(raw: Optional[str]) -> List[uuid.UUID]:
    """Comma-separated amenity ids from the query string."""
    if not raw:
        return []
    try:
        return [uuid.UUID(part.strip()) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValidationError(
            message="amenities must be a comma-separated list of ids", field="amenities"
        )


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════


class RoomService:

    async def _ensure_room(self, session: AsyncSession, room_id: uuid.UUID) -> None:
        exists = await session.scalar(select(Room.id).where(Room.id == room_id))
        if exists is None:
            raise NotFoundError(resource="Habitación", resource_id=str(room_id))

    async def list_rooms(
        self,
        session: AsyncSession,
        location: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        room_type: Optional[str] = None,
        amenities: Optional[str] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> RoomListResponse:
        """
        Filters combine with AND. `amenities` keeps rooms that have every
        listed amenity.
        """
        window = resolve_page_window(page, limit)
        order = order_clause(sort, ROOM_SORT_COLUMNS, DEFAULT_ROOM_SORT)

        filters = []
        if location:
            filters.append(Room.location.icontains(location, autoescape=True))
        if min_price is not None:
            filters.append(Room.price >= min_price)
        if max_price is not None:
            filters.append(Room.price <= max_price)
        if room_type:
            filters.append(Room.type == room_type)
        for amenity_id in parse_amenity_ids(amenities):
            filters.append(
                Room.id.in_(
                    select(room_amenities.c.room_id).where(
                        room_amenities.c.amenity_id == amenity_id
                    )
                )
            )

        try:
            total = await session.scalar(
                select(func.count()).select_from(Room).where(*filters)
            )
            result = await session.execute(
                select(Room)
                .options(selectinload(Room.images), selectinload(Room.amenities))
                .where(*filters)
                .order_by(order, Room.id)
                .offset(window.offset)
                .limit(window.limit)
            )
            rooms = result.scalars().all()
        except Exception as e:
            logger.error("Error listing rooms: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error al obtener habitaciones")

        return RoomListResponse(
            data=[room_card(room, with_amenities=True) for room in rooms],
            pagination=build_pagination(total or 0, window.page, window.limit),
        )

    async def featured_rooms(self, session: AsyncSession) -> RoomCardsResponse:
        try:
            result = await session.execute(
                select(Room)
                .options(selectinload(Room.images), selectinload(Room.amenities))
                .where(Room.is_featured.is_(True))
                .order_by(Room.created_at.desc())
                .limit(FEATURED_LIMIT)
            )
            rooms = result.scalars().all()
        except Exception as e:
            logger.error("Error loading featured rooms: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error al obtener habitaciones destacadas")

        return RoomCardsResponse(data=[room_card(room, with_amenities=True) for room in rooms])

    async def get_room(self, session: AsyncSession, room_id: uuid.UUID) -> RoomDetail:
        try:
            result = await session.execute(
                select(Room)
                .options(
                    selectinload(Room.images),
                    selectinload(Room.amenities),
                    selectinload(Room.host),
                )
                .where(Room.id == room_id)
            )
            room = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Error loading room %s: %s", room_id, str(e), exc_info=True)
            raise DatabaseError(message="Error al obtener la habitación")

        if room is None:
            raise NotFoundError(resource="Habitación", resource_id=str(room_id))

        return RoomDetail(
            **room_columns(room),
            images=[image_out(img) for img in room.images],
            amenities=[AmenityOut.model_validate(a) for a in room.amenities],
            host=host_out(room),
        )

    async def room_images(self, session: AsyncSession, room_id: uuid.UUID) -> RoomImagesResponse:
        """Images of a room, primary first. A room without images is a 404."""
        result = await session.execute(
            select(RoomImage)
            .where(RoomImage.room_id == room_id)
            .order_by(RoomImage.is_primary.desc(), RoomImage.created_at)
        )
        images = result.scalars().all()
        if not images:
            raise NotFoundError(
                resource="imágenes de la habitación", resource_id=str(room_id)
            )
        return RoomImagesResponse(data=[image_out(img) for img in images])

    async def room_amenities(
        self, session: AsyncSession, room_id: uuid.UUID
    ) -> RoomAmenitiesResponse:
        await self._ensure_room(session, room_id)
        result = await session.execute(
            select(Room).options(selectinload(Room.amenities)).where(Room.id == room_id)
        )
        room = result.scalar_one()
        amenities = sorted(room.amenities, key=lambda a: a.name)
        return RoomAmenitiesResponse(data=[AmenityOut.model_validate(a) for a in amenities])

    async def get_image(self, session: AsyncSession, image_id: uuid.UUID) -> RoomImageResponse:
        result = await session.execute(
            select(RoomImage)
            .options(selectinload(RoomImage.room))
            .where(RoomImage.id == image_id)
        )
        image = result.scalar_one_or_none()
        if image is None:
            raise NotFoundError(resource="imagen", resource_id=str(image_id))

        room_ref = None
        if image.room is not None:
            room_ref = ImageRoomRef(
                id=image.room.id,
                title=image.room.display_name,
                location=image.room.location,
            )
        return RoomImageResponse(
            data=RoomImageDetail(
                **image_out(image).model_dump(),
                room=room_ref,
            )
        )

    async def search(
        self,
        session: AsyncSession,
        room_type: Optional[str] = None,
        max_price: Optional[float] = None,
    ) -> RoomSearchResponse:
        query = select(Room).options(selectinload(Room.images))
        if room_type:
            query = query.where(Room.type == room_type)
        if max_price is not None:
            query = query.where(Room.price <= max_price)

        try:
            result = await session.execute(query.order_by(Room.price.asc()))
            rooms = result.scalars().all()
        except StayHubError:
            raise
        except Exception as e:
            logger.error("Room search failed: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error al realizar la búsqueda")

        if not rooms:
            return RoomSearchResponse(
                data=[],
                count=0,
                message="No se encontraron habitaciones con los criterios especificados",
            )

        items = [
            RoomSearchItem(
                id=room.id,
                name=room.display_name,
                description=room.description,
                price=room.price,
                type=room.type,
                location=room.location,
                rating=room.rating,
                images=[
                    SearchImageOut(url=img.url, is_primary=img.is_primary)
                    for img in primary_first(room.images)
                ],
                created_at=room.created_at,
                updated_at=room.updated_at,
            )
            for room in rooms
        ]
        return RoomSearchResponse(data=items, count=len(items))


# Singleton instance
room_service = RoomService()
