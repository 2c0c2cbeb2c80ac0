"""
StayHub Backend: Search Suggestions Service
============================================

What:  Type-ahead suggestions (rooms and locations whose name contains the
       query) and the popular locations list.

Queries shorter than two characters return no suggestions without touching
the database.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.exceptions import DatabaseError
from stayhub.models.room import Location, Room
from stayhub.schemas.search import LocationOut, LocationsResponse, Suggestion, SuggestionsResponse

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
SUGGESTIONS_PER_KIND = 5
POPULAR_LOCATIONS = 10


class SearchService:

    async def suggestions(self, session: AsyncSession, query: Optional[str]) -> SuggestionsResponse:
        term = (query or "").strip()
        if len(term) < MIN_QUERY_LENGTH:
            return SuggestionsResponse(data=[])

        try:
            room_rows = await session.execute(
                select(Room.id, func.coalesce(Room.title, Room.name), Room.location)
                .where(
                    or_(
                        Room.name.icontains(term, autoescape=True),
                        Room.title.icontains(term, autoescape=True),
                    )
                )
                .limit(SUGGESTIONS_PER_KIND)
            )
            location_rows = await session.execute(
                select(Location.id, Location.name, Location.city)
                .where(Location.name.icontains(term, autoescape=True))
                .order_by(Location.popularity.desc())
                .limit(SUGGESTIONS_PER_KIND)
            )
        except Exception as e:
            logger.error("Suggestion lookup failed: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error inesperado al obtener sugerencias")

        data: List[Suggestion] = [
            Suggestion(type="room", id=rid, name=name, location=location)
            for rid, name, location in room_rows.all()
        ]
        data.extend(
            Suggestion(type="location", id=lid, name=name, city=city)
            for lid, name, city in location_rows.all()
        )
        return SuggestionsResponse(data=data)

    async def popular_locations(self, session: AsyncSession) -> LocationsResponse:
        try:
            result = await session.execute(
                select(Location).order_by(Location.popularity.desc()).limit(POPULAR_LOCATIONS)
            )
            locations = result.scalars().all()
        except Exception as e:
            logger.error("Popular locations lookup failed: %s", str(e), exc_info=True)
            raise DatabaseError(message="Error al obtener ubicaciones populares")

        return LocationsResponse(data=[LocationOut.model_validate(loc) for loc in locations])


# Singleton instance
search_service = SearchService()
