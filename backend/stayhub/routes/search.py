"""
StayHub Backend: Search Route Handlers
=======================================

What:  GET /api/search-suggestions and GET /api/locations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_scoped_session
from stayhub.schemas.search import LocationsResponse, SuggestionsResponse
from stayhub.services.search_service import search_service

router = APIRouter(prefix="/api", tags=["Search"])


@router.get(
    "/search-suggestions",
    response_model=SuggestionsResponse,
    summary="Rooms and locations matching a partial query",
    description="Queries shorter than 2 characters return an empty list.",
)
async def search_suggestions(
    query: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_scoped_session),
) -> SuggestionsResponse:
    return await search_service.suggestions(db, query)


@router.get("/locations", response_model=LocationsResponse, summary="Most popular locations")
async def popular_locations(db: AsyncSession = Depends(get_scoped_session)) -> LocationsResponse:
    return await search_service.popular_locations(db)
