"""
StayHub Backend: Collections Route Handlers
============================================

What:  CRUD over the caller's named room collections.
       A collection that isn't the caller's answers 404, same as a missing one.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_current_principal, get_scoped_session
from stayhub.schemas.common import ErrorResponse, SuccessResponse
from stayhub.schemas.favorite import (
    CollectionCreateRequest,
    CollectionOut,
    CollectionUpdateRequest,
    CollectionWithRooms,
)
from stayhub.services.collection_service import collection_service
from stayhub.services.identity_service import Principal

router = APIRouter(prefix="/api/collections", tags=["Collections"])


@router.get("", response_model=List[CollectionWithRooms], summary="The caller's collections with rooms")
async def list_collections(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> List[CollectionWithRooms]:
    return await collection_service.list_collections(db, principal.user_id)


@router.post(
    "",
    response_model=CollectionOut,
    status_code=201,
    responses={400: {"description": "Unknown room id in roomIds", "model": ErrorResponse}},
    summary="Create a collection",
)
async def create_collection(
    body: CollectionCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> CollectionOut:
    return await collection_service.create_collection(db, principal.user_id, body)


@router.put(
    "/{collection_id}",
    response_model=CollectionOut,
    responses={404: {"description": "Collection not found", "model": ErrorResponse}},
    summary="Rename a collection or replace its rooms",
)
async def update_collection(
    collection_id: UUID,
    body: CollectionUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> CollectionOut:
    return await collection_service.update_collection(db, principal.user_id, collection_id, body)


@router.delete(
    "/{collection_id}",
    response_model=SuccessResponse,
    responses={404: {"description": "Collection not found", "model": ErrorResponse}},
    summary="Delete a collection",
)
async def delete_collection(
    collection_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> SuccessResponse:
    return await collection_service.delete_collection(db, principal.user_id, collection_id)
