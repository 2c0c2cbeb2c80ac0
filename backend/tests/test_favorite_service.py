"""
StayHub Backend: Favorites Service Tests
=========================================

What we test:
    ✅ Adding a favorite bumps the favorites counter
    ✅ A second add of the same room → 400 (service and HTTP)
    ✅ Removing decrements only when a row was deleted
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from stayhub.exceptions import ConflictError, NotFoundError
from stayhub.services.favorite_service import FavoriteService


def _assign_id_on_flush(session):
    added = []
    session.add = MagicMock(side_effect=added.append)

    async def flush():
        added[0].id = uuid.uuid4()

    session.flush = AsyncMock(side_effect=flush)
    return added


class TestAddFavorite:

    def setup_method(self):
        self.service = FavoriteService()

    @pytest.mark.asyncio
    async def test_add_favorite(self, mock_db_session):
        user_id, room_id = uuid.uuid4(), uuid.uuid4()
        mock_db_session.scalar = AsyncMock(side_effect=[room_id, None])
        mock_db_session.execute.return_value = MagicMock(rowcount=1)
        added = _assign_id_on_flush(mock_db_session)

        result = await self.service.add_favorite(mock_db_session, user_id, room_id)

        assert result.success is True
        assert result.favorite.room_id == room_id
        assert result.favorite.id == added[0].id
        # the counter UPDATE
        mock_db_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_is_rejected(self, mock_db_session):
        user_id, room_id = uuid.uuid4(), uuid.uuid4()
        mock_db_session.scalar = AsyncMock(side_effect=[room_id, uuid.uuid4()])

        with pytest.raises(ConflictError) as exc_info:
            await self.service.add_favorite(mock_db_session, user_id, room_id)

        assert exc_info.value.status_code == 400
        mock_db_session.add.assert_not_called()
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_room(self, mock_db_session):
        mock_db_session.scalar = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError):
            await self.service.add_favorite(mock_db_session, uuid.uuid4(), uuid.uuid4())


class TestRemoveFavorite:

    def setup_method(self):
        self.service = FavoriteService()

    @pytest.mark.asyncio
    async def test_remove_existing_decrements(self, mock_db_session):
        mock_db_session.execute.return_value = MagicMock(rowcount=1)

        result = await self.service.remove_favorite(mock_db_session, uuid.uuid4(), uuid.uuid4())

        assert result.success is True
        # DELETE + counter UPDATE
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_remove_missing_leaves_counter_alone(self, mock_db_session):
        mock_db_session.execute.return_value = MagicMock(rowcount=0)

        result = await self.service.remove_favorite(mock_db_session, uuid.uuid4(), uuid.uuid4())

        assert result.success is True
        assert mock_db_session.execute.await_count == 1


class TestFavoritesEndpoint:

    @pytest.mark.asyncio
    async def test_second_add_returns_400(self, test_client, mock_db_session):
        room_id = uuid.uuid4()
        mock_db_session.scalar = AsyncMock(side_effect=[room_id, uuid.uuid4()])

        response = await test_client.post("/api/favorites", json={"roomId": str(room_id)})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "already_exists"
        assert body["message"] == "La habitación ya está en favoritos"
