"""
StayHub Backend: Collections Service Tests
===========================================

What we test:
    ✅ Create stores the collection and links each listed room once
    ✅ A room id that doesn't exist → 400
    ✅ Update with roomIds replaces the room set; an empty list clears it
    ✅ Update without roomIds leaves the room set alone
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from stayhub.exceptions import ValidationError
from stayhub.models.favorite import Collection
from stayhub.schemas.favorite import CollectionCreateRequest, CollectionUpdateRequest
from stayhub.services.collection_service import CollectionService


def _compiled(statement):
    return statement.compile(dialect=postgresql.dialect())


def _assign_id_on_flush(session):
    added = []
    session.add = MagicMock(side_effect=added.append)

    async def flush():
        for obj in added:
            obj.id = obj.id or uuid.uuid4()

    session.flush = AsyncMock(side_effect=flush)
    return added


class TestCreateCollection:

    def setup_method(self):
        self.service = CollectionService()

    @pytest.mark.asyncio
    async def test_create_with_rooms(self, mock_db_session):
        user_id = uuid.uuid4()
        first, second = uuid.uuid4(), uuid.uuid4()
        added = _assign_id_on_flush(mock_db_session)
        request = CollectionCreateRequest.model_validate(
            {"name": "Verano", "description": "Playa", "roomIds": [str(first), str(second), str(first)]}
        )

        collection = await self.service.create_collection(mock_db_session, user_id, request)

        assert collection.id == added[0].id
        assert collection.user_id == user_id
        assert collection.name == "Verano"

        compiled = _compiled(mock_db_session.execute.await_args.args[0])
        assert str(compiled).startswith("INSERT INTO collection_rooms")
        assert "ON CONFLICT DO NOTHING" in str(compiled)
        linked = [v for k, v in compiled.params.items() if k.startswith("room_id")]
        assert sorted(linked, key=str) == sorted([first, second], key=str)

    @pytest.mark.asyncio
    async def test_create_without_rooms(self, mock_db_session):
        _assign_id_on_flush(mock_db_session)
        request = CollectionCreateRequest.model_validate({"name": "Favoritas"})

        await self.service.create_collection(mock_db_session, uuid.uuid4(), request)

        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_room_is_rejected(self, mock_db_session):
        _assign_id_on_flush(mock_db_session)
        mock_db_session.execute.side_effect = IntegrityError(
            "INSERT INTO collection_rooms", {}, Exception("violates foreign key constraint")
        )
        request = CollectionCreateRequest.model_validate(
            {"name": "Verano", "roomIds": [str(uuid.uuid4())]}
        )

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_collection(mock_db_session, uuid.uuid4(), request)

        assert exc_info.value.message == "Una o más habitaciones no existen"


class TestUpdateCollection:

    def setup_method(self):
        self.service = CollectionService()

    def _owned(self, session, user_id):
        collection = Collection(id=uuid.uuid4(), user_id=user_id, name="Verano", description="Playa")
        session.scalar = AsyncMock(return_value=collection)
        return collection

    @pytest.mark.asyncio
    async def test_room_ids_replace_the_room_set(self, mock_db_session):
        user_id = uuid.uuid4()
        collection = self._owned(mock_db_session, user_id)
        new_room = uuid.uuid4()
        request = CollectionUpdateRequest.model_validate({"name": "Invierno", "roomIds": [str(new_room)]})

        updated = await self.service.update_collection(mock_db_session, user_id, collection.id, request)

        assert updated.name == "Invierno"
        assert updated.description == "Playa"
        statements = [c.args[0] for c in mock_db_session.execute.await_args_list]
        assert len(statements) == 2
        assert str(_compiled(statements[0])).startswith("DELETE FROM collection_rooms")
        insert = _compiled(statements[1])
        assert str(insert).startswith("INSERT INTO collection_rooms")
        assert new_room in insert.params.values()

    @pytest.mark.asyncio
    async def test_empty_room_ids_clear_the_set(self, mock_db_session):
        user_id = uuid.uuid4()
        collection = self._owned(mock_db_session, user_id)
        request = CollectionUpdateRequest.model_validate({"roomIds": []})

        await self.service.update_collection(mock_db_session, user_id, collection.id, request)

        mock_db_session.execute.assert_awaited_once()
        assert str(_compiled(mock_db_session.execute.await_args.args[0])).startswith(
            "DELETE FROM collection_rooms"
        )

    @pytest.mark.asyncio
    async def test_rename_keeps_rooms(self, mock_db_session):
        user_id = uuid.uuid4()
        collection = self._owned(mock_db_session, user_id)
        request = CollectionUpdateRequest.model_validate({"description": None})

        updated = await self.service.update_collection(mock_db_session, user_id, collection.id, request)

        assert updated.name == "Verano"
        assert updated.description is None
        mock_db_session.execute.assert_not_awaited()
