"""
StayHub Backend: Room Service Tests
====================================

What we test:
    ✅ Listing applies filters, paginates and marks recent rooms as new
    ✅ Cards list the primary image first
    ✅ Featured rooms, room detail with host, amenities sorted by name
    ✅ A room without images → 404
    ✅ POST search: results sorted by price, empty result carries a message
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from stayhub.exceptions import NotFoundError, ValidationError
from stayhub.models.room import Amenity, Room, RoomImage
from stayhub.models.user import User
from stayhub.services.room_service import RoomService, is_new, parse_amenity_ids


def _image(url, primary=False):
    return RoomImage(
        id=uuid.uuid4(),
        url=url,
        is_primary=primary,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def _room(price="120.00", created_at=None, **extra):
    values = dict(
        id=uuid.uuid4(),
        title="Suite Centro",
        price=Decimal(price),
        location="Ciudad de México",
        type="suite",
        is_featured=False,
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        images=[_image("https://cdn.example.com/side.jpg"), _image("https://cdn.example.com/main.jpg", True)],
        amenities=[Amenity(id=uuid.uuid4(), name="WiFi", icon="wifi")],
    )
    values.update(extra)
    return Room(**values)


def _rows(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = items
    return result


def _sql(statement):
    return str(statement.compile(dialect=postgresql.dialect()))


class TestHelpers:

    def test_is_new_within_seven_days(self):
        now = datetime(2024, 4, 10, tzinfo=timezone.utc)
        assert is_new(now - timedelta(days=6), now=now)
        assert not is_new(now - timedelta(days=8), now=now)
        assert not is_new(None, now=now)

    def test_amenity_ids_must_be_uuids(self):
        first, second = uuid.uuid4(), uuid.uuid4()
        assert parse_amenity_ids(f"{first}, {second}") == [first, second]
        with pytest.raises(ValidationError):
            parse_amenity_ids("wifi,pool")


class TestListRooms:

    def setup_method(self):
        self.service = RoomService()

    @pytest.mark.asyncio
    async def test_filters_and_pagination(self, mock_db_session):
        recent = _room(created_at=datetime.now(timezone.utc) - timedelta(days=1))
        mock_db_session.scalar = AsyncMock(return_value=12)
        mock_db_session.execute.return_value = _rows([recent])

        response = await self.service.list_rooms(
            mock_db_session,
            location="méxico",
            min_price=50,
            max_price=200,
            room_type="suite",
            amenities=str(uuid.uuid4()),
            sort="price:asc",
            page=2,
            limit=5,
        )

        assert response.pagination.total == 12
        assert response.pagination.current_page == 2
        assert response.pagination.total_pages == 3
        assert response.pagination.has_more is True

        card = response.data[0]
        assert card.is_new is True
        assert card.images[0] == "https://cdn.example.com/main.jpg"
        assert [a.name for a in card.amenities] == ["WiFi"]

        sql = _sql(mock_db_session.execute.await_args.args[0])
        assert "rooms.price >=" in sql
        assert "rooms.price <=" in sql
        assert "rooms.type =" in sql
        assert "room_amenities.amenity_id" in sql
        assert "ORDER BY rooms.price ASC" in sql

    @pytest.mark.asyncio
    async def test_empty_page(self, mock_db_session):
        mock_db_session.scalar = AsyncMock(return_value=0)
        mock_db_session.execute.return_value = _rows([])

        response = await self.service.list_rooms(mock_db_session)

        assert response.data == []
        assert response.pagination.total_pages == 0
        assert response.pagination.has_more is False


class TestRoomLookups:

    def setup_method(self):
        self.service = RoomService()

    @pytest.mark.asyncio
    async def test_featured_rooms(self, mock_db_session):
        mock_db_session.execute.return_value = _rows([_room(is_featured=True)])

        response = await self.service.featured_rooms(mock_db_session)

        assert len(response.data) == 1
        assert response.data[0].is_featured is True
        assert "rooms.is_featured IS true" in _sql(mock_db_session.execute.await_args.args[0])

    @pytest.mark.asyncio
    async def test_room_detail_includes_host(self, mock_db_session):
        host = User(id=uuid.uuid4(), email="host@example.com", name="Lucía", profile_image="https://cdn.example.com/l.png")
        room = _room(host=host, host_id=host.id)
        result = MagicMock()
        result.scalar_one_or_none.return_value = room
        mock_db_session.execute.return_value = result

        detail = await self.service.get_room(mock_db_session, room.id)

        assert detail.id == room.id
        assert detail.host.name == "Lucía"
        assert detail.host.profile_image == "https://cdn.example.com/l.png"
        assert len(detail.images) == 2
        assert detail.amenities[0].icon == "wifi"

    @pytest.mark.asyncio
    async def test_missing_room_is_404(self, mock_db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = result

        with pytest.raises(NotFoundError):
            await self.service.get_room(mock_db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_room_images(self, mock_db_session):
        images = [_image("https://cdn.example.com/main.jpg", True), _image("https://cdn.example.com/side.jpg")]
        mock_db_session.execute.return_value = _rows(images)

        response = await self.service.room_images(mock_db_session, uuid.uuid4())

        assert [img.is_primary for img in response.data] == [True, False]

    @pytest.mark.asyncio
    async def test_room_without_images_is_404(self, mock_db_session):
        mock_db_session.execute.return_value = _rows([])

        with pytest.raises(NotFoundError):
            await self.service.room_images(mock_db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_amenities_sorted_by_name(self, mock_db_session):
        room = _room(
            amenities=[
                Amenity(id=uuid.uuid4(), name="Piscina"),
                Amenity(id=uuid.uuid4(), name="Aire acondicionado"),
            ]
        )
        mock_db_session.scalar = AsyncMock(return_value=room.id)
        result = MagicMock()
        result.scalar_one.return_value = room
        mock_db_session.execute.return_value = result

        response = await self.service.room_amenities(mock_db_session, room.id)

        assert [a.name for a in response.data] == ["Aire acondicionado", "Piscina"]

    @pytest.mark.asyncio
    async def test_amenities_of_missing_room_is_404(self, mock_db_session):
        mock_db_session.scalar = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await self.service.room_amenities(mock_db_session, uuid.uuid4())

        mock_db_session.execute.assert_not_awaited()


class TestSearch:

    def setup_method(self):
        self.service = RoomService()

    @pytest.mark.asyncio
    async def test_search_by_type_and_price(self, mock_db_session):
        mock_db_session.execute.return_value = _rows([_room("80.00"), _room("95.00")])

        response = await self.service.search(mock_db_session, room_type="suite", max_price=100)

        assert response.count == 2
        assert response.data[0].name == "Suite Centro"
        assert response.data[0].images[0].is_primary is True
        sql = _sql(mock_db_session.execute.await_args.args[0])
        assert "rooms.type =" in sql
        assert "ORDER BY rooms.price ASC" in sql

    @pytest.mark.asyncio
    async def test_no_matches(self, mock_db_session):
        mock_db_session.execute.return_value = _rows([])

        response = await self.service.search(mock_db_session, max_price=1)

        assert response.count == 0
        assert response.message == "No se encontraron habitaciones con los criterios especificados"
