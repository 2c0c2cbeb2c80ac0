"""
StayHub Backend: Settings Reconciler Tests
===========================================

What we test:
    ✅ reconcile fills missing and null values from defaults, drops unknown keys
    ✅ First fetch without a row stores defaults; next fetch reads the stored row
    ✅ Missing user_settings table serves defaults without writing
    ✅ Update with no existing row upserts defaults + partial
    ✅ Update on an existing row merges JSON sections in one UPDATE
    ✅ Cross-user access needs the admin role
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import DBAPIError

from stayhub.exceptions import AuthorizationError
from stayhub.models.user_settings import UserSettings
from stayhub.schemas.settings import SettingsUpdateRequest
from stayhub.services.settings_service import (
    SettingsService,
    default_settings,
    reconcile,
    row_to_record,
)


class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__(sqlstate)
        self.sqlstate = sqlstate


def _result(scalar=None, scalar_one=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar_one
    return result


def _row(user_id, **overrides):
    now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    values = dict(
        id=uuid.uuid4(),
        user_id=user_id,
        notifications={"email": False},
        privacy=None,
        security=None,
        currency="USD",
        theme="dark",
        language=None,
        timezone=None,
        created_at=now,
        updated_at=now,
    )
    values.update(overrides)
    return UserSettings(**values)


class TestReconcile:

    def test_partial_sections_are_completed(self):
        user_id = uuid.uuid4()
        defaults = default_settings(user_id)
        stored = {
            "notifications": {"email": False, "push": None},
            "privacy": None,
            "unknown": "dropped",
        }

        result = reconcile(defaults, stored)

        assert result["notifications"] == {
            "email": False,
            "push": True,
            "sms": False,
            "marketing": False,
        }
        assert result["privacy"] == defaults["privacy"]
        assert "unknown" not in result
        assert result["user_id"] == user_id

    def test_stored_row_maps_theme_to_dark_mode(self):
        user_id = uuid.uuid4()
        record = reconcile(default_settings(user_id), row_to_record(_row(user_id)))
        assert record["preferences"]["darkMode"] is True
        assert record["preferences"]["currency"] == "USD"
        assert record["preferences"]["language"] == "es"


class TestGetSettings:

    def setup_method(self):
        self.service = SettingsService()

    @pytest.mark.asyncio
    async def test_first_fetch_creates_defaults_then_reads_stored_row(self, mock_db_session):
        user_id = uuid.uuid4()
        stored = _row(user_id, notifications=None, theme="light", currency="MXN")

        mock_db_session.execute.side_effect = [
            _result(),                      # table probe
            _result(scalar=None),           # no row yet
            _result(scalar_one=stored),     # upsert RETURNING
            _result(),                      # table probe
            _result(scalar=stored),         # row found
        ]

        first = await self.service.get_settings(mock_db_session, user_id)
        second = await self.service.get_settings(mock_db_session, user_id)

        assert first.notifications.email is True
        assert first.preferences.dark_mode is False
        assert second.id == stored.id
        assert second.model_dump() == first.model_dump()
        assert mock_db_session.execute.await_count == 5

    @pytest.mark.asyncio
    async def test_missing_table_serves_defaults(self, mock_db_session):
        user_id = uuid.uuid4()
        mock_db_session.execute.side_effect = DBAPIError("SELECT", {}, _PgError("42P01"))

        record = await self.service.get_settings(mock_db_session, user_id)

        assert record.id is None
        assert record.user_id == user_id
        assert record.preferences.timezone == "America/Mexico_City"
        assert mock_db_session.execute.await_count == 1


class TestUpdateSettings:

    def setup_method(self):
        self.service = SettingsService()

    @pytest.mark.asyncio
    async def test_update_without_row_upserts_defaults_and_patch(self, mock_db_session):
        user_id = uuid.uuid4()
        stored = _row(user_id, notifications={"email": True, "push": True, "sms": True, "marketing": False})
        mock_db_session.execute.side_effect = [
            _result(scalar=None),           # UPDATE ... RETURNING matched nothing
            _result(scalar_one=stored),     # upsert
        ]
        patch_body = SettingsUpdateRequest.model_validate({"notifications": {"sms": True}})

        record = await self.service.update_settings(mock_db_session, user_id, patch_body)

        assert record.notifications.sms is True
        assert record.notifications.email is True
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_update_existing_row_merges_json_sections(self, mock_db_session):
        user_id = uuid.uuid4()
        stored = _row(
            user_id,
            notifications={"email": True, "push": False, "sms": False, "marketing": False},
            theme="dark",
            currency="USD",
        )
        mock_db_session.execute.return_value = _result(scalar=stored)
        patch_body = SettingsUpdateRequest.model_validate(
            {"notifications": {"push": False}, "preferences": {"darkMode": True, "currency": "USD"}}
        )

        record = await self.service.update_settings(mock_db_session, user_id, patch_body)

        # one UPDATE ... RETURNING, no upsert
        mock_db_session.execute.assert_awaited_once()
        compiled = mock_db_session.execute.await_args.args[0].compile(dialect=postgresql.dialect())
        sql = str(compiled)
        assert sql.startswith("UPDATE user_settings")
        assert "coalesce(user_settings.notifications" in sql
        assert "||" in sql
        assert "privacy" not in sql.split("RETURNING")[0]
        assert compiled.params["theme"] == "dark"
        assert compiled.params["currency"] == "USD"

        assert record.id == stored.id
        assert record.notifications.push is False
        assert record.notifications.email is True
        assert record.preferences.dark_mode is True
        assert record.preferences.currency == "USD"


class TestEnsureCanAccess:

    def setup_method(self):
        self.service = SettingsService()

    @pytest.mark.asyncio
    async def test_own_settings_need_no_lookup(self, mock_db_session, sample_principal):
        await self.service.ensure_can_access(
            mock_db_session, sample_principal, sample_principal.user_id
        )
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_admin_is_forbidden(self, mock_db_session, sample_principal):
        mock_db_session.execute.return_value = _result(scalar="user")
        with pytest.raises(AuthorizationError):
            await self.service.ensure_can_access(mock_db_session, sample_principal, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_admin_is_allowed(self, mock_db_session, sample_principal):
        mock_db_session.execute.return_value = _result(scalar="admin")
        await self.service.ensure_can_access(mock_db_session, sample_principal, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_missing_roles_table_is_forbidden(self, mock_db_session, sample_principal):
        mock_db_session.execute.side_effect = DBAPIError("SELECT", {}, _PgError("42P01"))
        with pytest.raises(AuthorizationError):
            await self.service.ensure_can_access(mock_db_session, sample_principal, uuid.uuid4())
