"""
StayHub Backend: Settings Reconciler
=====================================

What:  Produces the canonical, always-complete settings record of a user.
Who:   GET/PUT /api/settings and /api/settings/user/{userId}.

Read path (get_settings):
    table missing (SQLSTATE 42P01) → synthesized defaults, nothing written
    no row                         → upsert defaults, return the stored row
    row                            → reconcile(stored over defaults)

Write path (update_settings):
    UPDATE the provided fields (JSON sections are merged with jsonb `||`,
    so a partial section never wipes sibling keys). If no row was updated,
    upsert a row seeded with defaults plus the partial.

Merge precedence (reconcile):
    For each key of the default record:
      mapping default  → stored sub-values win key by key; missing or None
                         sub-values take the default sub-value
      scalar default   → stored value wins unless it is None
    Keys the default record doesn't know are dropped.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import func, literal, select, update
from sqlalchemy.dialects.postgresql import JSONB, insert as pg_insert
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.database import is_undefined_table
from stayhub.exceptions import AuthorizationError, DatabaseError, StayHubError
from stayhub.models.user import UserRole
from stayhub.models.user_settings import UserSettings
from stayhub.schemas.settings import SettingsRecord, SettingsUpdateRequest
from stayhub.services.identity_service import Principal

logger = logging.getLogger(__name__)

JSON_SECTIONS = ("notifications", "privacy", "security")
ADMIN_ROLE = "admin"


# ══════════════════════════════════════════════════════════════════════════
# Pure helpers
# ══════════════════════════════════════════════════════════════════════════


def default_settings(user_id: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Complete default record for a user.

    `now` stamps created_at/updated_at and security.lastPasswordChange; for
    an existing row the caller passes the row's created_at so a missing
    lastPasswordChange reads as "never changed since signup".
    """
    now = now or datetime.now(timezone.utc)
    return {
        "id": None,
        "user_id": user_id,
        "notifications": {
            "email": True,
            "push": True,
            "sms": False,
            "marketing": False,
        },
        "privacy": {
            "profileVisibility": "public",
            "activityVisibility": "private",
        },
        "security": {
            "twoFactorAuth": False,
            "lastPasswordChange": now.isoformat(),
        },
        "preferences": {
            "currency": "MXN",
            "darkMode": False,
            "language": "es",
            "timezone": "America/Mexico_City",
        },
        "created_at": now,
        "updated_at": now,
    }


def reconcile(defaults: Mapping[str, Any], stored: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge a possibly partial stored record over a complete default record."""
    stored = stored or {}
    result: Dict[str, Any] = {}
    for key, default in defaults.items():
        value = stored.get(key)
        if isinstance(default, Mapping):
            section = value if isinstance(value, Mapping) else {}
            result[key] = {
                sub_key: section[sub_key] if section.get(sub_key) is not None else sub_default
                for sub_key, sub_default in default.items()
            }
        else:
            result[key] = value if value is not None else default
    return result


def row_to_record(row: UserSettings) -> Dict[str, Any]:
    """Storage row → nested record shape (theme == "dark" → darkMode)."""
    return {
        "id": row.id,
        "user_id": row.user_id,
        "notifications": row.notifications,
        "privacy": row.privacy,
        "security": row.security,
        "preferences": {
            "currency": row.currency,
            "darkMode": None if row.theme is None else row.theme == "dark",
            "language": row.language,
            "timezone": row.timezone,
        },
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


def record_to_columns(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Nested record → flat storage columns."""
    preferences = record.get("preferences") or {}
    columns: Dict[str, Any] = {
        section: record.get(section) for section in JSON_SECTIONS
    }
    columns["currency"] = preferences.get("currency")
    columns["theme"] = "dark" if preferences.get("darkMode") else "light"
    columns["language"] = preferences.get("language")
    columns["timezone"] = preferences.get("timezone")
    return columns


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════


class SettingsService:
    """
    Stateless; every method receives the session it should run on.

    Callers pass the caller-scoped session for their own settings and the
    trusted session for admin access to another user's settings (the role
    check in ensure_can_access is the authorization step there).
    """

    async def _table_exists(self, session: AsyncSession) -> bool:
        # Probe inside a savepoint: a failed statement would otherwise abort
        # the whole transaction
        try:
            async with session.begin_nested():
                await session.execute(select(UserSettings.id).limit(1))
            return True
        except DBAPIError as e:
            if is_undefined_table(e):
                logger.warning("user_settings table does not exist; serving defaults")
                return False
            raise

    async def _fetch(self, session: AsyncSession, user_id: uuid.UUID) -> Optional[UserSettings]:
        result = await session.execute(
            select(UserSettings).where(UserSettings.user_id == user_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def _upsert(
        self, session: AsyncSession, user_id: uuid.UUID, record: Mapping[str, Any]
    ) -> UserSettings:
        columns = record_to_columns(record)
        columns["updated_at"] = datetime.now(timezone.utc)
        stmt = (
            pg_insert(UserSettings)
            .values(user_id=user_id, **columns)
            .on_conflict_do_update(index_elements=[UserSettings.user_id], set_=columns)
            .returning(UserSettings)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    def _to_record(row: UserSettings) -> SettingsRecord:
        defaults = default_settings(row.user_id, now=row.created_at)
        return SettingsRecord.model_validate(reconcile(defaults, row_to_record(row)))

    async def get_settings(self, session: AsyncSession, user_id: uuid.UUID) -> SettingsRecord:
        """
        Raises:
            DatabaseError: any query failure other than a missing table
        """
        try:
            if not await self._table_exists(session):
                return SettingsRecord.model_validate(default_settings(user_id))

            row = await self._fetch(session, user_id)
            if row is None:
                logger.info("No settings for user %s; creating defaults", user_id)
                row = await self._upsert(session, user_id, default_settings(user_id))

            return self._to_record(row)

        except StayHubError:
            raise
        except Exception as e:
            logger.error("Error loading settings for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Error al obtener la configuración",
                context={"user_id": str(user_id), "original_error": type(e).__name__},
            )

    async def update_settings(
        self,
        session: AsyncSession,
        user_id: uuid.UUID,
        patch: SettingsUpdateRequest,
    ) -> SettingsRecord:
        partial = patch.model_dump(by_alias=True, exclude_none=True)
        try:
            values: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
            for section in JSON_SECTIONS:
                if partial.get(section):
                    column = getattr(UserSettings, section)
                    values[section] = func.coalesce(column, literal({}, JSONB)).op("||")(
                        literal(partial[section], JSONB)
                    )
            preferences = partial.get("preferences") or {}
            for key in ("currency", "language", "timezone"):
                if key in preferences:
                    values[key] = preferences[key]
            if "darkMode" in preferences:
                values["theme"] = "dark" if preferences["darkMode"] else "light"

            result = await session.execute(
                update(UserSettings)
                .where(UserSettings.user_id == user_id)
                .values(**values)
                .returning(UserSettings)
                .execution_options(synchronize_session=False, populate_existing=True)
            )
            row = result.scalar_one_or_none()

            if row is None:
                logger.info("No settings row for %s on update; inserting", user_id)
                seeded = reconcile(default_settings(user_id), partial)
                row = await self._upsert(session, user_id, seeded)

            return self._to_record(row)

        except StayHubError:
            raise
        except Exception as e:
            logger.error("Error updating settings for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Error al actualizar la configuración",
                context={"user_id": str(user_id), "original_error": type(e).__name__},
            )

    async def ensure_can_access(
        self, session: AsyncSession, principal: Principal, user_id: uuid.UUID
    ) -> None:
        """
        Own settings are always accessible; anyone else's need the admin role.

        A missing user_roles table or a caller without a role row is a 403.

        Raises:
            AuthorizationError: caller is not the owner and not an admin
        """
        if str(user_id) == principal.id:
            return

        try:
            async with session.begin_nested():
                result = await session.execute(
                    select(UserRole.role).where(UserRole.user_id == uuid.UUID(principal.id))
                )
                role = result.scalar_one_or_none()
        except DBAPIError as e:
            if not is_undefined_table(e):
                logger.error("Role lookup failed for %s: %s", principal.id, str(e))
                raise DatabaseError(message="Error al verificar permisos")
            logger.warning("user_roles table does not exist; denying cross-user access")
            role = None

        if role != ADMIN_ROLE:
            logger.info("User %s denied access to settings of %s", principal.id, user_id)
            raise AuthorizationError(message="No tienes permisos de administrador")


# Singleton instance
settings_service = SettingsService()
