"""
StayHub Backend: User Settings Model
=====================================

What:  ORM mapping of `user_settings`, one row per user.

Storage shape vs API shape:
    The three grouped sections (notifications, privacy, security) are stored
    as JSONB. Preferences are stored flat (currency, theme, language,
    timezone) and regrouped into `preferences` by the settings service,
    with theme == "dark" exposed as preferences.darkMode.

    Any JSON section may be NULL or partial in older rows; the settings
    reconciler fills the gaps from defaults before anything leaves the API.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import ForeignKey, String, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from stayhub.database import Base


class UserSettings(Base):
    __tablename__ = "user_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    notifications: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    privacy: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    security: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    theme: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    language: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<UserSettings(user_id={self.user_id}, theme='{self.theme}')>"
