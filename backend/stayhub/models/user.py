"""
StayHub Backend: User, Stats, Roles and Profile Catalogs
=========================================================

What:  ORM mapping of `users`, `user_stats`, `user_roles`, `languages`, `genders`.
Who:   Used by the auth, users, settings and payment services.

Identity:
    users.id is the identity backend's user id (the JWT `sub`). The row is
    created the first time the user registers or logs in; the password never
    touches this table.

Counters:
    user_stats holds denormalised counts shown on the profile page. They are
    only ever changed with `SET n = n + 1` statements inside the same
    transaction as the row that caused the change (see services/stats.py).
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stayhub.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Column was created unquoted, so Postgres folded it to lowercase
    profile_image: Mapped[Optional[str]] = mapped_column("profileimage", Text, nullable=True)

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    language: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    stats: Mapped[Optional["UserStats"]] = relationship(
        back_populates="user", uselist=False, lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class UserStats(Base):
    """Per-user counters. One row per user, created alongside the profile."""

    __tablename__ = "user_stats"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    favorites: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))

    user: Mapped["User"] = relationship(back_populates="stats", lazy="raise")


class UserRole(Base):
    """Application role. Only `admin` has a meaning today (cross-user settings)."""

    __tablename__ = "user_roles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)


class Language(Base):
    __tablename__ = "languages"

    code: Mapped[str] = mapped_column(String(10), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Gender(Base):
    __tablename__ = "genders"

    code: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
