"""
StayHub Backend: Database Session Management
=============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependencies.
Why:   Centralizes connection logic for the hosted Postgres in one place.
How:   One pooled async engine; sessions are created per request and either
       commit on success or roll back on error.
Who:   Routes receive sessions through FastAPI's dependency injection.

Two kinds of sessions:
    get_db_session()          Trusted server-side work (webhooks, profile
                              bootstrap after the identity backend has
                              confirmed the user). Runs as the connection user.
    caller_session(claims)    Everything done on behalf of an authenticated
                              caller. The transaction carries the caller's JWT
                              claims and switches to the row-level-security
                              role, so the backend's policies decide what the
                              caller may read and write.

    The claims only live for one transaction (set_config(..., true) and
    SET LOCAL), so a pooled connection never leaks one caller's identity into
    the next request.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from stayhub.config import settings


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=1800,  # Hosted poolers drop idle connections after ~30 min
    echo=settings.log_level == "DEBUG",
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: response models read attributes after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for the ORM mapping of the hosted tables.

    The hosted backend owns the schema; these classes only describe the
    columns this service reads and writes.
    """
    pass


# SQLSTATE for "relation does not exist"
UNDEFINED_TABLE = "42P01"


def sqlstate_of(exc: BaseException) -> str | None:
    """Return the Postgres SQLSTATE carried by a driver error, if any."""
    orig = getattr(exc, "orig", exc)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_undefined_table(exc: BaseException) -> bool:
    return isinstance(exc, DBAPIError) and sqlstate_of(exc) == UNDEFINED_TABLE


async def apply_request_claims(session: AsyncSession, claims: Dict[str, Any]) -> None:
    """
    Bind the caller's identity to the current transaction.

    Sets both the JSON claims blob and the legacy per-claim `sub` setting
    (auth.uid() reads either, depending on the backend version), then drops
    to the row-level-security role.
    """
    await session.execute(
        text("SELECT set_config('request.jwt.claims', :claims, true)"),
        {"claims": json.dumps(claims)},
    )
    await session.execute(
        text("SELECT set_config('request.jwt.claim.sub', :sub, true)"),
        {"sub": str(claims.get("sub", ""))},
    )
    if settings.db_enforce_rls:
        # Role names can't be bound parameters; the value comes from config only
        await session.execute(text(f'SET LOCAL ROLE "{settings.db_rls_role}"'))


# ── Session Dependencies ──────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a trusted database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def caller_session(claims: Dict[str, Any]) -> AsyncIterator[AsyncSession]:
    """
    Session scoped to one authenticated caller.

    Same commit/rollback contract as get_db_session(), with the caller's
    claims applied before the handler sees the session.
    """
    async with async_session_factory() as session:
        try:
            await apply_request_claims(session, claims)
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close every pooled connection. Called from the shutdown hook."""
    await engine.dispose()
