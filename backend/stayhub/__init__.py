"""
StayHub Backend: Application Package Initializer
=================================================

What: Marks the `stayhub` directory as a Python package.
Who:  Imported by uvicorn (`stayhub.main:app`), pytest and every module below.

Architecture Note:
    The backend is a thin layer in front of a hosted Postgres/auth/storage
    backend and a payment processor:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← queries, reshaping, pricing
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy mapping + Pydantic
    ├─────────────────────────────────────┤
    │  Database / Identity / Payments     │  ← asyncpg, supabase-py, stripe
    └─────────────────────────────────────┘

    Routes never touch the database directly; services receive the session
    that the route obtained from the authenticator, so every query runs with
    the caller's row-level permissions.
"""

__version__ = "1.0.0"
