"""Async SQLAlchemy engine + session factory builders."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests / local runs).
JsonDocument = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative base used by all ORM models."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create the long-lived engine shared by the API and the crawl loop."""
    if database_url.startswith("sqlite"):
        # In-memory SQLite only survives on a single shared connection.
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Bootstrap the schema (idempotent)."""
    # Import for side effects: registers every model on Base.metadata.
    import db_gateway.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
