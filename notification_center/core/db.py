"""Async engine and per-request sessions for the notifications database."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from notification_center.core.config import settings


def engine_options(database_url: str, *, echo: bool = False) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` suited to the backend."""
    url = make_url(database_url)
    options: dict[str, Any] = {"echo": echo}
    if url.get_backend_name() != "sqlite":
        options["pool_pre_ping"] = True
        return options

    options["connect_args"] = {"check_same_thread": False}
    if url.database in (None, "", ":memory:"):
        # Every pooled connection would otherwise open its own empty database.
        options["poolclass"] = StaticPool
    return options


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    return create_async_engine(database_url, **engine_options(database_url, echo=echo))


engine: AsyncEngine = build_engine(settings.database_url, echo=settings.debug)
AsyncSessionFactory = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency; a request that fails leaves no half-applied bulk update."""
    async with AsyncSessionFactory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    await engine.dispose()


__all__ = [
    "AsyncSessionFactory",
    "build_engine",
    "dispose_engine",
    "engine",
    "engine_options",
    "get_session",
]
