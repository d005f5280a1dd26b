from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator
from typing import Final

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

_TEST_ENV_VARS: Final[dict[str, str]] = {
    "APP_ENV": "test",
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "SECRET_KEY": "test-secret",
    "BACKEND_CORS_ORIGINS": "http://localhost:3000",
}

for key, value in _TEST_ENV_VARS.items():
    os.environ.setdefault(key, value)

from notification_center.core.db import build_engine  # noqa: E402
from notification_center.models.base import Base  # noqa: E402
from notification_center.models.user import User  # noqa: E402


@pytest_asyncio.fixture()
async def db_session() -> AsyncIterator[AsyncSession]:
    engine = build_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    Session = async_sessionmaker(engine, expire_on_commit=False)

    async with Session() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture()
async def user(db_session: AsyncSession) -> User:
    account = User(username="alice", name="Alice Example", image="https://img.example/alice.png")
    db_session.add(account)
    await db_session.commit()
    return account


@pytest_asyncio.fixture()
async def other_user(db_session: AsyncSession) -> User:
    account = User(username="bob", name="Bob Example")
    db_session.add(account)
    await db_session.commit()
    return account


@pytest.fixture()
def session_override(db_session: AsyncSession) -> Iterator[None]:
    """Route every request of the real app through the test session."""
    from notification_center.core.db import get_session
    from notification_center.main import app

    async def _session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _session
    yield
    app.dependency_overrides.pop(get_session, None)
