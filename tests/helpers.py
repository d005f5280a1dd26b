"""Shared helpers for tests."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import uuid
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from notification_center.core.auth import create_access_token
from notification_center.models.notification import Notification as NotificationRow
from notification_center.models.notification import NotificationSourceType
from notification_center.models.user import User
from notification_center.schemas.notification import Notification, parse_notification

BASE_TIME = datetime(2026, 3, 7, 12, 0, tzinfo=timezone.utc)


def auth_headers(user: User) -> dict[str, str]:
    token, _ = create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


def build_notification(
    notification_id: str,
    *,
    source_type: str = "SYSTEM",
    is_read: bool = False,
    minutes_ago: int = 0,
    message: str | None = None,
    link: str | None = None,
    payload: dict[str, object] | None = None,
    priority: int = 1,
) -> Notification:
    created_at = BASE_TIME - timedelta(minutes=minutes_ago)
    data: dict[str, object] = {
        "id": notification_id,
        "message": message or f"notification {notification_id}",
        "link": link,
        "sourceType": source_type,
        "isRead": is_read,
        "readAt": created_at if is_read else None,
        "createdAt": created_at,
        "targetUserId": "user-1",
        "priority": priority,
    }
    if payload is not None:
        data["payload"] = payload
    return parse_notification(data)


async def seed_notifications(
    session: AsyncSession,
    user: User,
    specs: Sequence[tuple[NotificationSourceType, bool]],
) -> list[NotificationRow]:
    """Insert rows, newest first, with distinct timestamps."""
    rows: list[NotificationRow] = []
    for index, (source_type, is_read) in enumerate(specs):
        created_at = BASE_TIME - timedelta(minutes=index)
        rows.append(
            NotificationRow(
                id=uuid.uuid4(),
                target_user_id=user.id,
                source_type=source_type.value,
                message=f"{source_type.value.lower()} #{index}",
                link=f"/items/{index}",
                is_read=is_read,
                read_at=created_at if is_read else None,
                created_at=created_at,
            )
        )
    session.add_all(rows)
    await session.commit()
    return rows


class ManualClock:
    """Deterministic clock: sleepers wake only when ``advance`` passes their deadline."""

    def __init__(self) -> None:
        self.now = 0.0
        self._sleepers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._counter = itertools.count()

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self.now + seconds, next(self._counter), future))
        await future

    @property
    def sleepers(self) -> int:
        return sum(1 for _, _, future in self._sleepers if not future.done())

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await _settle()
        while self._sleepers and self._sleepers[0][0] <= target:
            deadline, _, future = heapq.heappop(self._sleepers)
            self.now = deadline
            if not future.done():
                future.set_result(None)
            await _settle()
        self.now = target
        await _settle()


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)
