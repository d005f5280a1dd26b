"""Repository encapsulating notification persistence logic."""

from __future__ import annotations

import uuid
from collections.abc import Collection, Iterable
from datetime import datetime, timezone
from typing import Any, cast

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.sql.elements import ColumnElement

from notification_center.models.notification import Notification, NotificationSourceType
from notification_center.repositories.base import BaseRepository


def coerce_ids(raw_ids: Iterable[str | uuid.UUID]) -> list[uuid.UUID]:
    """Parse identifiers, silently skipping values that are not UUIDs."""
    parsed: list[uuid.UUID] = []
    for raw in raw_ids:
        if isinstance(raw, uuid.UUID):
            parsed.append(raw)
            continue
        try:
            parsed.append(uuid.UUID(str(raw)))
        except ValueError:
            continue
    return parsed


class NotificationRepository(BaseRepository[Notification]):
    """Read/write helpers for the notifications table."""

    @staticmethod
    def _filters(
        user_id: uuid.UUID,
        *,
        source_types: Collection[NotificationSourceType] | None = None,
        is_read: bool | None = None,
    ) -> list[ColumnElement[bool]]:
        filters: list[ColumnElement[bool]] = [Notification.target_user_id == user_id]
        if source_types:
            filters.append(Notification.source_type.in_([item.value for item in source_types]))
        if is_read is not None:
            filters.append(Notification.is_read.is_(is_read))
        return filters

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        *,
        source_types: Collection[NotificationSourceType] | None = None,
        is_read: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Notification], int]:
        filters = self._filters(user_id, source_types=source_types, is_read=is_read)

        stmt: Select[tuple[Notification]] = (
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc(), Notification.id.asc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        items = list(result.scalars())

        count_stmt = select(func.count()).select_from(Notification).where(*filters)
        total_result = await self.session.execute(count_stmt)
        total = int(total_result.scalar_one())
        return items, total

    async def count_unread(self, user_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Notification)
            .where(*self._filters(user_id, is_read=False))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def get(self, notification_id: uuid.UUID) -> Notification | None:
        return await self.session.get(Notification, notification_id)

    async def set_read_state(
        self,
        user_id: uuid.UUID,
        notification_ids: Collection[uuid.UUID] | None,
        *,
        is_read: bool = True,
    ) -> int:
        """Flip read state for the given ids (or every row when ids is None).

        Rows already in the requested state are left alone so ``read_at``
        keeps the moment the notification was first read.
        """
        filters = self._filters(user_id, is_read=not is_read)
        if notification_ids is not None:
            if not notification_ids:
                return 0
            filters.append(Notification.id.in_(list(notification_ids)))

        read_at = datetime.now(tz=timezone.utc) if is_read else None
        stmt = (
            update(Notification)
            .where(*filters)
            .values(is_read=is_read, read_at=read_at)
        )
        result = await self.session.execute(stmt)
        rowcount = cast(Any, result).rowcount
        return int(rowcount or 0)

    async def delete_one(self, notification: Notification) -> None:
        await self.session.delete(notification)
        await self.session.flush()

    async def delete_many(self, user_id: uuid.UUID, notification_ids: Collection[uuid.UUID]) -> int:
        if not notification_ids:
            return 0
        stmt = (
            delete(Notification)
            .where(*self._filters(user_id), Notification.id.in_(list(notification_ids)))
        )
        result = await self.session.execute(stmt)
        rowcount = cast(Any, result).rowcount
        return int(rowcount or 0)

    async def delete_all(self, user_id: uuid.UUID, *, only_read: bool = False) -> int:
        stmt = (
            delete(Notification)
            .where(*self._filters(user_id, is_read=True if only_read else None))
        )
        result = await self.session.execute(stmt)
        rowcount = cast(Any, result).rowcount
        return int(rowcount or 0)


__all__ = ["NotificationRepository", "coerce_ids"]
