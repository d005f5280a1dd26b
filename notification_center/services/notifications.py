"""Notification domain service backing the /notifications endpoints."""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from notification_center.core.errors import ErrorCode, ForbiddenError, NotFoundError
from notification_center.core.metrics import record_notification_mutation
from notification_center.models.notification import Notification, NotificationSourceType
from notification_center.models.user import User
from notification_center.repositories.notification import NotificationRepository, coerce_ids

logger = logging.getLogger("notification_center.services.notifications")


@dataclass(slots=True)
class NotificationListResult:
    """Container used by the API layer when serializing notifications."""

    notifications: list[Notification]
    total: int
    unread_count: int


def parse_source_types(raw_types: Sequence[str] | None) -> set[NotificationSourceType]:
    """Resolve ``type`` query values, ignoring anything outside the closed set."""
    resolved: set[NotificationSourceType] = set()
    for raw in raw_types or ():
        parsed = NotificationSourceType.parse(raw)
        if parsed is None:
            logger.debug("Ignoring unknown notification type filter", extra={"type": raw})
            continue
        resolved.add(parsed)
    return resolved


class NotificationService:
    """Read, mark and delete operations scoped to the authenticated user."""

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self.notification_repo = notification_repo

    @property
    def session(self) -> AsyncSession:
        """Expose the shared AsyncSession instance."""
        return self.notification_repo.session

    async def list_notifications(
        self,
        user: User,
        *,
        source_types: Collection[NotificationSourceType] | None = None,
        is_read: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> NotificationListResult:
        """Return a filtered page plus the unread counter of the full per-user set."""
        notifications, total = await self.notification_repo.list_for_user(
            user.id,
            source_types=source_types,
            is_read=is_read,
            limit=limit,
            offset=offset,
        )
        unread = await self.notification_repo.count_unread(user.id)
        return NotificationListResult(
            notifications=notifications,
            total=total,
            unread_count=unread,
        )

    async def mark_notifications(
        self,
        user: User,
        notification_ids: Sequence[str],
        *,
        as_read: bool = True,
    ) -> int:
        """Set read state for the user's notifications among ``notification_ids``."""
        ids = coerce_ids(notification_ids)
        changed = await self.notification_repo.set_read_state(user.id, ids, is_read=as_read)
        record_notification_mutation("mark_read" if as_read else "mark_unread", changed)
        return changed

    async def mark_all_notifications(self, user: User, *, as_read: bool = True) -> int:
        """Set read state for every notification belonging to the user."""
        changed = await self.notification_repo.set_read_state(user.id, None, is_read=as_read)
        record_notification_mutation("mark_all_read" if as_read else "mark_all_unread", changed)
        return changed

    async def delete_notification(self, user: User, notification_id: str) -> None:
        """Delete a single notification, enforcing ownership."""
        parsed = coerce_ids([notification_id])
        notification = await self.notification_repo.get(parsed[0]) if parsed else None
        if notification is None:
            raise NotFoundError(
                code=ErrorCode.NOTIFICATION_NOT_FOUND,
                message="Notification not found",
            )
        if notification.target_user_id != user.id:
            logger.warning(
                "Refused to delete notification owned by another user",
                extra={"notification_id": str(notification.id), "user_id": str(user.id)},
            )
            raise ForbiddenError("Unauthorized")
        await self.notification_repo.delete_one(notification)
        record_notification_mutation("delete_one", 1)

    async def delete_notifications(self, user: User, notification_ids: Sequence[str]) -> int:
        """Delete the user's notifications among ``notification_ids``."""
        deleted = await self.notification_repo.delete_many(user.id, coerce_ids(notification_ids))
        record_notification_mutation("delete_many", deleted)
        return deleted

    async def delete_all_notifications(self, user: User, *, only_read: bool = False) -> int:
        """Delete every (or every read) notification of the user."""
        deleted = await self.notification_repo.delete_all(user.id, only_read=only_read)
        record_notification_mutation("delete_all_read" if only_read else "delete_all", deleted)
        return deleted


__all__ = ["NotificationListResult", "NotificationService", "parse_source_types"]
