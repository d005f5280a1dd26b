"""Entry points used by producers (friend, RSVP and event workflows) to emit notifications.

The workflows themselves live elsewhere; these helpers only decide the message,
link, priority and payload snapshot for each kind of domain event and persist
one row per recipient. Callers own the transaction and commit it.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date, datetime
from typing import Literal

from notification_center.models.notification import Notification, NotificationSourceType
from notification_center.repositories.notification import NotificationRepository
from notification_center.repositories.user import UserRepository
from notification_center.schemas.notification import (
    EventPayload,
    EventSummary,
    FriendRequestPayload,
    UserSummary,
)

logger = logging.getLogger("notification_center.services.publisher")

PrivacyLevel = Literal["PUBLIC", "FRIENDS_ONLY", "PRIVATE"]
EventUpdateKind = Literal["date", "time", "location", "details", "cancelled"]

PRIORITY_NORMAL = 1
PRIORITY_IMPORTANT = 2
PRIORITY_URGENT = 3

_UPDATE_MESSAGES: dict[str, str] = {
    "date": 'The date for "{name}" has been updated',
    "time": 'The time for "{name}" has been updated',
    "location": 'The location for "{name}" has changed',
    "details": 'Event details for "{name}" have been updated',
    "cancelled": 'Event "{name}" has been cancelled',
}


def _event_link(event: EventSummary) -> str:
    return f"/events/{event.id}"


def _dump(payload: FriendRequestPayload | EventPayload) -> dict[str, object]:
    return payload.model_dump(mode="json", by_alias=True, exclude_none=True)


def format_reminder_date(value: date | datetime) -> str:
    """Render dates as ``Friday, Mar 7`` for reminder messages."""
    return f"{value:%A}, {value:%b} {value.day}"


class NotificationPublisher:
    """Create notification rows on behalf of domain producers."""

    def __init__(
        self,
        notification_repo: NotificationRepository,
        user_repo: UserRepository | None = None,
    ) -> None:
        self.notification_repo = notification_repo
        self.user_repo = user_repo or UserRepository(notification_repo.session)

    async def create_notification(
        self,
        *,
        target_user_id: uuid.UUID,
        source_type: NotificationSourceType,
        message: str,
        link: str | None = None,
        payload: dict[str, object] | None = None,
        priority: int = PRIORITY_NORMAL,
    ) -> Notification:
        """Persist a single notification addressed to ``target_user_id``."""
        if not 0 <= priority <= 3:
            raise ValueError("priority must be between 0 and 3")
        notification = Notification(
            target_user_id=target_user_id,
            source_type=NotificationSourceType(source_type).value,
            message=message,
            link=link or None,
            payload=payload,
            priority=priority,
        )
        await self.notification_repo.add(notification)
        logger.info(
            "Notification created",
            extra={
                "notification_id": str(notification.id),
                "user_id": str(target_user_id),
                "source_type": notification.source_type,
            },
        )
        return notification

    async def _fan_out(
        self,
        target_user_ids: Sequence[uuid.UUID],
        *,
        source_type: NotificationSourceType,
        message: str,
        link: str | None,
        payload: dict[str, object] | None,
        priority: int,
    ) -> list[Notification]:
        rows = [
            Notification(
                target_user_id=user_id,
                source_type=source_type.value,
                message=message,
                link=link,
                payload=dict(payload) if payload is not None else None,
                priority=priority,
            )
            for user_id in dict.fromkeys(target_user_ids)
        ]
        if not rows:
            return []
        await self.notification_repo.add_all(rows)
        logger.info(
            "Notifications fanned out",
            extra={"source_type": source_type.value, "count": len(rows)},
        )
        return rows

    async def notify_friend_request(
        self,
        *,
        target_user_id: uuid.UUID,
        sender: UserSummary,
    ) -> Notification:
        sender_name = sender.name or sender.username or "Someone"
        return await self.create_notification(
            target_user_id=target_user_id,
            source_type=NotificationSourceType.FRIEND_REQUEST,
            message=f"{sender_name} sent you a friend request",
            link="/profile",
            payload=_dump(FriendRequestPayload(sender=sender)),
            priority=PRIORITY_IMPORTANT,
        )

    async def notify_event_invitation(
        self,
        *,
        target_user_id: uuid.UUID,
        event: EventSummary,
        host_name: str,
        privacy_level: PrivacyLevel = "PUBLIC",
    ) -> Notification:
        """Invite a user; private and friends-only events are raised to important."""
        if privacy_level == "PRIVATE":
            message = f"{host_name} invited you to their private event: {event.name}"
            priority = PRIORITY_IMPORTANT
        elif privacy_level == "FRIENDS_ONLY":
            message = f"{host_name} invited you to a friends-only event: {event.name}"
            priority = PRIORITY_IMPORTANT
        else:
            message = f"{host_name} invited you to an event: {event.name}"
            priority = PRIORITY_NORMAL

        return await self.create_notification(
            target_user_id=target_user_id,
            source_type=NotificationSourceType.ATTENDEE,
            message=message,
            link=_event_link(event),
            payload=_dump(EventPayload(event=event)),
            priority=priority,
        )

    async def notify_event_update(
        self,
        *,
        target_user_ids: Sequence[uuid.UUID],
        event: EventSummary,
        update_kind: EventUpdateKind,
    ) -> list[Notification]:
        cancelled = update_kind == "cancelled"
        template = _UPDATE_MESSAGES.get(update_kind, 'Event "{name}" has been updated')
        return await self._fan_out(
            target_user_ids,
            source_type=(
                NotificationSourceType.EVENT_CANCELLED
                if cancelled
                else NotificationSourceType.EVENT_UPDATE
            ),
            message=template.format(name=event.name),
            link=_event_link(event),
            payload=_dump(EventPayload(event=event)),
            priority=PRIORITY_URGENT if cancelled else PRIORITY_IMPORTANT,
        )

    async def notify_event_reminder(
        self,
        *,
        target_user_ids: Sequence[uuid.UUID],
        event: EventSummary,
        starts_on: date | datetime,
        starts_at: str,
    ) -> list[Notification]:
        message = (
            f'Reminder: "{event.name}" is happening '
            f"{format_reminder_date(starts_on)} at {starts_at}"
        )
        return await self._fan_out(
            target_user_ids,
            source_type=NotificationSourceType.EVENT_REMINDER,
            message=message,
            link=_event_link(event),
            payload=_dump(EventPayload(event=event)),
            priority=PRIORITY_IMPORTANT,
        )

    async def broadcast_system_notice(
        self,
        *,
        message: str,
        link: str | None = None,
        target_user_ids: Sequence[uuid.UUID] | None = None,
        priority: int = PRIORITY_NORMAL,
    ) -> list[Notification]:
        """Send a payload-less SYSTEM notice; an empty target list means every user."""
        user_ids = list(target_user_ids or [])
        if not user_ids:
            user_ids = await self.user_repo.list_ids()
        return await self._fan_out(
            user_ids,
            source_type=NotificationSourceType.SYSTEM,
            message=message,
            link=link,
            payload=None,
            priority=priority,
        )


__all__ = [
    "EventUpdateKind",
    "NotificationPublisher",
    "PRIORITY_IMPORTANT",
    "PRIORITY_NORMAL",
    "PRIORITY_URGENT",
    "PrivacyLevel",
    "format_reminder_date",
]
