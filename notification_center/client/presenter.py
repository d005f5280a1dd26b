"""View-model derivations for the bell badge and notification rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from notification_center.client.filters import FilterEngine, NotificationFilter, default_filter_engine
from notification_center.schemas.notification import (
    FriendRequestNotification,
    Notification,
    UserSummary,
)

BADGE_CAP = 9
BADGE_OVERFLOW_LABEL = f"{BADGE_CAP}+"

ICON_BELL = "bell"
ICON_BELL_RING = "bell-ring"
ICON_CALENDAR = "calendar"
ICON_USER_PLUS = "user-plus"

_ICONS: dict[NotificationFilter, str] = {
    NotificationFilter.EVENTS: ICON_CALENDAR,
    NotificationFilter.FRIENDS: ICON_USER_PLUS,
}

_EMPHASIS = {0: "low", 1: "normal", 2: "important", 3: "urgent"}


@dataclass(frozen=True, slots=True)
class BadgeState:
    active: bool
    label: str | None
    icon: str


@dataclass(frozen=True, slots=True)
class Avatar:
    image: str | None
    fallback: str


@dataclass(frozen=True, slots=True)
class NotificationRow:
    id: str
    message: str
    link: str | None
    time_label: str
    icon: str
    avatar: Avatar | None
    emphasis: str
    is_read: bool
    selected: bool = False


def badge_state(unread_count: int) -> BadgeState:
    if unread_count <= 0:
        return BadgeState(active=False, label=None, icon=ICON_BELL)
    label = str(unread_count) if unread_count <= BADGE_CAP else BADGE_OVERFLOW_LABEL
    return BadgeState(active=True, label=label, icon=ICON_BELL_RING)


def format_time(created_at: datetime, now: datetime | None = None) -> str:
    """``3:05 PM`` within a day, ``Yesterday`` within two, else ``Mar 7``."""
    now = now or datetime.now(tz=timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    age = now - created_at
    if age < timedelta(hours=24):
        hour = created_at.hour % 12 or 12
        return f"{hour}:{created_at:%M} {created_at:%p}"
    if age < timedelta(hours=48):
        return "Yesterday"
    return f"{created_at:%b} {created_at.day}"


def _sender_avatar(sender: UserSummary) -> Avatar:
    initial = sender.name[0] if sender.name else "?"
    return Avatar(image=sender.image, fallback=initial)


def icon_for(notification: Notification, filter_engine: FilterEngine = default_filter_engine) -> str:
    """Row icon for the category tab the notification belongs to."""
    category = filter_engine.category(notification.kind)
    if category is None:
        return ICON_BELL_RING
    return _ICONS.get(category, ICON_BELL_RING)


def present(
    notification: Notification,
    now: datetime | None = None,
    *,
    selected: bool = False,
    filter_engine: FilterEngine = default_filter_engine,
) -> NotificationRow:
    avatar = None
    if isinstance(notification, FriendRequestNotification) and notification.payload is not None:
        avatar = _sender_avatar(notification.payload.sender)

    return NotificationRow(
        id=notification.id,
        message=notification.message,
        link=notification.link,
        time_label=format_time(notification.created_at, now),
        icon=icon_for(notification, filter_engine),
        avatar=avatar,
        emphasis=_EMPHASIS.get(notification.priority, "normal"),
        is_read=notification.is_read,
        selected=selected,
    )


__all__ = [
    "Avatar",
    "BADGE_OVERFLOW_LABEL",
    "BadgeState",
    "NotificationRow",
    "badge_state",
    "format_time",
    "icon_for",
    "present",
]
