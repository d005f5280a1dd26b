"""Category filters shared by the server query and the local fallback view."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping

from notification_center.models.notification import (
    EVENT_SOURCE_TYPES,
    FRIEND_SOURCE_TYPES,
    SYSTEM_SOURCE_TYPES,
    NotificationSourceType,
)
from notification_center.schemas.notification import Notification


class NotificationFilter(str, enum.Enum):
    """Tabs offered by the notification panel."""

    ALL = "all"
    UNREAD = "unread"
    EVENTS = "events"
    FRIENDS = "friends"
    SYSTEM = "system"


CATEGORY_FILTERS: tuple[NotificationFilter, ...] = (
    NotificationFilter.EVENTS,
    NotificationFilter.FRIENDS,
    NotificationFilter.SYSTEM,
)


class FilterEngine:
    """Maps a filter tab to a server query and to a local predicate.

    The server applies the query; ``apply`` re-filters whatever came back so a
    response that ignored the constraint still renders the right subset.
    """

    def __init__(
        self,
        categories: Mapping[NotificationFilter, frozenset[NotificationSourceType]] | None = None,
    ) -> None:
        self.categories = dict(
            categories
            or {
                NotificationFilter.EVENTS: EVENT_SOURCE_TYPES,
                NotificationFilter.FRIENDS: FRIEND_SOURCE_TYPES,
                NotificationFilter.SYSTEM: SYSTEM_SOURCE_TYPES,
            }
        )

    def category(self, source_type: NotificationSourceType) -> NotificationFilter | None:
        """Return the category tab a source type belongs to, if any."""
        for tab, members in self.categories.items():
            if source_type in members:
                return tab
        return None

    def query_params(self, selected: NotificationFilter) -> list[tuple[str, str]]:
        """Query parameters understood by ``GET /notifications``."""
        if selected is NotificationFilter.UNREAD:
            return [("read", "false")]
        members = self.categories.get(selected)
        if not members:
            return []
        return [("type", member.value) for member in sorted(members, key=lambda item: item.value)]

    def matches(self, selected: NotificationFilter, notification: Notification) -> bool:
        if selected is NotificationFilter.ALL:
            return True
        if selected is NotificationFilter.UNREAD:
            return not notification.is_read
        return notification.kind in self.categories.get(selected, frozenset())

    def apply(
        self,
        selected: NotificationFilter,
        notifications: Iterable[Notification],
    ) -> list[Notification]:
        return [item for item in notifications if self.matches(selected, item)]


default_filter_engine = FilterEngine()

__all__ = [
    "CATEGORY_FILTERS",
    "FilterEngine",
    "NotificationFilter",
    "default_filter_engine",
]
