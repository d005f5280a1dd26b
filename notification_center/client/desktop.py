"""Best-effort native desktop notifications for newly arrived items."""

from __future__ import annotations

import enum
import logging
from typing import Protocol

from notification_center.client.errors import PermissionDenied
from notification_center.schemas.notification import Notification

logger = logging.getLogger("notification_center.client.desktop")

DESKTOP_TITLE = "New notification"


class Permission(str, enum.Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class DesktopBackend(Protocol):
    def permission(self) -> Permission: ...

    async def request_permission(self) -> Permission: ...

    def show(self, title: str, body: str, link: str | None = None) -> None: ...


class NullDesktopBackend:
    """Backend for environments without a notification daemon."""

    def permission(self) -> Permission:
        return Permission.DENIED

    async def request_permission(self) -> Permission:
        return Permission.DENIED

    def show(self, title: str, body: str, link: str | None = None) -> None:
        raise PermissionDenied("Desktop notifications are not available")


class DesktopNotifier:
    """Raise at most one native notification per observed unread increase.

    Permission is asked for lazily on the first user interaction, and only if
    it was never asked before. A refusal disables the notifier for good.
    """

    def __init__(self, backend: DesktopBackend | None = None) -> None:
        self.backend: DesktopBackend = backend or NullDesktopBackend()
        self._last_unread: int | None = None
        self._disabled = False
        self._asked = False

    @property
    def enabled(self) -> bool:
        return not self._disabled and self.backend.permission() is Permission.GRANTED

    async def on_interaction(self) -> None:
        if self._asked or self._disabled:
            return
        if self.backend.permission() is not Permission.DEFAULT:
            return
        self._asked = True
        result = await self.backend.request_permission()
        if result is Permission.DENIED:
            self._disable("permission refused")

    def observe(self, unread_count: int, newest_unread: Notification | None) -> bool:
        """Record a successful poll; returns True when a notification was shown."""
        previous, self._last_unread = self._last_unread, unread_count
        if previous is None or unread_count <= previous:
            return False
        if newest_unread is None or not self.enabled:
            return False
        try:
            self.backend.show(DESKTOP_TITLE, newest_unread.message, newest_unread.link)
        except PermissionDenied:
            self._disable("permission revoked")
            return False
        return True

    def rebase(self, unread_count: int) -> None:
        """Follow a local change of the counter without raising anything."""
        if self._last_unread is not None:
            self._last_unread = unread_count

    def reset(self) -> None:
        self._last_unread = None

    def _disable(self, reason: str) -> None:
        self._disabled = True
        logger.info("Desktop notifications disabled", extra={"reason": reason})


__all__ = ["DesktopBackend", "DesktopNotifier", "NullDesktopBackend", "Permission"]
