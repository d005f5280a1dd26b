"""Bulk-selection mode for the notification list."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from notification_center.client.errors import RequestError, TransportError
from notification_center.client.store import NotificationStore
from notification_center.client.sync import SyncClient
from notification_center.schemas.notification import Notification

logger = logging.getLogger("notification_center.client.selection")


class SelectionMode(str, enum.Enum):
    BROWSING = "browsing"
    SELECTING = "selecting"


@dataclass(frozen=True, slots=True)
class ClickOutcome:
    """What a click on a row did: toggled selection or asked to navigate."""

    notification_id: str
    selected: bool | None = None
    navigate_to: str | None = None


class SelectionController:
    """Browsing/Selecting state machine.

    ``selected_ids`` is empty whenever the controller is browsing.
    """

    def __init__(self) -> None:
        self._mode = SelectionMode.BROWSING
        self._selected: set[str] = set()

    @property
    def mode(self) -> SelectionMode:
        return self._mode

    @property
    def active(self) -> bool:
        return self._mode is SelectionMode.SELECTING

    @property
    def selected_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    def toggle_selection_mode(self) -> SelectionMode:
        if self.active:
            self.reset()
        else:
            self._mode = SelectionMode.SELECTING
        return self._mode

    def reset(self) -> None:
        """Return to browsing and forget the selection."""
        self._mode = SelectionMode.BROWSING
        self._selected.clear()

    def toggle(self, notification_id: str) -> bool:
        """Flip membership of one id; returns whether it is now selected."""
        if not self.active:
            return False
        if notification_id in self._selected:
            self._selected.discard(notification_id)
            return False
        self._selected.add(notification_id)
        return True

    def select_all(self, notification_ids: Iterable[str]) -> None:
        if self.active:
            self._selected.update(notification_ids)

    def retain(self, notification_ids: Iterable[str]) -> None:
        """Drop selected ids that are no longer present."""
        self._selected.intersection_update(notification_ids)

    def click(self, notification: Notification) -> ClickOutcome:
        if self.active:
            return ClickOutcome(notification.id, selected=self.toggle(notification.id))
        return ClickOutcome(notification.id, navigate_to=notification.link)

    async def delete_selected(self, sync: SyncClient, store: NotificationStore) -> int:
        """Delete the selection optimistically and return to browsing.

        On failure the removal is rolled back, the selection is kept and the
        error is re-raised for the caller to surface.
        """
        ids = sorted(self._selected)
        if not ids:
            return 0

        mutation = store.remove(ids)
        try:
            deleted = await sync.delete_many(ids)
        except (RequestError, TransportError):
            store.rollback(mutation)
            raise

        logger.info("Deleted selected notifications", extra={"count": deleted})
        self.reset()
        return deleted


__all__ = ["ClickOutcome", "SelectionController", "SelectionMode"]
