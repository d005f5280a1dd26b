"""Notification center facade tying sync, state, polling and presentation together.

All methods run on one event loop. Local edits are applied before the network
call returns; a failed write is rolled back and reported as a toast. Responses
that arrive after the user signed out, or after a newer fetch was issued, are
dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from notification_center.client.desktop import DesktopNotifier
from notification_center.client.errors import RequestError, TransportError
from notification_center.client.filters import NotificationFilter
from notification_center.client.presenter import BadgeState, NotificationRow, badge_state, present
from notification_center.client.scheduler import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    Clock,
    PollingScheduler,
)
from notification_center.client.selection import ClickOutcome, SelectionController
from notification_center.client.store import Mutation, NotificationStore
from notification_center.client.sync import SyncClient
from notification_center.client.toasts import Toast, ToastQueue, ToastSeverity, ToastSink
from notification_center.schemas.notification import Notification

logger = logging.getLogger("notification_center.client.center")


class NotificationCenter:
    """Per-session notification surface: bell badge, panel list and bulk actions."""

    def __init__(
        self,
        sync: SyncClient,
        *,
        store: NotificationStore | None = None,
        selection: SelectionController | None = None,
        notifier: DesktopNotifier | None = None,
        toasts: ToastSink | None = None,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        self.sync = sync
        self.store = store or NotificationStore(sync.filter_engine)
        self.selection = selection or SelectionController()
        self.notifier = notifier or DesktopNotifier()
        self.toasts: ToastSink = toasts if toasts is not None else ToastQueue()
        self.scheduler = PollingScheduler(
            self.refresh,
            interval_seconds=poll_interval_seconds,
            clock=clock,
        )
        self._identity: str | None = None
        self._filter = NotificationFilter.ALL
        self._applied_filter: NotificationFilter | None = None
        self._panel_open = False
        self._listeners: list[Callable[[NotificationCenter], None]] = []

    # Read-only views

    @property
    def identity(self) -> str | None:
        return self._identity

    @property
    def active_filter(self) -> NotificationFilter:
        return self._filter

    @property
    def panel_open(self) -> bool:
        return self._panel_open

    @property
    def unread_count(self) -> int:
        return self.store.unread_count

    @property
    def badge(self) -> BadgeState:
        return badge_state(self.store.unread_count)

    @property
    def visible(self) -> list[Notification]:
        return self.store.visible(self._filter)

    def rows(self, now: datetime | None = None) -> list[NotificationRow]:
        selected = self.selection.selected_ids
        engine = self.store.filter_engine
        return [
            present(item, now, selected=item.id in selected, filter_engine=engine)
            for item in self.visible
        ]

    def subscribe(self, listener: Callable[[NotificationCenter], None]) -> None:
        """Call ``listener`` after every applied server snapshot."""
        self._listeners.append(listener)

    # Lifecycle

    def activate(self, identity: str) -> asyncio.Task[None] | None:
        """Start polling for ``identity`` and kick off the first fetch."""
        if self._identity == identity and self.scheduler.running:
            return None
        if self._identity is not None:
            self.deactivate()
        self._identity = identity
        self.scheduler.start()
        return self.scheduler.trigger()

    def deactivate(self) -> None:
        """Stop polling and forget the session; in-flight responses are discarded."""
        self.scheduler.stop()
        self._identity = None
        self._panel_open = False
        self._filter = NotificationFilter.ALL
        self._applied_filter = None
        self.selection.reset()
        self.store.reset()
        self.notifier.reset()

    async def refresh(self) -> bool:
        """Fetch the active filter and replace local state with the response."""
        identity = self._identity
        if identity is None:
            return False
        selected = self._filter
        generation = self.store.begin_fetch()
        try:
            result = await self.sync.fetch(selected)
        except (RequestError, TransportError) as exc:
            if self._identity == identity and self.store.is_current(generation):
                self._report_failure("Failed to load notifications", exc)
            return False

        if self._identity != identity:
            logger.debug("Dropping notifications fetched for a previous session")
            return False
        if not self.store.apply_fetch(generation, result.notifications, result.unread_count):
            if self._filter is not self._applied_filter and not self.store.newer_fetch_issued(generation):
                # A local write overtook the fetch for a new tab; nothing else will load it.
                logger.debug("Refetching after a local change", extra={"filter": self._filter.value})
                self.scheduler.trigger()
            return False

        self._applied_filter = selected
        self.selection.retain(item.id for item in self.store.notifications)
        self.notifier.observe(self.store.unread_count, self.store.newest_unread())
        for listener in self._listeners:
            listener(self)
        return True

    # Panel

    async def interact(self) -> None:
        """First touch of the bell; the only moment desktop permission is requested."""
        await self.notifier.on_interaction()

    async def open_panel(self) -> None:
        """Open the panel; everything unread and visible counts as read."""
        self._panel_open = True
        await self.interact()
        unread = self.store.unread_ids(self._filter)
        if unread:
            await self.mark_read(unread)

    def close_panel(self) -> None:
        self._panel_open = False
        self.selection.reset()

    def set_filter(self, selected: NotificationFilter) -> asyncio.Task[None] | None:
        """Switch tabs and fetch immediately, independent of the poll cadence."""
        if selected is self._filter:
            return None
        self._filter = selected
        if self._identity is None:
            return None
        return self.scheduler.trigger()

    def click(self, notification_id: str) -> ClickOutcome | None:
        """Toggle selection while selecting, otherwise close and navigate."""
        notification = self.store.get(notification_id)
        if notification is None:
            return None
        outcome = self.selection.click(notification)
        if outcome.selected is None:
            self.close_panel()
        return outcome

    def toggle_selection_mode(self) -> bool:
        self.selection.toggle_selection_mode()
        return self.selection.active

    # Writes

    async def mark_read(self, notification_ids: Sequence[str]) -> bool:
        ids = list(dict.fromkeys(notification_ids))
        if not ids:
            return True
        identity = self._identity
        mutation = self.store.mark_read(ids)
        self._rebase()
        try:
            await self.sync.mark_read(ids)
        except (RequestError, TransportError) as exc:
            self._undo(mutation, identity, "Failed to mark notifications as read", exc)
            return False
        return True

    async def mark_all_read(self) -> bool:
        identity = self._identity
        mutation = self.store.mark_all_read()
        self._rebase()
        try:
            await self.sync.mark_all_read()
        except (RequestError, TransportError) as exc:
            self._undo(mutation, identity, "Failed to mark all notifications as read", exc)
            return False
        return True

    async def delete_one(self, notification_id: str) -> bool:
        identity = self._identity
        mutation = self.store.remove([notification_id])
        self._rebase()
        try:
            await self.sync.delete_one(notification_id)
        except (RequestError, TransportError) as exc:
            self._undo(mutation, identity, "Failed to delete notification", exc)
            return False
        self._toast("Notification deleted", "", ToastSeverity.SUCCESS)
        return True

    async def delete_all_read(self) -> int | None:
        identity = self._identity
        mutation = self.store.remove_read()
        self._rebase()
        try:
            deleted = await self.sync.delete_all_read()
        except (RequestError, TransportError) as exc:
            self._undo(mutation, identity, "Failed to delete read notifications", exc)
            return None
        self._toast("Notifications deleted", f"{deleted} read notifications removed", ToastSeverity.SUCCESS)
        return deleted

    async def delete_selected(self) -> int | None:
        identity = self._identity
        try:
            deleted = await self.selection.delete_selected(self.sync, self.store)
        except (RequestError, TransportError) as exc:
            if self._identity == identity:
                self._rebase()
                self._report_failure("Failed to delete selected notifications", exc)
            return None
        self._rebase()
        if deleted:
            self._toast("Notifications deleted", f"{deleted} notifications removed", ToastSeverity.SUCCESS)
        return deleted

    # Helpers

    def _undo(
        self,
        mutation: Mutation,
        identity: str | None,
        title: str,
        exc: RequestError | TransportError,
    ) -> None:
        if self._identity != identity:
            return
        self.store.rollback(mutation)
        self._rebase()
        self._report_failure(title, exc)

    def _rebase(self) -> None:
        self.notifier.rebase(self.store.unread_count)

    def _report_failure(self, title: str, exc: RequestError | TransportError) -> None:
        if isinstance(exc, RequestError):
            description = exc.message
        else:
            description = "Could not reach the notification server."
        self._toast(title, description, ToastSeverity.DESTRUCTIVE)

    def _toast(self, title: str, description: str, severity: ToastSeverity) -> None:
        self.toasts.show(Toast(title=title, description=description, severity=severity))


__all__ = ["NotificationCenter"]
