"""In-memory notification state and its reconciliation with the server.

The store holds the list returned by the latest applied fetch and the unread
counter of the user's full notification set. Local edits are applied
optimistically and recorded as ``Mutation`` objects so a failed write can be
undone.

Two counters keep late responses from clobbering newer state:

* ``generation`` advances on every fetch issued and every local mutation. A
  fetch result is applied only when its generation is still the latest, so a
  poll that started before a delete cannot resurrect the deleted row.
* ``reconciliation`` advances on every applied fetch. A rollback is skipped
  once a newer server snapshot has replaced the state it would restore.

Optimistic writes may overlap. Every row remembers the serial of the mutation
that last changed it, and a rollback only restores rows it still owns. The
unread counter gives back only what the restored rows account for.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from notification_center.client.filters import (
    FilterEngine,
    NotificationFilter,
    default_filter_engine,
)
from notification_center.schemas.notification import Notification

logger = logging.getLogger("notification_center.client.store")


class MutationKind(str, enum.Enum):
    MARK_READ = "mark_read"
    MARK_ALL_READ = "mark_all_read"
    DELETE = "delete"
    DELETE_READ = "delete_read"


@dataclass(frozen=True, slots=True)
class Mutation:
    """Undo record for one optimistic change."""

    kind: MutationKind
    ids: tuple[str, ...]
    # Rows as they were before the change, keyed by id.
    previous: dict[str, Notification] = field(default_factory=dict)
    unread_delta: int = 0
    reconciliation: int = 0
    serial: int = 0
    # Owner of each changed row before this mutation took it over.
    prior_owners: dict[str, int | None] = field(default_factory=dict)
    # Latest mark-all-read in effect before this one, as (serial, read_at).
    prior_read_all: tuple[int, datetime] | None = None

    @property
    def changed(self) -> bool:
        return bool(self.previous) or self.unread_delta != 0


def _ordering_key(notification: Notification) -> tuple[float, str]:
    return (-notification.created_at.timestamp(), notification.id)


class NotificationStore:
    """Canonical notification state for the signed-in user."""

    def __init__(self, filter_engine: FilterEngine | None = None) -> None:
        self.filter_engine = filter_engine or default_filter_engine
        self._items: list[Notification] = []
        self._unread_count = 0
        self._generation = 0
        self._latest_fetch = 0
        self._reconciliation = 0
        self._loaded = False
        self._serial = 0
        self._owners: dict[str, int] = {}
        self._read_all: tuple[int, datetime] | None = None

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._items)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def loaded(self) -> bool:
        """True once at least one server snapshot was applied."""
        return self._loaded

    def get(self, notification_id: str) -> Notification | None:
        for item in self._items:
            if item.id == notification_id:
                return item
        return None

    def visible(self, selected: NotificationFilter = NotificationFilter.ALL) -> list[Notification]:
        return self.filter_engine.apply(selected, self._items)

    def unread_ids(self, selected: NotificationFilter = NotificationFilter.ALL) -> list[str]:
        return [item.id for item in self.visible(selected) if not item.is_read]

    def newest_unread(self) -> Notification | None:
        unread = [item for item in self._items if not item.is_read]
        if not unread:
            return None
        return min(unread, key=_ordering_key)

    # Reconciliation

    def begin_fetch(self) -> int:
        """Reserve a generation number for a fetch about to be sent."""
        self._generation += 1
        self._latest_fetch = self._generation
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def newer_fetch_issued(self, generation: int) -> bool:
        """True when a fetch started after ``generation`` will deliver a snapshot."""
        return self._latest_fetch > generation

    def apply_fetch(
        self,
        generation: int,
        notifications: Sequence[Notification],
        unread_count: int,
    ) -> bool:
        """Replace local state with a server snapshot unless it is stale."""
        if not self.is_current(generation):
            logger.debug(
                "Discarding stale notification snapshot",
                extra={"generation": generation, "latest": self._generation},
            )
            return False
        self._items = sorted(notifications, key=_ordering_key)
        self._unread_count = max(0, unread_count)
        self._reconciliation += 1
        self._loaded = True
        self._owners.clear()
        self._read_all = None
        return True

    def reset(self) -> None:
        """Forget everything; in-flight fetches become stale."""
        self._items = []
        self._unread_count = 0
        self._generation += 1
        self._reconciliation += 1
        self._loaded = False
        self._owners.clear()
        self._read_all = None

    # Optimistic mutations

    def _record(
        self,
        kind: MutationKind,
        ids: Iterable[str],
        previous: dict[str, Notification],
        unread_delta: int,
        prior_read_all: tuple[int, datetime] | None = None,
    ) -> Mutation:
        self._generation += 1
        self._serial += 1
        prior_owners = {key: self._owners.get(key) for key in previous}
        for key in previous:
            self._owners[key] = self._serial
        return Mutation(
            kind=kind,
            ids=tuple(ids),
            previous=previous,
            unread_delta=unread_delta,
            reconciliation=self._reconciliation,
            serial=self._serial,
            prior_owners=prior_owners,
            prior_read_all=prior_read_all,
        )

    def mark_read(self, notification_ids: Collection[str], now: datetime | None = None) -> Mutation:
        """Flip the given rows to read; already-read rows are left as they are."""
        read_at = now or datetime.now(tz=timezone.utc)
        wanted = set(notification_ids)
        previous: dict[str, Notification] = {}
        updated: list[Notification] = []
        for item in self._items:
            if item.id in wanted and not item.is_read:
                previous[item.id] = item
                item = item.mark_read(read_at)
            updated.append(item)
        self._items = updated

        decrement = min(len(previous), self._unread_count)
        self._unread_count -= decrement
        return self._record(MutationKind.MARK_READ, notification_ids, previous, decrement)

    def mark_all_read(self, now: datetime | None = None) -> Mutation:
        """Mark every held row read and zero the counter for the full set."""
        read_at = now or datetime.now(tz=timezone.utc)
        previous = {item.id: item for item in self._items if not item.is_read}
        self._items = [item.mark_read(read_at) for item in self._items]

        decrement = self._unread_count
        self._unread_count = 0
        prior_read_all = self._read_all
        mutation = self._record(
            MutationKind.MARK_ALL_READ, previous, previous, decrement, prior_read_all
        )
        self._read_all = (mutation.serial, read_at)
        return mutation

    def remove(self, notification_ids: Collection[str]) -> Mutation:
        """Drop rows locally; the counter loses one per removed unread row."""
        wanted = set(notification_ids)
        previous = {item.id: item for item in self._items if item.id in wanted}
        self._items = [item for item in self._items if item.id not in wanted]

        unread_removed = sum(1 for item in previous.values() if not item.is_read)
        decrement = min(unread_removed, self._unread_count)
        self._unread_count -= decrement
        return self._record(MutationKind.DELETE, notification_ids, previous, decrement)

    def remove_read(self) -> Mutation:
        previous = {item.id: item for item in self._items if item.is_read}
        self._items = [item for item in self._items if not item.is_read]
        return self._record(MutationKind.DELETE_READ, previous, previous, 0)

    def rollback(self, mutation: Mutation) -> bool:
        """Undo ``mutation`` unless a newer server snapshot superseded it."""
        if mutation.reconciliation != self._reconciliation:
            logger.debug(
                "Skipping rollback superseded by a newer snapshot",
                extra={"mutation": mutation.kind.value},
            )
            return False
        if not mutation.changed:
            return False

        owned = {
            key: row
            for key, row in mutation.previous.items()
            if self._owners.get(key) == mutation.serial
        }
        if mutation.kind in (MutationKind.MARK_READ, MutationKind.MARK_ALL_READ):
            restored = self._revert(owned)
        else:
            restored = self._reinsert(owned, mutation.serial)

        for key in owned:
            owner = mutation.prior_owners.get(key)
            if owner is None:
                self._owners.pop(key, None)
            else:
                self._owners[key] = owner
        if mutation.kind is MutationKind.MARK_ALL_READ and self._read_all is not None:
            if self._read_all[0] == mutation.serial:
                self._read_all = mutation.prior_read_all

        # The counter only gets back what the restored unread rows account for.
        unread_before = sum(1 for row in mutation.previous.values() if not row.is_read)
        unread_restored = sum(1 for row in restored if not row.is_read)
        self._unread_count += max(0, mutation.unread_delta - (unread_before - unread_restored))
        # Responses issued while the optimistic state was showing are now stale.
        self._generation += 1
        logger.info(
            "Rolled back optimistic notification change",
            extra={
                "mutation": mutation.kind.value,
                "count": len(restored),
                "skipped": len(mutation.previous) - len(restored),
            },
        )
        return True

    def _revert(self, owned: dict[str, Notification]) -> list[Notification]:
        restored: list[Notification] = []
        updated: list[Notification] = []
        for item in self._items:
            if item.id in owned:
                item = owned[item.id]
                restored.append(item)
            updated.append(item)
        self._items = updated
        return restored

    def _reinsert(self, owned: dict[str, Notification], serial: int) -> list[Notification]:
        present = {item.id for item in self._items}
        restored: list[Notification] = []
        for key, row in owned.items():
            if key in present:
                continue
            if not row.is_read and self._read_all is not None and self._read_all[0] > serial:
                # A later mark-all-read covers rows that were away at the time.
                row = row.mark_read(self._read_all[1])
            restored.append(row)
        self._items = sorted([*self._items, *restored], key=_ordering_key)
        return restored


__all__ = ["Mutation", "MutationKind", "NotificationStore"]
