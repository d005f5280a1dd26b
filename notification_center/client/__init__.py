"""Client-side notification center: polling, optimistic state and presentation."""

from notification_center.client.center import NotificationCenter
from notification_center.client.desktop import DesktopNotifier, NullDesktopBackend, Permission
from notification_center.client.errors import (
    NotificationCenterError,
    PermissionDenied,
    RequestError,
    TransportError,
)
from notification_center.client.filters import FilterEngine, NotificationFilter
from notification_center.client.presenter import badge_state, present
from notification_center.client.scheduler import AsyncioClock, PollingScheduler
from notification_center.client.selection import SelectionController
from notification_center.client.store import Mutation, NotificationStore
from notification_center.client.sync import FetchResult, SyncClient
from notification_center.client.toasts import Toast, ToastQueue, ToastSeverity

__all__ = [
    "AsyncioClock",
    "DesktopNotifier",
    "FetchResult",
    "FilterEngine",
    "Mutation",
    "NotificationCenter",
    "NotificationCenterError",
    "NotificationFilter",
    "NotificationStore",
    "NullDesktopBackend",
    "Permission",
    "PermissionDenied",
    "PollingScheduler",
    "RequestError",
    "SelectionController",
    "SyncClient",
    "Toast",
    "ToastQueue",
    "ToastSeverity",
    "TransportError",
    "badge_state",
    "present",
]
