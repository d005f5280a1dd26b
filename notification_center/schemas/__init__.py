"""Public exports for Pydantic schemas."""

from __future__ import annotations

from .notification import (
    DeleteResponse,
    MarkReadRequest,
    MessageResponse,
    Notification,
    NotificationIdsRequest,
    NotificationListResponse,
    parse_notification,
)

__all__ = [
    "DeleteResponse",
    "MarkReadRequest",
    "MessageResponse",
    "Notification",
    "NotificationIdsRequest",
    "NotificationListResponse",
    "parse_notification",
]
