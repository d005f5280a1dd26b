"""Notification entity and its closed set of source types."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from notification_center.models.base import GUID, Base, UTCDateTime, utcnow


class NotificationSourceType(str, enum.Enum):
    """Domain event that produced a notification."""

    ATTENDEE = "ATTENDEE"
    FRIEND_REQUEST = "FRIEND_REQUEST"
    EVENT_UPDATE = "EVENT_UPDATE"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    EVENT_REMINDER = "EVENT_REMINDER"
    COMMENT = "COMMENT"
    MENTION = "MENTION"
    SYSTEM = "SYSTEM"

    @classmethod
    def parse(cls, value: str) -> "NotificationSourceType | None":
        """Case-insensitive lookup returning None for unknown values."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


EVENT_SOURCE_TYPES: frozenset[NotificationSourceType] = frozenset(
    {
        NotificationSourceType.ATTENDEE,
        NotificationSourceType.EVENT_UPDATE,
        NotificationSourceType.EVENT_CANCELLED,
        NotificationSourceType.EVENT_REMINDER,
    }
)
FRIEND_SOURCE_TYPES: frozenset[NotificationSourceType] = frozenset(
    {NotificationSourceType.FRIEND_REQUEST}
)
SYSTEM_SOURCE_TYPES: frozenset[NotificationSourceType] = frozenset(
    {NotificationSourceType.SYSTEM}
)


class Notification(Base):
    """Persisted notification addressed to a single user."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    target_user_id: Mapped[uuid.UUID] = mapped_column(
        "user_id",
        GUID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    source_type: Mapped[NotificationSourceType] = mapped_column(String(32), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(512))
    # Snapshot of the producing entity (sender, event summary) keyed by source_type.
    payload: Mapped[dict[str, object] | None] = mapped_column(MutableDict.as_mutable(JSON()))
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")

    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    read_at: Mapped[datetime | None] = mapped_column(UTCDateTime())

    delivery_status: Mapped[str | None] = mapped_column(String(32))
    clicked_at: Mapped[datetime | None] = mapped_column(UTCDateTime())
    dismissed_at: Mapped[datetime | None] = mapped_column(UTCDateTime())

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    target_user = relationship("User", back_populates="notifications")

    __table_args__ = (
        Index("ix_notifications_user_id", "user_id"),
        Index("ix_notifications_is_read", "is_read"),
        Index("ix_notifications_created_at", "created_at"),
        Index("ix_notifications_source_type", "source_type"),
        CheckConstraint("priority >= 0 AND priority <= 3", name="priority_range"),
    )


__all__ = [
    "EVENT_SOURCE_TYPES",
    "FRIEND_SOURCE_TYPES",
    "Notification",
    "NotificationSourceType",
    "SYSTEM_SOURCE_TYPES",
]
