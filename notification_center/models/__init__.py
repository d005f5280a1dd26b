"""Database models shared across the notification server."""

from notification_center.models.base import Base
from notification_center.models.notification import Notification, NotificationSourceType
from notification_center.models.user import User

__all__ = ["Base", "Notification", "NotificationSourceType", "User"]
