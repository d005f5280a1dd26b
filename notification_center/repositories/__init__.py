"""Data access layer abstractions and implementations."""

from notification_center.repositories.notification import NotificationRepository
from notification_center.repositories.user import UserRepository

__all__ = ["NotificationRepository", "UserRepository"]
