"""Business logic services orchestrating domain operations."""

from notification_center.services.notifications import NotificationService
from notification_center.services.publisher import NotificationPublisher

__all__ = ["NotificationPublisher", "NotificationService"]
