"""Errors raised by the notification center client."""

from __future__ import annotations


class NotificationCenterError(Exception):
    """Base class for client-side failures."""


class RequestError(NotificationCenterError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"RequestError(status_code={self.status_code}, code={self.code!r}, message={self.message!r})"


class TransportError(NotificationCenterError):
    """The server could not be reached."""


class PermissionDenied(NotificationCenterError):
    """Desktop notification permission was refused."""


__all__ = ["NotificationCenterError", "PermissionDenied", "RequestError", "TransportError"]
