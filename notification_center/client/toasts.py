"""Transient user-facing notices raised by notification actions."""

from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger("notification_center.client.toasts")


class ToastSeverity(str, enum.Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"
    SUCCESS = "success"


@dataclass(frozen=True, slots=True)
class Toast:
    title: str
    description: str = ""
    severity: ToastSeverity = ToastSeverity.DEFAULT


class ToastSink(Protocol):
    def show(self, toast: Toast) -> None: ...


class ToastQueue:
    """Bounded in-memory sink; newest toasts push out the oldest."""

    def __init__(self, limit: int = 20) -> None:
        self._toasts: deque[Toast] = deque(maxlen=limit)

    def show(self, toast: Toast) -> None:
        self._toasts.append(toast)

    def drain(self) -> list[Toast]:
        drained = list(self._toasts)
        self._toasts.clear()
        return drained

    @property
    def toasts(self) -> list[Toast]:
        return list(self._toasts)

    def __len__(self) -> int:
        return len(self._toasts)


class LoggingToastSink:
    """Sink for headless runs: every toast becomes a log record."""

    def show(self, toast: Toast) -> None:
        level = logging.WARNING if toast.severity is ToastSeverity.DESTRUCTIVE else logging.INFO
        logger.log(
            level,
            toast.title,
            extra={"description": toast.description, "severity": toast.severity.value},
        )


__all__ = ["LoggingToastSink", "Toast", "ToastQueue", "ToastSeverity", "ToastSink"]
