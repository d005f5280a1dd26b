"""JSON logging shared by the notification server and the polling client.

Records carry the request id on the server side and the bound session labels
(for example the watcher identity and its filter tab) on the client side.
"""

from __future__ import annotations

import enum
import json
import logging
import sys
from collections.abc import Mapping
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import IO, Any, Final

REQUEST_ID_CTX: Final[ContextVar[str | None]] = ContextVar("request_id", default=None)
LOG_CONTEXT_CTX: Final[ContextVar[Mapping[str, str]]] = ContextVar("log_context", default={})

_LOGGING_CONFIGURED: bool = False

# Dependencies that log every query or connection at INFO.
_QUIET_LOGGERS: Final[tuple[str, ...]] = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
)

_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "request_id"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields land at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id
        entry.update(get_log_context())

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_") or value is None:
                continue
            entry[key] = _normalize(value)

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info).replace("\n", " | ")
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info).replace("\n", " | ")

        return json.dumps(entry, ensure_ascii=True, separators=(",", ":"))


def _normalize(value: object) -> object:
    if isinstance(value, enum.Enum):
        return _normalize(value.value)
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(str(item) for item in value)
    if isinstance(value, tuple):
        return [_normalize(item) for item in value]
    if isinstance(value, (list, dict)):
        try:
            json.dumps(value)
        except TypeError:
            return str(value)
        return value
    return str(value)


def configure_logging(level_name: str, *, stream: IO[str] | None = None) -> None:
    """Install the JSON handler on the root logger once per process."""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(_resolve_level(level_name))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    _LOGGING_CONFIGURED = True


def _resolve_level(level_name: str) -> int:
    level_value = logging.getLevelName(level_name.upper())
    if isinstance(level_value, int):
        return level_value
    return logging.INFO


def bind_request_id(request_id: str) -> Token[str | None]:
    return REQUEST_ID_CTX.set(request_id)


def get_request_id() -> str | None:
    return REQUEST_ID_CTX.get()


def reset_request_id(token: Token[str | None]) -> None:
    REQUEST_ID_CTX.reset(token)


def bind_log_context(**fields: str) -> Token[Mapping[str, str]]:
    """Add labels to every record logged from this context and tasks spawned from it."""
    return LOG_CONTEXT_CTX.set({**LOG_CONTEXT_CTX.get(), **fields})


def get_log_context() -> Mapping[str, str]:
    return LOG_CONTEXT_CTX.get()


def reset_log_context(token: Token[Mapping[str, str]]) -> None:
    LOG_CONTEXT_CTX.reset(token)


__all__ = [
    "JsonLogFormatter",
    "bind_log_context",
    "bind_request_id",
    "configure_logging",
    "get_log_context",
    "get_request_id",
    "reset_log_context",
    "reset_request_id",
]
