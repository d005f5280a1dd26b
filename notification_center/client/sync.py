"""Thin async wrapper around the notification server API.

Every call is exactly one HTTP round trip. Nothing is cached or retried; the
caller decides what a failure means for local state.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from notification_center.client.errors import RequestError, TransportError
from notification_center.client.filters import (
    FilterEngine,
    NotificationFilter,
    default_filter_engine,
)
from notification_center.core.version import USER_AGENT
from notification_center.schemas.notification import Notification, NotificationListResponse

logger = logging.getLogger("notification_center.client.sync")

NOTIFICATIONS_PATH = "/notifications"


@dataclass(frozen=True, slots=True)
class FetchResult:
    notifications: list[Notification]
    unread_count: int
    total_count: int


def _error_message(response: httpx.Response) -> tuple[str, str | None]:
    """Pull the server message out of either error envelope shape."""
    fallback = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        body: Any = response.json()
    except ValueError:
        return fallback, None
    if not isinstance(body, dict):
        return fallback, None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        code = error.get("code")
        return (str(message) if message else fallback), (str(code) if code else None)
    if isinstance(error, str) and error:
        return error, None
    return fallback, None


class SyncClient:
    """Request/response access to ``/notifications`` for one signed-in user."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        page_size: int = 20,
        filter_engine: FilterEngine | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.page_size = page_size
        self.filter_engine = filter_engine or default_filter_engine
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SyncClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        *,
        params: Sequence[tuple[str, str | int]] | None = None,
        json: object | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                NOTIFICATIONS_PATH,
                params=list(params) if params else None,
                json=json,
            )
        except httpx.TransportError as exc:
            logger.warning(
                "Notification server unreachable",
                extra={"http_method": method, "error": str(exc)},
            )
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if response.is_success:
            return response

        message, code = _error_message(response)
        logger.warning(
            "Notification request failed",
            extra={
                "http_method": method,
                "status_code": response.status_code,
                "error_code": code,
            },
        )
        raise RequestError(response.status_code, message, code=code)

    async def fetch(
        self,
        selected: NotificationFilter = NotificationFilter.ALL,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> FetchResult:
        """Fetch the newest notifications matching ``selected``."""
        params: list[tuple[str, str | int]] = list(self.filter_engine.query_params(selected))
        params.append(("limit", limit or self.page_size))
        if offset:
            params.append(("offset", offset))

        response = await self._request("GET", params=params)
        try:
            payload = NotificationListResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise RequestError(response.status_code, "Malformed notification list") from exc

        return FetchResult(
            notifications=list(payload.notifications),
            unread_count=payload.unread_count,
            total_count=payload.total_count,
        )

    async def mark_read(self, notification_ids: Sequence[str]) -> None:
        if not notification_ids:
            return
        await self._request("PATCH", json={"notificationIds": list(notification_ids)})

    async def mark_all_read(self) -> None:
        await self._request("PATCH", json={"markAll": True})

    async def delete_one(self, notification_id: str) -> None:
        await self._request("DELETE", params=[("id", notification_id)])

    async def delete_many(self, notification_ids: Sequence[str]) -> int:
        if not notification_ids:
            return 0
        response = await self._request("DELETE", json={"notificationIds": list(notification_ids)})
        return _deleted_count(response)

    async def delete_all_read(self) -> int:
        response = await self._request("DELETE", params=[("all", "true"), ("read", "true")])
        return _deleted_count(response)


def _deleted_count(response: httpx.Response) -> int:
    try:
        body = response.json()
    except ValueError:
        return 0
    count = body.get("count") if isinstance(body, dict) else None
    return count if isinstance(count, int) else 0


__all__ = ["FetchResult", "NOTIFICATIONS_PATH", "SyncClient"]
