from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI, Request, status
from httpx import ASGITransport, AsyncClient

from notification_center.core.logging import get_request_id
from notification_center.core.middleware import (
    AccessLogMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)


def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


@pytest.mark.asyncio
async def test_request_size_limit_rejects_large_payload() -> None:
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_request_bytes=64)

    @app.patch("/echo")
    async def echo_endpoint() -> dict[str, str]:
        return {"status": "ok"}

    async with _client(app) as client:
        response = await client.patch(
            "/echo", content="x" * 128, headers={"content-type": "text/plain"}
        )

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    payload = response.json()
    assert payload["error"]["code"] == "PAYLOAD_TOO_LARGE"
    assert payload["error"]["message"].startswith("Request body exceeds")
    assert payload["error"]["details"] == {"max_request_bytes": 64}


@pytest.mark.asyncio
async def test_request_size_limit_allows_small_payload() -> None:
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_request_bytes=256)

    @app.patch("/echo")
    async def echo_endpoint(request: Request) -> dict[str, object]:
        return {"status": "ok", "body": await request.json()}

    async with _client(app) as client:
        response = await client.patch("/echo", json={"message": "ok"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok", "body": {"message": "ok"}}


@pytest.mark.asyncio
async def test_request_size_limit_skips_reads() -> None:
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_request_bytes=1)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"status": "ok"}

    async with _client(app) as client:
        response = await client.get("/ping")

    assert response.status_code == status.HTTP_200_OK


def test_request_size_limit_requires_positive_bound() -> None:
    with pytest.raises(ValueError):
        RequestSizeLimitMiddleware(FastAPI(), max_request_bytes=0)


@pytest.mark.asyncio
async def test_security_headers_middleware_injects_headers() -> None:
    app = FastAPI()
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=True)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"status": "ok"}

    async with _client(app) as client:
        response = await client.get("/ping")

    headers = response.headers
    assert headers["X-Content-Type-Options"] == "nosniff"
    assert headers["X-Frame-Options"] == "DENY"
    assert headers["Referrer-Policy"] == "same-origin"
    assert headers["Cache-Control"] == "no-store"
    assert headers["Strict-Transport-Security"].startswith("max-age=")


@pytest.mark.asyncio
async def test_security_headers_skip_hsts_by_default() -> None:
    app = FastAPI()
    app.add_middleware(SecurityHeadersMiddleware)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"status": "ok"}

    async with _client(app) as client:
        response = await client.get("/ping")

    assert "Strict-Transport-Security" not in response.headers


@pytest.mark.asyncio
async def test_request_id_is_bound_to_logging_context() -> None:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/ping")
    async def ping() -> dict[str, str | None]:
        return {"request_id": get_request_id()}

    async with _client(app) as client:
        response = await client.get("/ping", headers={"X-Request-ID": "abc.123"})

    assert response.json() == {"request_id": "abc.123"}
    assert response.headers["X-Request-ID"] == "abc.123"
    assert get_request_id() is None


@pytest.mark.asyncio
async def test_access_log_records_query_user_and_agent(caplog: pytest.LogCaptureFixture) -> None:
    app = FastAPI()
    app.add_middleware(AccessLogMiddleware)

    @app.get("/api/notifications")
    async def notifications(request: Request) -> dict[str, int]:
        request.state.user_id = "user-7"
        return {"unreadCount": 0}

    caplog.set_level(logging.INFO, logger="notification_center.access")
    async with _client(app) as client:
        await client.get(
            "/api/notifications",
            params={"read": "false"},
            headers={"User-Agent": "social-scheduler-notifications/0.1.0"},
        )

    record = next(item for item in caplog.records if item.name == "notification_center.access")
    assert getattr(record, "query") == "read=false"
    assert getattr(record, "status_code") == 200
    assert getattr(record, "user_id") == "user-7"
    assert getattr(record, "user_agent") == "social-scheduler-notifications/0.1.0"
