from __future__ import annotations

import json
import uuid
from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from notification_center.client.errors import RequestError, TransportError
from notification_center.client.filters import NotificationFilter
from notification_center.client.sync import SyncClient
from notification_center.core.version import USER_AGENT
from notification_center.main import app
from notification_center.models.notification import NotificationSourceType
from notification_center.models.user import User
from notification_center.schemas.notification import FriendRequestNotification
from tests.helpers import auth_headers, seed_notifications

S = NotificationSourceType


@pytest_asyncio.fixture()
async def live_sync(session_override: None, user: User) -> AsyncIterator[SyncClient]:
    token = auth_headers(user)["Authorization"].removeprefix("Bearer ")
    client = SyncClient(
        "http://testserver/api",
        token=token,
        transport=httpx.ASGITransport(app=app),
    )
    try:
        yield client
    finally:
        await client.aclose()


def _list_body(*items: dict[str, object], unread: int = 0) -> dict[str, object]:
    return {"notifications": list(items), "unreadCount": unread, "totalCount": len(items)}


@pytest.mark.asyncio
async def test_fetch_against_server_applies_filter(
    live_sync: SyncClient,
    db_session: AsyncSession,
    user: User,
) -> None:
    await seed_notifications(
        db_session,
        user,
        [(S.FRIEND_REQUEST, False), (S.ATTENDEE, True), (S.EVENT_UPDATE, False)],
    )

    everything = await live_sync.fetch()
    events = await live_sync.fetch(NotificationFilter.EVENTS)
    unread = await live_sync.fetch(NotificationFilter.UNREAD)

    assert everything.total_count == 3
    assert everything.unread_count == 2
    assert isinstance(everything.notifications[0], FriendRequestNotification)
    assert {item.source_type for item in events.notifications} == {"ATTENDEE", "EVENT_UPDATE"}
    assert all(not item.is_read for item in unread.notifications)
    assert unread.total_count == 2


@pytest.mark.asyncio
async def test_writes_against_server(
    live_sync: SyncClient,
    db_session: AsyncSession,
    user: User,
) -> None:
    rows = await seed_notifications(
        db_session,
        user,
        [(S.SYSTEM, False), (S.SYSTEM, False), (S.SYSTEM, True), (S.SYSTEM, False)],
    )

    await live_sync.mark_read([str(rows[0].id)])
    assert (await live_sync.fetch()).unread_count == 2

    assert await live_sync.delete_all_read() == 2
    assert await live_sync.delete_many([str(rows[1].id)]) == 1
    await live_sync.delete_one(str(rows[3].id))

    assert (await live_sync.fetch()).total_count == 0

    await seed_notifications(db_session, user, [(S.ATTENDEE, False)])
    await live_sync.mark_all_read()
    assert (await live_sync.fetch()).unread_count == 0


@pytest.mark.asyncio
async def test_delete_unknown_id_raises_request_error(live_sync: SyncClient) -> None:
    with pytest.raises(RequestError) as exc:
        await live_sync.delete_one(str(uuid.uuid4()))

    assert exc.value.status_code == 404
    assert exc.value.code == "NOTIFICATION_NOT_FOUND"
    assert exc.value.message == "Notification not found"


@pytest.mark.asyncio
async def test_fetch_sends_filter_limit_and_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_list_body())

    async with SyncClient(
        "http://server/api/",
        token="secret",
        page_size=15,
        transport=httpx.MockTransport(handler),
    ) as sync:
        await sync.fetch(NotificationFilter.FRIENDS, offset=30)

    request = seen[0]
    assert request.url.path == "/api/notifications"
    assert request.url.params.get_list("type") == ["FRIEND_REQUEST"]
    assert request.url.params["limit"] == "15"
    assert request.url.params["offset"] == "30"
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.headers["User-Agent"] == USER_AGENT


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "message", "code"),
    [
        ({"error": {"code": "TOKEN_EXPIRED", "message": "Token expired"}}, "Token expired", "TOKEN_EXPIRED"),
        ({"error": "Unauthorized"}, "Unauthorized", None),
        ({"detail": "nope"}, "Unauthorized", None),
    ],
)
async def test_error_envelopes_are_normalized(
    body: dict[str, object],
    message: str,
    code: str | None,
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json=body)

    async with SyncClient("http://server/api", transport=httpx.MockTransport(handler)) as sync:
        with pytest.raises(RequestError) as exc:
            await sync.mark_all_read()

    assert exc.value.status_code == 401
    assert exc.value.message == message
    assert exc.value.code == code


@pytest.mark.asyncio
async def test_unreachable_server_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with SyncClient("http://server/api", transport=httpx.MockTransport(handler)) as sync:
        with pytest.raises(TransportError):
            await sync.fetch()


@pytest.mark.asyncio
async def test_malformed_list_is_a_request_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"notifications": "nope"})

    async with SyncClient("http://server/api", transport=httpx.MockTransport(handler)) as sync:
        with pytest.raises(RequestError):
            await sync.fetch()


@pytest.mark.asyncio
async def test_empty_id_lists_skip_the_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with SyncClient("http://server/api", transport=httpx.MockTransport(handler)) as sync:
        await sync.mark_read([])
        assert await sync.delete_many([]) == 0


@pytest.mark.asyncio
async def test_mark_read_sends_ids_in_body() -> None:
    bodies: list[object] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"message": "Notifications marked as read"})

    async with SyncClient("http://server/api", transport=httpx.MockTransport(handler)) as sync:
        await sync.mark_read(["a", "b"])

    assert bodies == [{"notificationIds": ["a", "b"]}]
