from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from notification_center.schemas.notification import (
    EventNotification,
    FriendRequestNotification,
    MarkReadRequest,
    NotificationListResponse,
    PlainNotification,
    parse_notification,
)

CREATED = datetime(2026, 3, 7, 12, 0, tzinfo=timezone.utc)


def _raw(source_type: str, **extra: object) -> dict[str, object]:
    return {
        "id": "n-1",
        "message": "hello",
        "sourceType": source_type,
        "isRead": False,
        "readAt": None,
        "createdAt": CREATED.isoformat(),
        "targetUserId": "u-1",
        **extra,
    }


def test_source_type_selects_variant() -> None:
    assert isinstance(parse_notification(_raw("FRIEND_REQUEST")), FriendRequestNotification)
    assert isinstance(parse_notification(_raw("event_reminder")), EventNotification)
    assert isinstance(parse_notification(_raw("MENTION")), PlainNotification)


def test_event_payload_is_typed() -> None:
    notification = parse_notification(
        _raw(
            "ATTENDEE",
            payload={"event": {"id": "e-1", "name": "Picnic", "host": {"id": "u-2", "name": "Dana"}}},
        )
    )

    assert isinstance(notification, EventNotification)
    assert notification.payload is not None
    assert notification.payload.event.host is not None
    assert notification.payload.event.host.name == "Dana"


def test_unknown_source_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_notification(_raw("PRIVATE_INVITATION"))


def test_plain_variant_rejects_payload() -> None:
    with pytest.raises(ValidationError):
        parse_notification(_raw("SYSTEM", payload={"sender": {"id": "x"}}))


@pytest.mark.parametrize(
    ("is_read", "read_at"),
    [(True, None), (False, CREATED.isoformat())],
)
def test_read_at_must_match_is_read(is_read: bool, read_at: str | None) -> None:
    with pytest.raises(ValidationError):
        parse_notification(_raw("SYSTEM", isRead=is_read, readAt=read_at))


@pytest.mark.parametrize("priority", [-1, 4])
def test_priority_range(priority: int) -> None:
    with pytest.raises(ValidationError):
        parse_notification(_raw("SYSTEM", priority=priority))


def test_mark_read_and_unread_copies() -> None:
    original = parse_notification(_raw("COMMENT"))
    when = datetime(2026, 3, 8, tzinfo=timezone.utc)

    read = original.mark_read(when)
    assert read.is_read is True
    assert read.read_at == when
    assert original.is_read is False
    assert read.mark_read() is read

    unread = read.mark_unread()
    assert unread.is_read is False
    assert unread.read_at is None


def test_list_response_serializes_camel_case() -> None:
    response = NotificationListResponse(
        notifications=[parse_notification(_raw("SYSTEM"))],
        unread_count=1,
        total_count=1,
    )

    dumped = response.model_dump(mode="json", by_alias=True)

    assert dumped["unreadCount"] == 1
    assert dumped["notifications"][0]["sourceType"] == "SYSTEM"
    assert dumped["notifications"][0]["isRead"] is False


def test_mark_read_request_defaults() -> None:
    request = MarkReadRequest.model_validate({"notificationIds": ["a"]})

    assert request.mark_all is False
    assert request.mark_all_as_read is True
