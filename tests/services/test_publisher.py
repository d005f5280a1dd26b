from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notification_center.models.notification import Notification, NotificationSourceType
from notification_center.models.user import User
from notification_center.repositories.notification import NotificationRepository
from notification_center.schemas.notification import EventSummary, UserSummary
from notification_center.services.publisher import NotificationPublisher, format_reminder_date

EVENT = EventSummary(id="evt-1", name="Board games", location="Cafe")


def _publisher(db_session: AsyncSession) -> NotificationPublisher:
    return NotificationPublisher(NotificationRepository(db_session))


async def _all(db_session: AsyncSession) -> list[Notification]:
    return list((await db_session.execute(select(Notification))).scalars())


def test_format_reminder_date() -> None:
    assert format_reminder_date(date(2025, 3, 7)) == "Friday, Mar 7"


@pytest.mark.asyncio
async def test_friend_request_snapshots_sender(db_session: AsyncSession, user: User) -> None:
    sender = UserSummary(id="u-9", name="Bob", username="bob")

    row = await _publisher(db_session).notify_friend_request(target_user_id=user.id, sender=sender)

    assert row.source_type == "FRIEND_REQUEST"
    assert row.message == "Bob sent you a friend request"
    assert row.link == "/profile"
    assert row.priority == 2
    assert row.payload == {"sender": {"id": "u-9", "name": "Bob", "username": "bob"}}
    assert row.is_read is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("privacy", "priority", "phrase"),
    [
        ("PUBLIC", 1, "invited you to an event"),
        ("FRIENDS_ONLY", 2, "friends-only event"),
        ("PRIVATE", 2, "their private event"),
    ],
)
async def test_event_invitation_priority_follows_privacy(
    db_session: AsyncSession,
    user: User,
    privacy: str,
    priority: int,
    phrase: str,
) -> None:
    row = await _publisher(db_session).notify_event_invitation(
        target_user_id=user.id,
        event=EVENT,
        host_name="Carol",
        privacy_level=privacy,  # type: ignore[arg-type]
    )

    assert row.source_type == "ATTENDEE"
    assert row.priority == priority
    assert phrase in row.message
    assert row.link == "/events/evt-1"
    assert row.payload["event"]["name"] == "Board games"


@pytest.mark.asyncio
async def test_event_update_fans_out_once_per_recipient(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    rows = await _publisher(db_session).notify_event_update(
        target_user_ids=[user.id, other_user.id, user.id],
        event=EVENT,
        update_kind="location",
    )

    assert len(rows) == 2
    assert {row.target_user_id for row in rows} == {user.id, other_user.id}
    assert all(row.source_type == "EVENT_UPDATE" and row.priority == 2 for row in rows)
    assert rows[0].message == 'The location for "Board games" has changed'


@pytest.mark.asyncio
async def test_cancellation_is_urgent(db_session: AsyncSession, user: User) -> None:
    rows = await _publisher(db_session).notify_event_update(
        target_user_ids=[user.id],
        event=EVENT,
        update_kind="cancelled",
    )

    assert rows[0].source_type == "EVENT_CANCELLED"
    assert rows[0].priority == 3


@pytest.mark.asyncio
async def test_reminder_message(db_session: AsyncSession, user: User) -> None:
    rows = await _publisher(db_session).notify_event_reminder(
        target_user_ids=[user.id],
        event=EVENT,
        starts_on=date(2025, 3, 7),
        starts_at="7:30 PM",
    )

    assert rows[0].message == 'Reminder: "Board games" is happening Friday, Mar 7 at 7:30 PM'
    assert rows[0].source_type == "EVENT_REMINDER"


@pytest.mark.asyncio
async def test_system_broadcast_without_targets_reaches_every_user(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    rows = await _publisher(db_session).broadcast_system_notice(message="Maintenance tonight")
    await db_session.commit()

    assert {row.target_user_id for row in rows} == {user.id, other_user.id}
    stored = await _all(db_session)
    assert len(stored) == 2
    assert all(row.payload is None for row in stored)


@pytest.mark.asyncio
async def test_create_notification_rejects_out_of_range_priority(
    db_session: AsyncSession,
    user: User,
) -> None:
    with pytest.raises(ValueError):
        await _publisher(db_session).create_notification(
            target_user_id=user.id,
            source_type=NotificationSourceType.SYSTEM,
            message="hi",
            priority=4,
        )
