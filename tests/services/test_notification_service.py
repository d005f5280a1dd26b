from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notification_center.core.errors import ForbiddenError, NotFoundError
from notification_center.models.notification import Notification, NotificationSourceType
from notification_center.models.user import User
from notification_center.repositories.notification import NotificationRepository
from notification_center.services.notifications import NotificationService, parse_source_types
from tests.helpers import seed_notifications

S = NotificationSourceType


def _service(db_session: AsyncSession) -> NotificationService:
    return NotificationService(NotificationRepository(db_session))


async def _reload(db_session: AsyncSession, user: User) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.target_user_id == user.id)
        .order_by(Notification.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list((await db_session.execute(stmt)).scalars())


def test_parse_source_types_is_case_insensitive_and_drops_unknown() -> None:
    assert parse_source_types(["attendee", " System ", "nope"]) == {S.ATTENDEE, S.SYSTEM}
    assert parse_source_types(None) == set()


@pytest.mark.asyncio
async def test_list_counts_unread_over_full_set(db_session: AsyncSession, user: User) -> None:
    await seed_notifications(
        db_session,
        user,
        [(S.FRIEND_REQUEST, False), (S.ATTENDEE, True), (S.SYSTEM, False)],
    )

    result = await _service(db_session).list_notifications(user, source_types={S.ATTENDEE})

    assert [item.source_type for item in result.notifications] == ["ATTENDEE"]
    assert result.total == 1
    assert result.unread_count == 2


@pytest.mark.asyncio
async def test_list_orders_newest_first_and_paginates(db_session: AsyncSession, user: User) -> None:
    rows = await seed_notifications(db_session, user, [(S.SYSTEM, False)] * 5)

    result = await _service(db_session).list_notifications(user, limit=2, offset=2)

    assert [item.id for item in result.notifications] == [rows[2].id, rows[3].id]
    assert result.total == 5


@pytest.mark.asyncio
async def test_mark_notifications_sets_read_at_once(db_session: AsyncSession, user: User) -> None:
    rows = await seed_notifications(db_session, user, [(S.SYSTEM, False), (S.SYSTEM, False)])
    service = _service(db_session)

    changed = await service.mark_notifications(user, [str(rows[0].id), "garbage"])
    assert changed == 1
    first = (await _reload(db_session, user))[0]
    stamped = first.read_at
    assert first.is_read is True
    assert stamped is not None

    assert await service.mark_notifications(user, [str(rows[0].id)]) == 0
    assert (await _reload(db_session, user))[0].read_at == stamped


@pytest.mark.asyncio
async def test_mark_notifications_ignores_other_users(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    theirs = await seed_notifications(db_session, other_user, [(S.SYSTEM, False)])

    changed = await _service(db_session).mark_notifications(user, [str(theirs[0].id)])

    assert changed == 0
    assert (await _reload(db_session, other_user))[0].is_read is False


@pytest.mark.asyncio
async def test_mark_all_unread_clears_read_at(db_session: AsyncSession, user: User) -> None:
    await seed_notifications(db_session, user, [(S.SYSTEM, True), (S.SYSTEM, True), (S.SYSTEM, False)])

    changed = await _service(db_session).mark_all_notifications(user, as_read=False)

    assert changed == 2
    rows = await _reload(db_session, user)
    assert all(row.is_read is False and row.read_at is None for row in rows)


@pytest.mark.asyncio
async def test_delete_notification_enforces_ownership(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    theirs = await seed_notifications(db_session, other_user, [(S.SYSTEM, False)])
    service = _service(db_session)

    with pytest.raises(ForbiddenError):
        await service.delete_notification(user, str(theirs[0].id))
    with pytest.raises(NotFoundError):
        await service.delete_notification(user, str(uuid.uuid4()))
    with pytest.raises(NotFoundError):
        await service.delete_notification(user, "not-a-uuid")

    assert len(await _reload(db_session, other_user)) == 1


@pytest.mark.asyncio
async def test_delete_all_only_read(db_session: AsyncSession, user: User) -> None:
    await seed_notifications(db_session, user, [(S.SYSTEM, True), (S.ATTENDEE, False)])
    service = _service(db_session)

    assert await service.delete_all_notifications(user, only_read=True) == 1
    assert [row.source_type for row in await _reload(db_session, user)] == ["ATTENDEE"]

    assert await service.delete_all_notifications(user) == 1
    assert await _reload(db_session, user) == []


@pytest.mark.asyncio
async def test_delete_notifications_skips_foreign_and_unknown_ids(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    mine = await seed_notifications(db_session, user, [(S.SYSTEM, False), (S.SYSTEM, False)])
    theirs = await seed_notifications(db_session, other_user, [(S.SYSTEM, False)])

    deleted = await _service(db_session).delete_notifications(
        user,
        [str(mine[0].id), str(theirs[0].id), str(uuid.uuid4())],
    )

    assert deleted == 1
    assert [row.id for row in await _reload(db_session, user)] == [mine[1].id]
