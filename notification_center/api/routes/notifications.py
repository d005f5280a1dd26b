"""Notification endpoints backing the in-app notification center."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from notification_center.core.auth import get_current_user
from notification_center.core.config import settings
from notification_center.core.db import get_session
from notification_center.core.errors import ErrorCode, ValidationFailedError
from notification_center.models.notification import Notification, NotificationSourceType
from notification_center.models.user import User
from notification_center.repositories.notification import NotificationRepository
from notification_center.schemas.notification import (
    DeleteResponse,
    MarkReadRequest,
    MessageResponse,
    NotificationIdsRequest,
    NotificationListResponse,
    parse_notification,
    variant_for,
)
from notification_center.schemas.notification import Notification as NotificationSchema
from notification_center.services.notifications import NotificationService, parse_source_types

logger = logging.getLogger("notification_center.api.notifications")

router = APIRouter(tags=["notifications"])


def _parse_flag(value: str | None) -> bool | None:
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def _serialize(notification: Notification) -> NotificationSchema:
    source_type = NotificationSourceType(notification.source_type)
    read_at = notification.read_at
    if notification.is_read and read_at is None:
        read_at = notification.created_at
    data: dict[str, object] = {
        "id": str(notification.id),
        "message": notification.message,
        "link": notification.link,
        "sourceType": source_type.value,
        "isRead": notification.is_read,
        "readAt": read_at if notification.is_read else None,
        "createdAt": notification.created_at,
        "targetUserId": str(notification.target_user_id),
        "priority": notification.priority,
    }
    if notification.payload and variant_for(source_type) != "plain":
        try:
            return parse_notification({**data, "payload": dict(notification.payload)})
        except ValidationError:
            logger.warning(
                "Dropping malformed notification payload",
                extra={"notification_id": data["id"], "source_type": source_type.value},
            )
    return parse_notification(data)


async def get_notification_service(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> NotificationService:
    return NotificationService(NotificationRepository(session))


@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    summary="List notifications for the current user",
)
async def list_notifications(
    type_: Annotated[
        list[str] | None,
        Query(alias="type", description="Source type filter; repeat for a union."),
    ] = None,
    read: Annotated[
        str | None,
        Query(description="`true` or `false`; anything else returns both."),
    ] = None,
    limit: Annotated[
        int,
        Query(ge=1, le=settings.notifications_max_page_size, description="Page size."),
    ] = settings.notifications_page_size,
    offset: Annotated[
        int,
        Query(ge=0, description="Number of notifications to skip."),
    ] = 0,
    user: User = Depends(get_current_user),  # noqa: B008
    service: NotificationService = Depends(get_notification_service),  # noqa: B008
) -> NotificationListResponse:
    result = await service.list_notifications(
        user,
        source_types=parse_source_types(type_),
        is_read=_parse_flag(read),
        limit=limit,
        offset=offset,
    )
    return NotificationListResponse(
        notifications=[_serialize(item) for item in result.notifications],
        unread_count=result.unread_count,
        total_count=result.total,
    )


@router.patch(
    "/notifications",
    response_model=MessageResponse,
    summary="Mark notifications as read or unread",
)
async def update_notifications(
    payload: MarkReadRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    service: NotificationService = Depends(get_notification_service),  # noqa: B008
) -> MessageResponse:
    as_read = payload.mark_all_as_read
    action = "read" if as_read else "unread"

    if payload.mark_all:
        await service.mark_all_notifications(user, as_read=as_read)
        await service.session.commit()
        return MessageResponse(message=f"All notifications marked as {action}")

    if not payload.notification_ids:
        raise ValidationFailedError(
            "No notification IDs provided",
            code=ErrorCode.MISSING_NOTIFICATION_IDS,
        )

    await service.mark_notifications(user, payload.notification_ids, as_read=as_read)
    await service.session.commit()
    return MessageResponse(message=f"Notifications marked as {action}")


async def _read_bulk_ids(request: Request) -> list[str]:
    body = await request.body()
    if not body:
        return []
    try:
        return NotificationIdsRequest.model_validate_json(body).notification_ids
    except ValidationError:
        return []


@router.delete(
    "/notifications",
    response_model=DeleteResponse | MessageResponse,
    summary="Delete one, a selection, or all (read) notifications",
)
async def delete_notifications(
    request: Request,
    notification_id: Annotated[str | None, Query(alias="id")] = None,
    all_: Annotated[str | None, Query(alias="all")] = None,
    read: Annotated[str | None, Query()] = None,
    user: User = Depends(get_current_user),  # noqa: B008
    service: NotificationService = Depends(get_notification_service),  # noqa: B008
) -> DeleteResponse | MessageResponse:
    if _parse_flag(all_) is True:
        count = await service.delete_all_notifications(user, only_read=_parse_flag(read) is True)
        await service.session.commit()
        return DeleteResponse(message=f"{count} notifications deleted successfully", count=count)

    if notification_id:
        await service.delete_notification(user, notification_id)
        await service.session.commit()
        return MessageResponse(message="Notification deleted successfully")

    ids = await _read_bulk_ids(request)
    if ids:
        count = await service.delete_notifications(user, ids)
        await service.session.commit()
        return DeleteResponse(message=f"{count} notifications deleted successfully", count=count)

    raise ValidationFailedError(
        "Missing notification ID or bulk delete parameters",
        code=ErrorCode.MISSING_DELETE_TARGET,
    )


__all__ = ["get_notification_service", "router"]
