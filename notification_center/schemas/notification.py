"""Schemas describing notification payloads.

A notification is a tagged union keyed by ``sourceType``: each variant carries
only the payload shape its producers emit, so reading ``sender`` off an event
notification is a type error instead of a silent ``None``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Mapping, Self, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from notification_center.models.notification import (
    EVENT_SOURCE_TYPES,
    FRIEND_SOURCE_TYPES,
    NotificationSourceType,
)

EventSourceLiteral = Literal["ATTENDEE", "EVENT_UPDATE", "EVENT_CANCELLED", "EVENT_REMINDER"]
PlainSourceLiteral = Literal["COMMENT", "MENTION", "SYSTEM"]


class CamelModel(BaseModel):
    """Immutable model exchanged over the wire with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class UserSummary(CamelModel):
    id: str
    name: str | None = None
    image: str | None = None
    username: str | None = None


class EventSummary(CamelModel):
    id: str
    name: str
    image: str | None = None
    date: datetime | None = None
    time: str | None = None
    location: str | None = None
    host: UserSummary | None = None


class FriendRequestPayload(CamelModel):
    sender: UserSummary


class EventPayload(CamelModel):
    event: EventSummary
    user: UserSummary | None = None


class NotificationBase(CamelModel):
    """Fields shared by every notification variant."""

    id: str
    message: str
    link: str | None = None
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime
    target_user_id: str
    priority: int = Field(default=1, ge=0, le=3)

    @field_validator("source_type", mode="before", check_fields=False)
    @classmethod
    def _normalize_source_type(cls, value: object) -> object:
        if isinstance(value, NotificationSourceType):
            return value.value
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_read_state(self) -> "NotificationBase":
        if self.is_read != (self.read_at is not None):
            raise ValueError("readAt must be present if and only if isRead is true.")
        return self

    @property
    def kind(self) -> NotificationSourceType:
        return NotificationSourceType(getattr(self, "source_type"))

    def with_read_state(self, is_read: bool, read_at: datetime | None = None) -> Self:
        """Return a copy with the given read state; the original is left untouched.

        ``model_copy`` skips validation, so the readAt/isRead pairing is
        enforced here instead.
        """
        if is_read:
            read_at = read_at or datetime.now(tz=timezone.utc)
        else:
            read_at = None
        return self.model_copy(update={"is_read": is_read, "read_at": read_at})

    def mark_read(self, at: datetime | None = None) -> Self:
        if self.is_read:
            return self
        return self.with_read_state(True, at)

    def mark_unread(self) -> Self:
        if not self.is_read:
            return self
        return self.with_read_state(False)


class FriendRequestNotification(NotificationBase):
    source_type: Literal["FRIEND_REQUEST"]
    payload: FriendRequestPayload | None = None


class EventNotification(NotificationBase):
    source_type: EventSourceLiteral
    payload: EventPayload | None = None


class PlainNotification(NotificationBase):
    source_type: PlainSourceLiteral
    payload: None = None


def _variant_tag(value: Any) -> str | None:
    if isinstance(value, Mapping):
        raw = value.get("sourceType", value.get("source_type"))
    else:
        raw = getattr(value, "source_type", None)
    if raw is None:
        return None
    source_type = (
        raw if isinstance(raw, NotificationSourceType) else NotificationSourceType.parse(str(raw))
    )
    if source_type is None:
        return None
    return variant_for(source_type)


def variant_for(source_type: NotificationSourceType) -> str:
    """Return the union tag ("friend", "event" or "plain") for a source type."""
    if source_type in FRIEND_SOURCE_TYPES:
        return "friend"
    if source_type in EVENT_SOURCE_TYPES:
        return "event"
    return "plain"


Notification = Annotated[
    Union[
        Annotated[FriendRequestNotification, Tag("friend")],
        Annotated[EventNotification, Tag("event")],
        Annotated[PlainNotification, Tag("plain")],
    ],
    Discriminator(
        _variant_tag,
        custom_error_type="invalid_source_type",
        custom_error_message="sourceType must be one of the supported notification sources",
    ),
]

NOTIFICATION_ADAPTER: TypeAdapter[Notification] = TypeAdapter(Notification)


def parse_notification(data: Mapping[str, Any]) -> Notification:
    """Validate a raw mapping (camelCase or snake_case keys) into a variant."""
    return NOTIFICATION_ADAPTER.validate_python(dict(data))


class NotificationListResponse(CamelModel):
    """Payload returned by GET /notifications."""

    notifications: list[Notification]
    unread_count: int = Field(ge=0)
    total_count: int = Field(default=0, ge=0)


class MarkReadRequest(CamelModel):
    """Body accepted by PATCH /notifications."""

    notification_ids: list[str] | None = None
    mark_all: bool = False
    mark_all_as_read: bool = True


class NotificationIdsRequest(CamelModel):
    """Body accepted by DELETE /notifications for bulk removal."""

    notification_ids: list[str] = Field(default_factory=list)


class MessageResponse(CamelModel):
    message: str


class DeleteResponse(CamelModel):
    message: str
    count: int = Field(ge=0)


__all__ = [
    "CamelModel",
    "DeleteResponse",
    "EventNotification",
    "EventPayload",
    "EventSummary",
    "FriendRequestNotification",
    "FriendRequestPayload",
    "MarkReadRequest",
    "MessageResponse",
    "NOTIFICATION_ADAPTER",
    "Notification",
    "NotificationBase",
    "NotificationIdsRequest",
    "NotificationListResponse",
    "PlainNotification",
    "UserSummary",
    "parse_notification",
    "variant_for",
]
