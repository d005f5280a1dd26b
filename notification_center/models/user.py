"""User ORM model.

Accounts are owned by the authentication service; this table only carries the
fields notifications need for ownership checks and sender summaries.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notification_center.models.base import GUID, Base, TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(320))
    image: Mapped[str | None] = mapped_column(String(1024))

    notifications = relationship(
        "Notification",
        back_populates="target_user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ux_users_username", "username", unique=True),)


__all__ = ["User"]
