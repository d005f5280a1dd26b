"""User repository used for token resolution and fan-out targets."""

from __future__ import annotations

import uuid

from sqlalchemy import select

from notification_center.models.user import User
from notification_center.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Encapsulates persistence logic for User entities."""

    async def create(
        self,
        *,
        username: str,
        name: str | None = None,
        email: str | None = None,
        image: str | None = None,
    ) -> User:
        user = User(username=username, name=name, email=email, image=image)
        await self.add(user)
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def list_ids(self) -> list[uuid.UUID]:
        result = await self.session.execute(select(User.id))
        return list(result.scalars())


__all__ = ["UserRepository"]
