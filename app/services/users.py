"""Storage helpers for user accounts."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import User
from ..errors import StorageUnavailable
from ..models import UserView


class UserStore:
    """Minimal account store; credential handling lives outside ReelHub."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, username: str, display_name: str | None = None) -> UserView:
        """Insert a user, returning the existing one if the username is taken."""

        normalized = username.strip()
        if not normalized:
            raise ValueError("username may not be empty")
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(User).where(User.username == normalized)
                )
                existing = result.scalar_one_or_none()
                if existing is not None:
                    return UserView.model_validate(existing)
                user = User(username=normalized, display_name=display_name or normalized)
                session.add(user)
                await session.commit()
                return UserView.model_validate(user)
        except SQLAlchemyError as exc:
            raise StorageUnavailable("Failed to create user") from exc

    async def get(self, user_id: int) -> UserView | None:
        try:
            async with self._session_factory() as session:
                user = await session.get(User, user_id)
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to load user {user_id}") from exc
        if user is None:
            return None
        return UserView.model_validate(user)
