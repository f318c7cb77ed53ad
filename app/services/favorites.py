"""Persistence for user favorites."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import Favorite
from ..errors import StorageUnavailable
from ..models import FavoriteCreate, FavoriteView


class FavoriteStore:
    """Read and write favorites for a user."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def exists(self, user_id: int, media_id: str) -> bool:
        """Return whether ``user_id`` has favorited ``media_id``.

        A missing record is ``False``; an unreadable store raises
        ``StorageUnavailable``.
        """

        stmt = (
            select(Favorite.id)
            .where(Favorite.user_id == user_id, Favorite.media_id == str(media_id))
            .limit(1)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as exc:
            raise StorageUnavailable(
                f"Failed to look up favorite {media_id} for user {user_id}"
            ) from exc

    async def add(
        self, user_id: int, favorite: FavoriteCreate
    ) -> tuple[FavoriteView, bool]:
        """Store a favorite, returning ``(record, created)``.

        Adding the same media twice hands back the existing record.
        """

        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Favorite).where(
                        Favorite.user_id == user_id,
                        Favorite.media_id == favorite.media_id,
                    )
                )
                existing = result.scalars().first()
                if existing is not None:
                    return FavoriteView.model_validate(existing), False

                record = Favorite(
                    user_id=user_id,
                    media_type=favorite.media_type,
                    media_id=favorite.media_id,
                    media_title=favorite.media_title,
                    media_poster=favorite.media_poster,
                    media_rate=favorite.media_rate,
                )
                session.add(record)
                await session.commit()
                return FavoriteView.model_validate(record), True
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to add favorite for user {user_id}") from exc

    async def remove(self, user_id: int, favorite_id: int) -> bool:
        """Delete one of the user's favorites; ``False`` when it is not theirs."""

        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Favorite).where(
                        Favorite.id == favorite_id, Favorite.user_id == user_id
                    )
                )
                record = result.scalar_one_or_none()
                if record is None:
                    return False
                await session.delete(record)
                await session.commit()
                return True
        except SQLAlchemyError as exc:
            raise StorageUnavailable(
                f"Failed to remove favorite {favorite_id} for user {user_id}"
            ) from exc

    async def list_for_user(self, user_id: int) -> list[FavoriteView]:
        stmt = (
            select(Favorite)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to list favorites for user {user_id}") from exc
        return [FavoriteView.model_validate(record) for record in records]
