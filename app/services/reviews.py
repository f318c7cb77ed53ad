"""Persistence for user reviews."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ..db_models import Review
from ..errors import StorageUnavailable
from ..models import ReviewCreate, ReviewView


class ReviewStore:
    """Read and write reviews, always returning them with their author."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_by_media(self, media_id: str) -> list[ReviewView]:
        """Return every review of ``media_id``, newest first.

        Reviews written at the same instant keep the order they were stored in.
        """

        stmt = (
            select(Review)
            .options(selectinload(Review.user))
            .where(Review.media_id == str(media_id))
            .order_by(Review.created_at.desc(), Review.id.asc())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
                return [ReviewView.model_validate(record) for record in records]
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to list reviews for {media_id}") from exc

    async def create(
        self,
        user_id: int,
        media_type: str,
        media_id: str,
        review: ReviewCreate,
    ) -> ReviewView:
        try:
            async with self._session_factory() as session:
                record = Review(
                    user_id=user_id,
                    media_type=media_type,
                    media_id=str(media_id),
                    media_title=review.media_title,
                    media_poster=review.media_poster,
                    content=review.content,
                    rating=review.rating,
                )
                session.add(record)
                await session.commit()
                await session.refresh(record, attribute_names=["user"])
                return ReviewView.model_validate(record)
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to create review for user {user_id}") from exc

    async def remove(self, user_id: int, review_id: int) -> bool:
        """Delete a review owned by ``user_id``; ``False`` when it is not theirs."""

        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Review).where(Review.id == review_id, Review.user_id == user_id)
                )
                record = result.scalar_one_or_none()
                if record is None:
                    return False
                await session.delete(record)
                await session.commit()
                return True
        except SQLAlchemyError as exc:
            raise StorageUnavailable(
                f"Failed to remove review {review_id} for user {user_id}"
            ) from exc

    async def list_for_user(self, user_id: int) -> list[ReviewView]:
        stmt = (
            select(Review)
            .options(selectinload(Review.user))
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc(), Review.id.asc())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
                return [ReviewView.model_validate(record) for record in records]
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Failed to list reviews for user {user_id}") from exc
