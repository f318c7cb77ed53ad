"""Assemble the media detail document from the catalog and local data."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, TypeVar

from ..errors import CatalogUnavailable
from ..models import MediaDetail, MediaType, ReviewView
from .favorites import FavoriteStore
from .identity import IdentityResolver
from .reviews import ReviewStore
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class Outcome(Generic[T]):
    """Result of an optional enrichment: either a value or the error it hit."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def attempt(call: Awaitable[T]) -> Outcome[T]:
    """Await ``call`` and capture an ordinary failure instead of raising it.

    Cancellation is not captured.
    """

    try:
        return Outcome(value=await call)
    except Exception as exc:
        return Outcome(error=exc)


async def _gather_or_cancel(*calls: Awaitable[Any]) -> list[Any]:
    """Run ``calls`` concurrently; the first failure cancels the rest."""

    tasks = [asyncio.ensure_future(call) for call in calls]
    try:
        return await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()


class DetailAggregator:
    """Build ``MediaDetail`` documents.

    Catalog sub-calls are fatal: if any of them fails the whole request fails
    with ``CatalogUnavailable`` and no partial document is produced. Favorite
    status and reviews are enrichments; their failures are logged and the
    document goes out without them.
    """

    def __init__(
        self,
        catalog: TMDBClient,
        identity: IdentityResolver,
        favorites: FavoriteStore,
        reviews: ReviewStore,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self._catalog = catalog
        self._identity = identity
        self._favorites = favorites
        self._reviews = reviews
        self._timeout_seconds = timeout_seconds

    async def get_detail(
        self,
        media_type: MediaType,
        media_id: str,
        credential: str | None = None,
    ) -> MediaDetail:
        """Return the merged detail document for one title."""

        media_id = str(media_id)
        if self._timeout_seconds is None:
            return await self._aggregate(media_type, media_id, credential)
        try:
            return await asyncio.wait_for(
                self._aggregate(media_type, media_id, credential),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Detail aggregation for %s/%s exceeded %.1fs",
                media_type,
                media_id,
                self._timeout_seconds,
            )
            raise CatalogUnavailable(
                f"Timed out assembling detail for {media_type}/{media_id}"
            ) from exc

    async def _aggregate(
        self, media_type: MediaType, media_id: str, credential: str | None
    ) -> MediaDetail:
        # Nothing else is worth fetching when the primary record is missing.
        detail = await self._catalog.detail(media_type, media_id)

        (
            credits,
            videos,
            recommendations,
            images,
            favorite,
            reviews,
        ) = await _gather_or_cancel(
            self._catalog.credits(media_type, media_id),
            self._catalog.videos(media_type, media_id),
            self._catalog.recommendations(media_type, media_id),
            self._catalog.images(media_type, media_id),
            self._favorite_status(media_id, credential),
            self._media_reviews(media_id),
        )

        return MediaDetail(
            media_type=media_type,
            media_id=media_id,
            detail=detail,
            credits=credits,
            videos=videos,
            recommend=self._recommendation_results(recommendations, media_id),
            images=images,
            is_favorite=favorite,
            reviews=reviews,
        )

    async def _favorite_status(
        self, media_id: str, credential: str | None
    ) -> bool | None:
        """Return the requester's favorite flag, or ``None`` when unknown."""

        user_id = await self._identity.resolve(credential)
        if user_id is None:
            return None

        outcome = await attempt(self._favorites.exists(user_id, media_id))
        if not outcome.ok:
            logger.warning(
                "Favorite lookup degraded for user %s on %s: %s",
                user_id,
                media_id,
                outcome.error,
            )
            return None
        return bool(outcome.value)

    async def _media_reviews(self, media_id: str) -> list[ReviewView]:
        outcome = await attempt(self._reviews.list_by_media(media_id))
        if not outcome.ok:
            logger.warning(
                "Review lookup degraded for %s: %s", media_id, outcome.error
            )
            return []
        return list(outcome.value or [])

    @staticmethod
    def _recommendation_results(payload: dict[str, Any], media_id: str) -> list[Any]:
        results = payload.get("results")
        if results is None:
            return []
        if not isinstance(results, list):
            raise CatalogUnavailable(
                f"TMDB recommendations for {media_id} carried no result list"
            )
        return results
