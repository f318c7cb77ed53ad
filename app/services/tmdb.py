"""Client for The Movie Database (TMDB) catalog API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import CatalogUnavailable

logger = logging.getLogger(__name__)

SEARCH_TYPE_ALIASES = {"people": "person"}


class TMDBClient:
    """Read-only wrapper around the TMDB endpoints used by ReelHub.

    Every call is independent: there is no retry, and any transport error,
    non-2xx status or non-object JSON body surfaces as ``CatalogUnavailable``.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def detail(self, media_type: str, media_id: str) -> dict[str, Any]:
        """Return the primary record for a movie or TV show."""

        return await self._get(f"/{media_type}/{media_id}")

    async def credits(self, media_type: str, media_id: str) -> dict[str, Any]:
        return await self._get(f"/{media_type}/{media_id}/credits")

    async def videos(self, media_type: str, media_id: str) -> dict[str, Any]:
        return await self._get(f"/{media_type}/{media_id}/videos")

    async def recommendations(self, media_type: str, media_id: str) -> dict[str, Any]:
        """Return the paginated recommendation listing for a title."""

        return await self._get(f"/{media_type}/{media_id}/recommendations")

    async def images(self, media_type: str, media_id: str) -> dict[str, Any]:
        # Image collections are language-less; the language filter would drop
        # most backdrops.
        return await self._get(
            f"/{media_type}/{media_id}/images", with_language=False
        )

    async def media_list(
        self, media_type: str, category: str, *, page: int = 1
    ) -> dict[str, Any]:
        """Return a category listing such as ``popular`` or ``top_rated``."""

        return await self._get(f"/{media_type}/{category}", params={"page": page})

    async def genres(self, media_type: str) -> dict[str, Any]:
        return await self._get(f"/genre/{media_type}/list")

    async def search(
        self, media_type: str, query: str, *, page: int = 1
    ) -> dict[str, Any]:
        """Search titles or people; ``people`` is accepted for ``person``."""

        search_type = SEARCH_TYPE_ALIASES.get(media_type, media_type)
        return await self._get(
            f"/search/{search_type}",
            params={"query": query, "page": page, "include_adult": "false"},
        )

    async def person_detail(self, person_id: str) -> dict[str, Any]:
        return await self._get(f"/person/{person_id}")

    async def person_medias(self, person_id: str) -> dict[str, Any]:
        """Return the movies and shows a person appeared in or worked on."""

        return await self._get(f"/person/{person_id}/combined_credits")

    async def _get(
        self,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        with_language: bool = True,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {"api_key": self._settings.tmdb_api_key}
        if with_language:
            query["language"] = self._settings.tmdb_language
        if params:
            query.update(params)

        try:
            response = await self._client.get(endpoint, params=query)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "TMDB request to %s failed (%s): %s",
                endpoint,
                exc.__class__.__name__,
                exc,
            )
            raise CatalogUnavailable(f"TMDB request to {endpoint} failed") from exc

        if response.status_code >= 400:
            logger.warning(
                "TMDB request to %s returned %s: %s",
                endpoint,
                response.status_code,
                response.text,
            )
            raise CatalogUnavailable(
                f"TMDB request to {endpoint} returned {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Unexpected non-JSON TMDB response for %s", endpoint)
            raise CatalogUnavailable(f"TMDB returned malformed JSON for {endpoint}") from exc
        if not isinstance(payload, dict):
            logger.warning("Unexpected TMDB response structure for %s", endpoint)
            raise CatalogUnavailable(f"TMDB returned an unexpected payload for {endpoint}")
        return payload
