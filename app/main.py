"""Entry point for the FastAPI-powered ReelHub API."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Awaitable, TypeVar

import httpx
from fastapi import Body, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import settings
from .database import Database
from .errors import CatalogUnavailable, StorageUnavailable
from .models import MEDIA_TYPES, FavoriteCreate, ReviewCreate
from .services.detail import DetailAggregator
from .services.favorites import FavoriteStore
from .services.identity import IdentityResolver
from .services.reviews import ReviewStore
from .services.tmdb import TMDBClient
from .services.users import UserStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Oops! Something wrong!"
SEARCHABLE_TYPES = (*MEDIA_TYPES, "people")

T = TypeVar("T")

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(settings.tmdb_timeout_seconds, connect=5.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    users = UserStore(database.session_factory)
    identity = IdentityResolver(settings, users)
    favorites = FavoriteStore(database.session_factory)
    reviews = ReviewStore(database.session_factory)
    tmdb = TMDBClient(settings, tmdb_http_client)

    fastapi_app.state.database = database
    fastapi_app.state.tmdb = tmdb
    fastapi_app.state.identity = identity
    fastapi_app.state.favorites = favorites
    fastapi_app.state.reviews = reviews
    fastapi_app.state.detail_aggregator = DetailAggregator(
        tmdb,
        identity,
        favorites,
        reviews,
        timeout_seconds=settings.detail_timeout_seconds,
    )

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Movie and TV details merged with community favorites and reviews",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_service(fastapi_app: FastAPI, name: str) -> Any:
    service = getattr(fastapi_app.state, name, None)
    if service is None:
        raise RuntimeError(f"Service {name!r} not initialised")
    return service


def register_routes(fastapi_app: FastAPI) -> None:
    def _check_media_type(media_type: str, allowed: tuple[str, ...] = MEDIA_TYPES) -> None:
        if media_type not in allowed:
            raise HTTPException(status_code=400, detail="Unsupported media type")

    async def _from_catalog(call: Awaitable[T]) -> T:
        try:
            return await call
        except CatalogUnavailable as exc:
            raise HTTPException(status_code=502, detail=GENERIC_FAILURE) from exc

    async def _from_storage(call: Awaitable[T]) -> T:
        try:
            return await call
        except StorageUnavailable as exc:
            logger.exception("Storage failure: %s", exc)
            raise HTTPException(status_code=500, detail=GENERIC_FAILURE) from exc

    async def _require_user(request: Request) -> int:
        identity: IdentityResolver = get_service(fastapi_app, "identity")
        user_id = await identity.resolve(request.headers.get("Authorization"))
        if user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
            )
        return user_id

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/v1/person/{person_id}")
    async def person_detail(person_id: str) -> dict[str, Any]:
        tmdb: TMDBClient = get_service(fastapi_app, "tmdb")
        return await _from_catalog(tmdb.person_detail(person_id))

    @fastapi_app.get("/api/v1/person/{person_id}/medias")
    async def person_medias(person_id: str) -> dict[str, Any]:
        tmdb: TMDBClient = get_service(fastapi_app, "tmdb")
        return await _from_catalog(tmdb.person_medias(person_id))

    @fastapi_app.get("/api/v1/user/favorites")
    async def list_favorites(request: Request) -> list[dict[str, Any]]:
        user_id = await _require_user(request)
        favorites: FavoriteStore = get_service(fastapi_app, "favorites")
        records = await _from_storage(favorites.list_for_user(user_id))
        return [record.model_dump(mode="json", by_alias=True) for record in records]

    @fastapi_app.post("/api/v1/user/favorites")
    async def add_favorite(
        request: Request, payload: dict[str, Any] = Body(...)
    ) -> JSONResponse:
        user_id = await _require_user(request)
        try:
            favorite = FavoriteCreate.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_url=False, include_context=False)
            ) from exc
        favorites: FavoriteStore = get_service(fastapi_app, "favorites")
        record, created = await _from_storage(favorites.add(user_id, favorite))
        return JSONResponse(
            record.model_dump(mode="json", by_alias=True),
            status_code=201 if created else 200,
        )

    @fastapi_app.delete("/api/v1/user/favorites/{favorite_id}")
    async def remove_favorite(request: Request, favorite_id: int) -> Response:
        user_id = await _require_user(request)
        favorites: FavoriteStore = get_service(fastapi_app, "favorites")
        removed = await _from_storage(favorites.remove(user_id, favorite_id))
        if not removed:
            raise HTTPException(status_code=404, detail="Favorite not found")
        return Response(status_code=204)

    @fastapi_app.get("/api/v1/reviews")
    async def list_reviews(request: Request) -> list[dict[str, Any]]:
        user_id = await _require_user(request)
        reviews: ReviewStore = get_service(fastapi_app, "reviews")
        records = await _from_storage(reviews.list_for_user(user_id))
        return [record.to_payload() for record in records]

    @fastapi_app.post("/api/v1/reviews/{media_type}/{media_id}")
    async def create_review(
        request: Request,
        media_type: str,
        media_id: str,
        payload: dict[str, Any] = Body(...),
    ) -> JSONResponse:
        _check_media_type(media_type)
        user_id = await _require_user(request)
        try:
            review = ReviewCreate.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_url=False, include_context=False)
            ) from exc
        reviews: ReviewStore = get_service(fastapi_app, "reviews")
        record = await _from_storage(
            reviews.create(user_id, media_type, media_id, review)
        )
        return JSONResponse(record.to_payload(), status_code=201)

    @fastapi_app.delete("/api/v1/reviews/{review_id}")
    async def remove_review(request: Request, review_id: int) -> Response:
        user_id = await _require_user(request)
        reviews: ReviewStore = get_service(fastapi_app, "reviews")
        removed = await _from_storage(reviews.remove(user_id, review_id))
        if not removed:
            raise HTTPException(status_code=404, detail="Review not found")
        return Response(status_code=204)

    @fastapi_app.get("/api/v1/{media_type}/genres")
    async def genres(media_type: str) -> dict[str, Any]:
        _check_media_type(media_type)
        tmdb: TMDBClient = get_service(fastapi_app, "tmdb")
        return await _from_catalog(tmdb.genres(media_type))

    @fastapi_app.get("/api/v1/{media_type}/search")
    async def search(
        media_type: str,
        query: str = Query(..., min_length=1),
        page: int = Query(default=1, ge=1),
    ) -> dict[str, Any]:
        _check_media_type(media_type, SEARCHABLE_TYPES)
        tmdb: TMDBClient = get_service(fastapi_app, "tmdb")
        return await _from_catalog(tmdb.search(media_type, query, page=page))

    @fastapi_app.get("/api/v1/{media_type}/detail/{media_id}")
    async def media_detail(
        request: Request, media_type: str, media_id: str
    ) -> JSONResponse:
        _check_media_type(media_type)
        aggregator: DetailAggregator = get_service(fastapi_app, "detail_aggregator")
        document = await _from_catalog(
            aggregator.get_detail(
                media_type,  # type: ignore[arg-type]
                media_id,
                request.headers.get("Authorization"),
            )
        )
        return JSONResponse(document.to_payload())

    @fastapi_app.get("/api/v1/{media_type}/{media_category}")
    async def media_list(
        media_type: str,
        media_category: str,
        page: int = Query(default=1, ge=1),
    ) -> dict[str, Any]:
        _check_media_type(media_type)
        tmdb: TMDBClient = get_service(fastapi_app, "tmdb")
        return await _from_catalog(tmdb.media_list(media_type, media_category, page=page))


app = create_app()
