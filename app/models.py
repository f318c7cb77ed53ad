"""Pydantic models describing the documents served by the API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MediaType = Literal["movie", "tv"]
MEDIA_TYPES: tuple[str, ...] = ("movie", "tv")

# Field names the detail document owns; catalog keys with these names are dropped.
ATTACHMENT_KEYS = frozenset(
    {"credits", "videos", "recommend", "images", "isFavorite", "reviews"}
)


def _coerce_media_id(value: object) -> str:
    if isinstance(value, bool) or value is None:
        raise ValueError("mediaId must be a string or integer")
    text = str(value).strip()
    if not text:
        raise ValueError("mediaId may not be empty")
    return text


class UserView(BaseModel):
    """Public identity of a reviewer."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    username: str
    display_name: str = Field(serialization_alias="displayName")


class FavoriteCreate(BaseModel):
    """Request body for adding a favorite."""

    model_config = ConfigDict(populate_by_name=True)

    media_type: MediaType = Field(
        validation_alias=AliasChoices("mediaType", "media_type")
    )
    media_id: str = Field(validation_alias=AliasChoices("mediaId", "media_id"))
    media_title: str = Field(
        validation_alias=AliasChoices("mediaTitle", "media_title"), min_length=1
    )
    media_poster: str | None = Field(
        default=None, validation_alias=AliasChoices("mediaPoster", "media_poster")
    )
    media_rate: float | None = Field(
        default=None, validation_alias=AliasChoices("mediaRate", "media_rate")
    )

    @field_validator("media_id", mode="before")
    @classmethod
    def _normalise_media_id(cls, value: object) -> str:
        return _coerce_media_id(value)


class FavoriteView(BaseModel):
    """A stored favorite as returned to its owner."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(serialization_alias="userId")
    media_type: str = Field(serialization_alias="mediaType")
    media_id: str = Field(serialization_alias="mediaId")
    media_title: str = Field(serialization_alias="mediaTitle")
    media_poster: str | None = Field(default=None, serialization_alias="mediaPoster")
    media_rate: float | None = Field(default=None, serialization_alias="mediaRate")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class ReviewCreate(BaseModel):
    """Request body for writing a review; the media is taken from the path."""

    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(min_length=1, max_length=5_000)
    rating: int | None = Field(default=None, ge=0, le=10)
    media_title: str = Field(
        validation_alias=AliasChoices("mediaTitle", "media_title"), min_length=1
    )
    media_poster: str | None = Field(
        default=None, validation_alias=AliasChoices("mediaPoster", "media_poster")
    )

    @field_validator("content")
    @classmethod
    def _strip_content(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Review content may not be blank")
        return stripped


class ReviewView(BaseModel):
    """A review with its author expanded."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user: UserView
    media_type: str = Field(serialization_alias="mediaType")
    media_id: str = Field(serialization_alias="mediaId")
    media_title: str = Field(serialization_alias="mediaTitle")
    media_poster: str | None = Field(default=None, serialization_alias="mediaPoster")
    content: str
    rating: int | None = None
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class MediaDetail(BaseModel):
    """Catalog record for one title plus everything attached to it.

    ``detail`` is kept exactly as the catalog returned it. ``is_favorite`` is
    tri-state: ``None`` means the requester is anonymous (or their favorites
    could not be read) and is rendered by leaving the field out entirely.
    """

    media_type: MediaType
    media_id: str
    detail: dict[str, Any]
    credits: Any
    videos: Any
    recommend: list[Any]
    images: Any
    is_favorite: bool | None = None
    reviews: list[ReviewView] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Return the merged wire document."""

        payload: dict[str, Any] = {
            key: value
            for key, value in self.detail.items()
            if key not in ATTACHMENT_KEYS
        }
        payload["credits"] = self.credits
        payload["videos"] = self.videos
        payload["recommend"] = self.recommend
        payload["images"] = self.images
        if self.is_favorite is not None:
            payload["isFavorite"] = self.is_favorite
        payload["reviews"] = [review.to_payload() for review in self.reviews]
        return payload
