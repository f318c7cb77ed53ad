from datetime import datetime

import pytest
from pydantic import ValidationError

from app.models import (
    FavoriteCreate,
    MediaDetail,
    ReviewCreate,
    ReviewView,
    UserView,
)


def _detail(**overrides) -> MediaDetail:
    data = {
        "media_type": "movie",
        "media_id": "550",
        "detail": {"id": 550, "title": "Fight Club"},
        "credits": {"cast": []},
        "videos": {"results": []},
        "recommend": [{"id": 807}],
        "images": {"backdrops": []},
    }
    data.update(overrides)
    return MediaDetail(**data)


def test_payload_omits_favorite_flag_when_unknown():
    payload = _detail().to_payload()

    assert "isFavorite" not in payload
    assert payload["title"] == "Fight Club"
    assert payload["recommend"] == [{"id": 807}]
    assert payload["reviews"] == []


def test_payload_keeps_false_favorite_flag():
    payload = _detail(is_favorite=False).to_payload()

    assert payload["isFavorite"] is False


def test_payload_does_not_mutate_catalog_record():
    detail = {"id": 550, "title": "Fight Club"}
    _detail(detail=detail, is_favorite=True).to_payload()

    assert detail == {"id": 550, "title": "Fight Club"}


def test_review_payload_embeds_author():
    created = datetime(2024, 3, 1, 12, 0, 0)
    review = ReviewView(
        id=3,
        user=UserView(id=7, username="tyler", display_name="Tyler D."),
        media_type="movie",
        media_id="550",
        media_title="Fight Club",
        content="First rule.",
        rating=9,
        created_at=created,
        updated_at=created,
    )

    payload = _detail(reviews=[review]).to_payload()

    entry = payload["reviews"][0]
    assert entry["user"] == {"id": 7, "username": "tyler", "displayName": "Tyler D."}
    assert entry["mediaId"] == "550"
    assert entry["createdAt"] == "2024-03-01T12:00:00"


def test_favorite_create_accepts_camel_case_and_numeric_ids():
    favorite = FavoriteCreate.model_validate(
        {"mediaType": "tv", "mediaId": 1399, "mediaTitle": "Game of Thrones"}
    )

    assert favorite.media_id == "1399"
    assert favorite.media_type == "tv"
    assert favorite.media_poster is None


def test_favorite_create_rejects_unknown_media_type():
    with pytest.raises(ValidationError):
        FavoriteCreate.model_validate(
            {"mediaType": "podcast", "mediaId": "1", "mediaTitle": "Nope"}
        )


def test_review_create_rejects_blank_content():
    with pytest.raises(ValidationError):
        ReviewCreate.model_validate({"content": "   ", "mediaTitle": "Fight Club"})


def test_review_create_bounds_rating():
    with pytest.raises(ValidationError):
        ReviewCreate.model_validate(
            {"content": "Great", "rating": 11, "mediaTitle": "Fight Club"}
        )


def test_catalog_fields_cannot_fake_attachments():
    detail = {"id": 550, "title": "Fight Club", "isFavorite": True, "reviews": ["x"]}

    payload = _detail(detail=detail).to_payload()

    assert "isFavorite" not in payload
    assert payload["reviews"] == []
    assert payload["title"] == "Fight Club"
