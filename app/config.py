"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_JWT_ALGORITHMS: tuple[str, ...] = ("HS256", "HS384", "HS512")


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="ReelHub", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=5000, alias="PORT")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    tmdb_timeout_seconds: float = Field(
        default=15.0, alias="TMDB_TIMEOUT", gt=0, le=120
    )
    detail_timeout_seconds: float = Field(
        default=30.0, alias="DETAIL_TIMEOUT", ge=1, le=300
    )

    auth_secret: str = Field(default="dev_change_me", alias="AUTH_SECRET")
    auth_algorithm: str = Field(default="HS256", alias="AUTH_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=1_440, alias="ACCESS_TOKEN_EXPIRE_MINUTES", ge=1
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./reelhub.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_language", mode="before")
    @classmethod
    def _normalise_language(cls, value: object) -> str:
        """Accept ``en_us`` style tags and fall back to English when blank."""

        if value is None:
            return "en-US"
        text = str(value).strip().replace("_", "-")
        if not text:
            return "en-US"
        parts = text.split("-")
        if len(parts) == 1:
            return parts[0].lower()
        return f"{parts[0].lower()}-{parts[1].upper()}"

    @field_validator("auth_algorithm", mode="before")
    @classmethod
    def _validate_algorithm(cls, value: object) -> str:
        algorithm = str(value or "HS256").strip().upper()
        if algorithm not in SUPPORTED_JWT_ALGORITHMS:
            raise ValueError("AUTH_ALGORITHM must be one of HS256, HS384 or HS512")
        return algorithm

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
