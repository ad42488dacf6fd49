"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


StorageBackend = Literal["database", "memory"]


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="MoodyFlicks", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    similar_movie_limit: int = Field(
        default=4, alias="SIMILAR_MOVIE_LIMIT", ge=1, le=20
    )

    database_url: str = Field(
        default="sqlite:///./moodyflicks.db", alias="DATABASE_URL"
    )
    storage_backend: StorageBackend = Field(
        default="database", alias="STORAGE_BACKEND"
    )
    storage_quota_bytes: int = Field(
        default=5 * 1024 * 1024, alias="STORAGE_QUOTA_BYTES", ge=1024
    )
    profile_session_limit: int = Field(
        default=1024, alias="PROFILE_SESSION_LIMIT", ge=1
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _parse_storage_backend(cls, value: object) -> object:
        """Accept backend names regardless of case or padding."""

        if value is None:
            return "database"
        if isinstance(value, str):
            cleaned = value.strip().lower()
            return cleaned or "database"
        return value

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
