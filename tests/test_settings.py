"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest

from app.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.app_name == "MoodyFlicks"
    assert settings.storage_backend == "database"
    assert settings.similar_movie_limit == 4
    assert settings.profile_session_limit == 1024
    assert str(settings.tmdb_api_url).startswith("https://api.themoviedb.org/3")


def test_storage_backend_is_case_insensitive() -> None:
    settings = Settings(_env_file=None, STORAGE_BACKEND="  Memory ")

    assert settings.storage_backend == "memory"


def test_unknown_storage_backend_raises() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, STORAGE_BACKEND="cookies")


def test_blank_tmdb_key_is_treated_as_missing() -> None:
    settings = Settings(_env_file=None, TMDB_API_KEY="   ")

    assert settings.tmdb_api_key is None


def test_quota_has_a_floor() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, STORAGE_QUOTA_BYTES=10)
