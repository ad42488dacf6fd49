"""Movie catalogue lookups against The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import Credits, MovieDetail, MovieSummary
from ..moods import get_mood

logger = logging.getLogger(__name__)

POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"
BACKDROP_BASE_URL = "https://image.tmdb.org/t/p/w780"

MovieT = TypeVar("MovieT", bound=MovieSummary)


class CatalogueError(RuntimeError):
    """Raised when TMDB cannot be reached or returns an unusable payload.

    The failure is always safe to retry.
    """


class TMDBClient:
    """Client fetching movie lists, details and credits from TMDB."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client

    async def fetch_movies_by_mood(self, mood: str) -> list[MovieSummary]:
        """Return popular movies in the genres mapped to ``mood``."""

        definition = get_mood(mood)
        payload = await self._get_json(
            "/discover/movie",
            {
                "with_genres": ",".join(str(genre) for genre in definition.genres),
                "sort_by": "popularity.desc",
                "page": 1,
            },
            description=f"movies for mood {definition.key}",
        )
        return self._parse_results(payload, description=f"mood {definition.key}")

    async def fetch_movie_detail(self, movie_id: int) -> MovieDetail:
        payload = await self._get_json(
            f"/movie/{movie_id}",
            {"append_to_response": "videos"},
            description=f"movie details for {movie_id}",
        )
        try:
            detail = MovieDetail.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Unexpected TMDB movie payload for %s: %s", movie_id, exc)
            raise CatalogueError("Failed to fetch movie details") from exc
        return self._with_image_urls(detail)

    async def fetch_credits(self, movie_id: int) -> Credits:
        payload = await self._get_json(
            f"/movie/{movie_id}/credits",
            {},
            description=f"credits for {movie_id}",
        )
        try:
            return Credits.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Unexpected TMDB credits payload for %s: %s", movie_id, exc)
            raise CatalogueError("Failed to fetch movie credits") from exc

    async def fetch_similar(self, movie_id: int) -> list[MovieSummary]:
        """Return the leading similar movies, capped by ``SIMILAR_MOVIE_LIMIT``."""

        payload = await self._get_json(
            f"/movie/{movie_id}/similar",
            {"page": 1},
            description=f"similar movies for {movie_id}",
        )
        results = self._parse_results(payload, description=f"similar to {movie_id}")
        return results[: self._settings.similar_movie_limit]

    async def _get_json(
        self, endpoint: str, params: dict[str, Any], *, description: str
    ) -> dict[str, Any]:
        query = {**params, "api_key": self._settings.tmdb_api_key}
        try:
            response = await self._client.get(endpoint, params=query)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request for %s failed: %s", description, exc)
            raise CatalogueError(f"Failed to fetch {description}") from exc

        if response.status_code >= 400:
            logger.warning(
                "TMDB request for %s failed (%s): %s",
                description,
                response.status_code,
                response.text,
            )
            raise CatalogueError(f"Failed to fetch {description}")

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("Unexpected non-JSON TMDB response for %s", description)
            raise CatalogueError(f"Failed to fetch {description}") from exc
        if not isinstance(data, dict):
            logger.warning("Unexpected TMDB response structure for %s", description)
            raise CatalogueError(f"Failed to fetch {description}")
        return data

    @staticmethod
    def _parse_results(payload: dict[str, Any], *, description: str) -> list[MovieSummary]:
        results = payload.get("results")
        if not isinstance(results, list):
            logger.warning("TMDB response for %s has no results list", description)
            raise CatalogueError(f"Failed to fetch {description}")

        movies: list[MovieSummary] = []
        for entry in results:
            try:
                movie = MovieSummary.model_validate(entry)
            except ValidationError:
                logger.debug("Skipping malformed TMDB result for %s: %r", description, entry)
                continue
            movies.append(TMDBClient._with_image_urls(movie))
        return movies

    @staticmethod
    def _with_image_urls(movie: MovieT) -> MovieT:
        return movie.model_copy(
            update={
                "poster_url": TMDBClient.build_image_url(movie.poster_path),
                "backdrop_url": TMDBClient.build_image_url(
                    movie.backdrop_path, BACKDROP_BASE_URL
                ),
            }
        )

    @staticmethod
    def build_image_url(path: str | None, base_url: str = POSTER_BASE_URL) -> str | None:
        if not path:
            return None
        if path.startswith("http"):
            return path
        return f"{base_url}{path}"
