"""Entry point for the FastAPI-powered MoodyFlicks service."""

from __future__ import annotations

import logging
import random
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import Database
from .models import (
    ActionResult,
    Credits,
    MovieDetail,
    MovieSummary,
    ProgressSnapshot,
    QuizResultRequest,
    RandomPickResult,
    RatingRequest,
)
from .moods import MOODS, get_mood, pick_random_mood
from .services.profiles import MediumFactory, ProfileRegistry, ProfileSession
from .services.tmdb import CatalogueError, TMDBClient
from .storage import DatabaseMedium, MemoryMedium
from .utils import normalize_profile_id

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


def build_medium_factory(database: Database | None) -> MediumFactory:
    """Return a factory producing the durable medium for each profile."""

    if database is None:
        media: dict[str, MemoryMedium] = {}
        return lambda profile_id: media.setdefault(profile_id, MemoryMedium())

    return lambda profile_id: DatabaseMedium(
        database, profile_id, quota_bytes=settings.storage_quota_bytes
    )


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    database: Database | None = None
    if settings.storage_backend == "database":
        database = Database(settings.database_url)
        database.create_all()

    fastapi_app.state.profiles = ProfileRegistry(
        build_medium_factory(database), max_sessions=settings.profile_session_limit
    )
    fastapi_app.state.database = database

    if settings.tmdb_api_key:
        tmdb_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.tmdb_api_url),
                timeout=httpx.Timeout(15.0, connect=5.0),
            )
        )
        fastapi_app.state.catalogue = TMDBClient(settings, tmdb_http_client)
    else:
        logger.warning("TMDB_API_KEY is not configured; catalogue routes are disabled")
        fastapi_app.state.catalogue = None

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        if database is not None:
            database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Mood-based movie picks with points, levels and badges",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_profile_registry(app: FastAPI) -> ProfileRegistry:
    registry = getattr(app.state, "profiles", None)
    if not isinstance(registry, ProfileRegistry):
        raise RuntimeError("Profile registry not initialised")
    return registry


def get_catalogue(app: FastAPI) -> TMDBClient:
    catalogue = getattr(app.state, "catalogue", None)
    if catalogue is None:
        raise HTTPException(
            status_code=503, detail="The movie catalogue is not configured."
        )
    return catalogue


def register_routes(fastapi_app: FastAPI) -> None:
    def _session(profile_id: str) -> ProfileSession:
        try:
            key = normalize_profile_id(profile_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return get_profile_registry(fastapi_app).get(key)

    def _mood_key(mood: str) -> str:
        try:
            return get_mood(mood).key
        except ValueError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    def _catalogue_failure(exc: CatalogueError) -> HTTPException:
        return HTTPException(
            status_code=502, detail=f"{exc}. Please try again."
        )

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/moods")
    async def list_moods() -> list[dict[str, Any]]:
        return [
            {"key": mood.key, "label": mood.label, "genres": list(mood.genres)}
            for mood in MOODS
        ]

    @fastapi_app.get("/api/moods/random")
    async def random_mood() -> dict[str, str]:
        mood = pick_random_mood()
        return {"key": mood.key, "label": mood.label}

    @fastapi_app.get("/api/moods/{mood}/movies")
    async def movies_for_mood(mood: str) -> list[MovieSummary]:
        key = _mood_key(mood)
        catalogue = get_catalogue(fastapi_app)
        try:
            return await catalogue.fetch_movies_by_mood(key)
        except CatalogueError as exc:
            raise _catalogue_failure(exc) from exc

    @fastapi_app.get("/api/movies/{movie_id}")
    async def movie_detail(movie_id: int) -> MovieDetail:
        catalogue = get_catalogue(fastapi_app)
        try:
            return await catalogue.fetch_movie_detail(movie_id)
        except CatalogueError as exc:
            raise _catalogue_failure(exc) from exc

    @fastapi_app.get("/api/movies/{movie_id}/credits")
    async def movie_credits(movie_id: int) -> Credits:
        catalogue = get_catalogue(fastapi_app)
        try:
            return await catalogue.fetch_credits(movie_id)
        except CatalogueError as exc:
            raise _catalogue_failure(exc) from exc

    @fastapi_app.get("/api/movies/{movie_id}/similar")
    async def similar_movies(movie_id: int) -> list[MovieSummary]:
        catalogue = get_catalogue(fastapi_app)
        try:
            return await catalogue.fetch_similar(movie_id)
        except CatalogueError as exc:
            raise _catalogue_failure(exc) from exc

    @fastapi_app.get("/api/profiles/{profile_id}/progress")
    def profile_progress(profile_id: str) -> ProgressSnapshot:
        return _session(profile_id).snapshot()

    @fastapi_app.post("/api/profiles/{profile_id}/watched/{movie_id}")
    def mark_watched(profile_id: str, movie_id: int) -> ActionResult:
        return _session(profile_id).run(lambda engine: engine.mark_watched(movie_id))

    @fastapi_app.post("/api/profiles/{profile_id}/ratings/{movie_id}")
    def rate_movie(profile_id: str, movie_id: int, payload: RatingRequest) -> ActionResult:
        return _session(profile_id).run(
            lambda engine: engine.rate_movie(movie_id, payload.liked)
        )

    @fastapi_app.post("/api/profiles/{profile_id}/share")
    def record_share(profile_id: str) -> ActionResult:
        return _session(profile_id).run(lambda engine: engine.record_share())

    @fastapi_app.post("/api/profiles/{profile_id}/moods/{mood}/visit")
    def record_mood_visit(profile_id: str, mood: str) -> ActionResult:
        key = _mood_key(mood)
        return _session(profile_id).run(lambda engine: engine.record_mood_visit(key))

    @fastapi_app.post("/api/profiles/{profile_id}/quiz")
    def record_quiz(profile_id: str, payload: QuizResultRequest) -> ActionResult:
        session = _session(profile_id)
        try:
            return session.run(
                lambda engine: engine.record_quiz_result(payload.correct, payload.total)
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @fastapi_app.post("/api/profiles/{profile_id}/moods/{mood}/random-pick")
    async def random_pick(profile_id: str, mood: str) -> RandomPickResult:
        key = _mood_key(mood)
        session = await run_in_threadpool(_session, profile_id)
        catalogue = get_catalogue(fastapi_app)
        try:
            movies = await catalogue.fetch_movies_by_mood(key)
        except CatalogueError as exc:
            raise _catalogue_failure(exc) from exc
        if not movies:
            raise HTTPException(
                status_code=404, detail=f"No movies available for mood {key}"
            )
        movie = random.choice(movies)
        result = await run_in_threadpool(
            session.run, lambda engine: engine.record_random_pick()
        )
        return RandomPickResult(movie=movie, result=result)


app = create_app()
