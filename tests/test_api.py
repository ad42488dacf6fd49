from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.main import build_medium_factory, register_routes
from app.models import Credits, MovieDetail, MovieSummary
from app.services.profiles import ProfileRegistry
from app.services.tmdb import CatalogueError
from app.storage import MemoryMedium


class StubCatalogue:
    """Catalogue stand-in returning canned movies per mood."""

    def __init__(self, movies: list[MovieSummary] | None = None, *, failing: bool = False) -> None:
        self.movies = movies if movies is not None else [MovieSummary(id=101, title="Up")]
        self.failing = failing
        self.moods: list[str] = []

    async def fetch_movies_by_mood(self, mood: str) -> list[MovieSummary]:
        self.moods.append(mood)
        if self.failing:
            raise CatalogueError("Failed to fetch movies")
        return self.movies

    async def fetch_movie_detail(self, movie_id: int) -> MovieDetail:
        if self.failing:
            raise CatalogueError("Failed to fetch movie details")
        return MovieDetail(id=movie_id, title="Up", runtime=96)

    async def fetch_credits(self, movie_id: int) -> Credits:
        return Credits(id=movie_id)

    async def fetch_similar(self, movie_id: int) -> list[MovieSummary]:
        return self.movies[:4]


def build_app(catalogue: StubCatalogue | None = None) -> FastAPI:
    app = FastAPI()
    register_routes(app)
    app.state.profiles = ProfileRegistry(build_medium_factory(None))
    app.state.catalogue = catalogue if catalogue is not None else StubCatalogue()
    return app


@pytest.fixture
def client() -> TestClient:
    with TestClient(build_app()) as test_client:
        yield test_client


def test_new_profile_starts_empty(client: TestClient) -> None:
    response = client.get("/api/profiles/alice/progress")

    assert response.status_code == 200
    assert response.json() == {
        "points": 0,
        "level": 1,
        "level_progress": 0,
        "points_to_next_level": 100,
        "watched": [],
        "rated": [],
        "achievements": [],
    }


def test_watching_five_movies_levels_up(client: TestClient) -> None:
    for movie_id in range(1, 5):
        response = client.post(f"/api/profiles/alice/watched/{movie_id}")
        assert response.json()["level_up"] is None

    payload = client.post("/api/profiles/alice/watched/5").json()

    assert payload["applied"] is True
    assert payload["points_awarded"] == 60
    assert payload["level_up"] == 2
    assert payload["progress"]["points"] == 100
    assert [badge["title"] for badge in payload["progress"]["achievements"]] == ["Movie Buff"]
    assert [notice["title"] for notice in payload["notifications"]] == [
        "Movie Marked as Watched! ✅",
        "New Achievement! 🏆",
        "Level Up! 🎉",
    ]


def test_duplicate_watch_is_informational(client: TestClient) -> None:
    client.post("/api/profiles/alice/watched/9")

    payload = client.post("/api/profiles/alice/watched/9").json()

    assert payload["applied"] is False
    assert payload["points_awarded"] == 0
    assert payload["notifications"][0]["title"] == "Already Watched"


def test_rating_and_sharing(client: TestClient) -> None:
    rated = client.post("/api/profiles/alice/ratings/3", json={"liked": False}).json()
    shared = client.post("/api/profiles/alice/share").json()
    shared_again = client.post("/api/profiles/alice/share").json()

    assert rated["notifications"][0]["title"] == "Movie Disliked!"
    assert shared["points_awarded"] == 15
    assert shared_again["applied"] is False
    assert shared_again["progress"]["points"] == 20


def test_mood_visit_is_rewarded_once(client: TestClient) -> None:
    first = client.post("/api/profiles/alice/moods/Gloomy/visit").json()
    second = client.post("/api/profiles/alice/moods/gloomy/visit").json()

    assert first["points_awarded"] == 25
    assert second["points_awarded"] == 0
    assert second["notifications"] == []


def test_unknown_mood_is_not_found(client: TestClient) -> None:
    assert client.post("/api/profiles/alice/moods/sleepy/visit").status_code == 404


def test_invalid_profile_id_is_rejected(client: TestClient) -> None:
    assert client.get("/api/profiles/" + "x" * 65 + "/progress").status_code == 400


@pytest.mark.parametrize(
    "stored",
    [{"points": "null"}, {"points": '"abc"'}, {"watched": "5"}],
)
def test_malformed_stored_progress_is_reset(stored: dict[str, str]) -> None:
    app = build_app()
    app.state.profiles = ProfileRegistry(lambda profile_id: MemoryMedium(stored))
    with TestClient(app) as client:
        progress = client.get("/api/profiles/alice/progress")
        watched = client.post("/api/profiles/alice/watched/1")

    assert progress.status_code == 200
    assert progress.json()["points"] == 0
    assert watched.status_code == 200
    assert watched.json()["progress"]["points"] == 10
    assert watched.json()["progress"]["watched"] == [1]


def test_quiz_results(client: TestClient) -> None:
    perfect = client.post("/api/profiles/alice/quiz", json={"correct": 4, "total": 4}).json()
    invalid = client.post("/api/profiles/alice/quiz", json={"correct": 5, "total": 4})
    negative = client.post("/api/profiles/alice/quiz", json={"correct": -1, "total": 4})
    empty = client.post("/api/profiles/alice/quiz", json={"correct": 0, "total": 0})

    assert perfect["points_awarded"] == 40
    assert [badge["code"] for badge in perfect["progress"]["achievements"]] == ["quiz-master"]
    assert invalid.status_code == 400
    assert negative.status_code == 400
    assert empty.status_code == 400
    assert client.get("/api/profiles/alice/progress").json()["points"] == 40


def test_random_pick_awards_once() -> None:
    catalogue = StubCatalogue()
    with TestClient(build_app(catalogue)) as client:
        first = client.post("/api/profiles/alice/moods/relaxed/random-pick").json()
        second = client.post("/api/profiles/alice/moods/relaxed/random-pick").json()

    assert first["movie"]["id"] == 101
    assert first["result"]["points_awarded"] == 5
    assert second["result"]["applied"] is False
    assert catalogue.moods == ["relaxed", "relaxed"]


def test_random_pick_rejects_invalid_profile_before_fetching() -> None:
    catalogue = StubCatalogue()
    with TestClient(build_app(catalogue)) as client:
        response = client.post("/api/profiles/bad!id/moods/relaxed/random-pick")

    assert response.status_code == 400
    assert catalogue.moods == []


def test_random_pick_without_movies_awards_nothing() -> None:
    with TestClient(build_app(StubCatalogue(movies=[]))) as client:
        response = client.post("/api/profiles/alice/moods/relaxed/random-pick")
        progress = client.get("/api/profiles/alice/progress").json()

    assert response.status_code == 404
    assert progress["points"] == 0


def test_catalogue_failures_are_retryable_errors() -> None:
    with TestClient(build_app(StubCatalogue(failing=True))) as client:
        movies = client.get("/api/moods/gloomy/movies")
        pick = client.post("/api/profiles/alice/moods/gloomy/random-pick")
        progress = client.get("/api/profiles/alice/progress").json()

    assert movies.status_code == 502
    assert "try again" in movies.json()["detail"]
    assert pick.status_code == 502
    assert progress["achievements"] == []


def test_catalogue_routes_return_payloads(client: TestClient) -> None:
    assert client.get("/api/moods/cheerful/movies").json()[0]["title"] == "Up"
    assert client.get("/api/movies/101").json()["runtime"] == 96
    assert client.get("/api/movies/101/credits").json()["cast"] == []
    assert len(client.get("/api/movies/101/similar").json()) == 1


def test_missing_catalogue_is_service_unavailable() -> None:
    app = build_app()
    app.state.catalogue = None
    with TestClient(app) as client:
        assert client.get("/api/movies/1").status_code == 503


def test_mood_listing(client: TestClient) -> None:
    moods = client.get("/api/moods").json()

    assert len(moods) == 8
    assert client.get("/api/moods/random").json()["key"] in {mood["key"] for mood in moods}
