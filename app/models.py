"""Pydantic models describing catalogue and progression payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .achievements import get_achievement
from .notifications import Notification
from .progression import ProgressionEngine, level_for_points, level_progress


class TMDBModel(BaseModel):
    """Base for TMDB payloads; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")


class MovieSummary(TMDBModel):
    """A movie as listed by discover and similar-movie queries."""

    id: int
    title: str = ""
    overview: str | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    release_date: str | None = None
    vote_average: float | None = None
    genre_ids: list[int] = Field(default_factory=list)

    @property
    def year(self) -> int | None:
        if not self.release_date or len(self.release_date) < 4:
            return None
        try:
            return int(self.release_date[:4])
        except ValueError:
            return None


class Genre(TMDBModel):
    id: int
    name: str


class Video(TMDBModel):
    key: str
    name: str = ""
    site: str = ""
    type: str = ""


class MovieDetail(MovieSummary):
    """Full movie record including appended trailer videos."""

    tagline: str | None = None
    runtime: int | None = None
    genres: list[Genre] = Field(default_factory=list)
    videos: list[Video] = Field(default_factory=list)

    @field_validator("videos", mode="before")
    @classmethod
    def _unwrap_videos(cls, value: object) -> object:
        """TMDB nests appended videos under a ``results`` key."""

        if isinstance(value, dict):
            return value.get("results") or []
        if value is None:
            return []
        return value

    @property
    def trailer(self) -> Video | None:
        """Return the first YouTube trailer, if any."""

        for video in self.videos:
            if video.site == "YouTube" and video.type == "Trailer":
                return video
        return None


class CastMember(TMDBModel):
    id: int
    name: str
    character: str | None = None
    profile_path: str | None = None
    order: int | None = None


class CrewMember(TMDBModel):
    id: int
    name: str
    job: str | None = None
    department: str | None = None


class Credits(TMDBModel):
    id: int
    cast: list[CastMember] = Field(default_factory=list)
    crew: list[CrewMember] = Field(default_factory=list)

    @property
    def directors(self) -> list[CrewMember]:
        return [member for member in self.crew if member.job == "Director"]


class AchievementBadge(BaseModel):
    code: str
    title: str
    description: str

    @classmethod
    def from_code(cls, code: str) -> "AchievementBadge":
        try:
            definition = get_achievement(code)
        except KeyError:
            # Codes written by an older build are still shown verbatim.
            return cls(code=code, title=code, description="")
        return cls(
            code=definition.code,
            title=definition.title,
            description=definition.description,
        )


class ProgressSnapshot(BaseModel):
    """Current ledger state for a profile."""

    points: int
    level: int
    level_progress: int
    points_to_next_level: int
    watched: list[int] = Field(default_factory=list)
    rated: list[int] = Field(default_factory=list)
    achievements: list[AchievementBadge] = Field(default_factory=list)

    @classmethod
    def from_engine(cls, engine: ProgressionEngine) -> "ProgressSnapshot":
        points = engine.points
        into_level, remaining = level_progress(points)
        return cls(
            points=points,
            level=level_for_points(points),
            level_progress=into_level,
            points_to_next_level=remaining,
            watched=engine.watched,
            rated=engine.rated,
            achievements=[
                AchievementBadge.from_code(code) for code in engine.achievements
            ],
        )


class ActionResult(BaseModel):
    """Outcome of a progression operation."""

    applied: bool
    points_awarded: int = 0
    level_up: int | None = None
    progress: ProgressSnapshot
    notifications: list[Notification] = Field(default_factory=list)


class RatingRequest(BaseModel):
    liked: bool


class QuizResultRequest(BaseModel):
    correct: int
    total: int


class RandomPickResult(BaseModel):
    movie: MovieSummary
    result: ActionResult
