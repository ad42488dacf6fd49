"""Achievement codes and their display metadata."""

from __future__ import annotations

from dataclasses import dataclass

from .moods import MOODS, get_mood


SHARING = "sharing"
WATCHED_FIVE = "watched-5"
CRITIC = "critic"
RANDOM_PICK = "random-pick"
QUIZ_MASTER = "quiz-master"
MOOD_PREFIX = "mood-"


@dataclass(frozen=True)
class AchievementDefinition:
    """A badge that can be unlocked once per profile."""

    code: str
    title: str
    description: str
    bonus_points: int


def mood_achievement_code(mood: str) -> str:
    """Return the badge code for discovering ``mood``."""

    return f"{MOOD_PREFIX}{get_mood(mood).key}"


def _build_catalog() -> dict[str, AchievementDefinition]:
    definitions = [
        AchievementDefinition(
            code=SHARING,
            title="Social Butterfly",
            description="You shared MoodyFlicks with your friends!",
            bonus_points=15,
        ),
        AchievementDefinition(
            code=WATCHED_FIVE,
            title="Movie Buff",
            description="You've watched 5 movies!",
            bonus_points=50,
        ),
        AchievementDefinition(
            code=CRITIC,
            title="Movie Critic",
            description="You've rated 10 movies!",
            bonus_points=30,
        ),
        AchievementDefinition(
            code=RANDOM_PICK,
            title="Adventurous Spirit",
            description="You let fate pick your movie!",
            bonus_points=5,
        ),
        AchievementDefinition(
            code=QUIZ_MASTER,
            title="Quiz Master",
            description="You got a perfect score!",
            bonus_points=0,
        ),
    ]
    for mood in MOODS:
        definitions.append(
            AchievementDefinition(
                code=f"{MOOD_PREFIX}{mood.key}",
                title=f"{mood.label} Explorer",
                description=f"You explored {mood.label.lower()} movies for the first time!",
                bonus_points=25,
            )
        )
    return {definition.code: definition for definition in definitions}


ACHIEVEMENTS: dict[str, AchievementDefinition] = _build_catalog()


def get_achievement(code: str) -> AchievementDefinition:
    """Return the definition for ``code``; unknown codes raise ``KeyError``."""

    try:
        return ACHIEVEMENTS[code]
    except KeyError:
        raise KeyError(f"Unknown achievement code: {code}") from None
