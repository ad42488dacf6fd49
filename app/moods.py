"""Fixed mood definitions used to drive recommendations and badges."""

from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class MoodDefinition:
    """Describes a selectable mood and the TMDB genres it maps to."""

    key: str
    label: str
    genres: tuple[int, ...]
    keywords: str


MOODS: tuple[MoodDefinition, ...] = (
    MoodDefinition(
        key="cheerful",
        label="Cheerful",
        genres=(35, 10751),
        keywords="feel-good,happy",
    ),
    MoodDefinition(
        key="reflective",
        label="Reflective",
        genres=(18, 36),
        keywords="thought-provoking,philosophical",
    ),
    MoodDefinition(
        key="gloomy",
        label="Gloomy",
        genres=(18, 9648),
        keywords="melancholy,sad",
    ),
    MoodDefinition(
        key="humorous",
        label="Humorous",
        genres=(35,),
        keywords="comedy,funny",
    ),
    MoodDefinition(
        key="adventurous",
        label="Adventurous",
        genres=(12, 28),
        keywords="adventure,action",
    ),
    MoodDefinition(
        key="romantic",
        label="Romantic",
        genres=(10749,),
        keywords="romance,love",
    ),
    MoodDefinition(
        key="thrilling",
        label="Thrilling",
        genres=(53, 27),
        keywords="suspense,thriller",
    ),
    MoodDefinition(
        key="relaxed",
        label="Relaxed",
        genres=(36, 99),
        keywords="calm,peaceful",
    ),
)

MOOD_KEYS: tuple[str, ...] = tuple(definition.key for definition in MOODS)

_MOODS_BY_KEY = {definition.key: definition for definition in MOODS}


def get_mood(key: str) -> MoodDefinition:
    """Return the mood definition for ``key``."""

    normalized = (key or "").strip().lower()
    try:
        return _MOODS_BY_KEY[normalized]
    except KeyError:
        raise ValueError(f"Unknown mood: {key!r}") from None


def pick_random_mood(rng: random.Random | None = None) -> MoodDefinition:
    """Return a uniformly chosen mood."""

    chooser = rng or random
    return chooser.choice(MOODS)
