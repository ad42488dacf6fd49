"""Gamification rules layered over the persisted ledger.

The ledger consists of four independently stored values: the point balance,
the watched and rated movie ids, and the unlocked achievement codes. The
level is never stored; it is derived from the balance on every read.

Every public operation runs as a single transaction. Rewards that must be
announced after the primary notice (the watched and critic milestones) are
pushed onto an ordered follow-up queue that is drained when the outermost
transaction exits, so the bonus is applied in the same call and always
after the base reward.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections import deque
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from . import achievements
from .moods import get_mood
from .notifications import Notifier
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

POINTS_KEY = "points"
WATCHED_KEY = "watched"
RATED_KEY = "rated"
ACHIEVEMENTS_KEY = "achievements"

WATCH_POINTS = 10
RATE_POINTS = 5
WATCHED_MILESTONE = 5
RATED_MILESTONE = 10
QUIZ_POINTS_PER_CORRECT = 10
POINTS_PER_LEVEL = 100


def level_for_points(points: int) -> int:
    """Return the level reached with ``points``."""

    return points // POINTS_PER_LEVEL + 1


def level_progress(points: int) -> tuple[int, int]:
    """Return points earned into the current level and points left for the next."""

    into_level = points % POINTS_PER_LEVEL
    return into_level, POINTS_PER_LEVEL - into_level


def _is_balance(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_id_list(value: Any) -> bool:
    return isinstance(value, list) and all(
        isinstance(item, int) and not isinstance(item, bool) for item in value
    )


def _is_code_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _checked(key: str, value: Any, valid: Callable[[Any], bool], default: Any) -> Any:
    """Return ``value`` when it has the ledger shape for ``key``, else ``default``."""

    if valid(value):
        return value
    logger.warning("Ignoring malformed stored %s value: %r", key, value)
    return default


class MoodVisitState(str, enum.Enum):
    UNSEEN = "unseen"
    PROCESSING = "processing"
    RECORDED = "recorded"


class LevelTracker:
    """Remembers the last level shown so a level-up is announced once."""

    def __init__(self, initial_level: int) -> None:
        self._level = initial_level

    @property
    def level(self) -> int:
        return self._level

    def observe(self, points: int) -> int | None:
        """Return the new level when ``points`` moved the profile up a level."""

        new_level = level_for_points(points)
        previous, self._level = self._level, new_level
        if new_level > previous:
            return new_level
        return None


class ProgressionEngine:
    """Guarded, idempotent reward operations for one profile."""

    def __init__(self, store: KeyValueStore, notifier: Notifier) -> None:
        self._store = store
        self._notifier = notifier
        self._lock = threading.RLock()
        self._depth = 0
        self._followups: deque[Callable[[], None]] = deque()
        self._mood_states: dict[str, MoodVisitState] = {}

    # Ledger reads ----------------------------------------------------------

    @property
    def points(self) -> int:
        return _checked(POINTS_KEY, self._store.get(POINTS_KEY, 0), _is_balance, 0)

    @property
    def watched(self) -> list[int]:
        return _checked(WATCHED_KEY, self._store.get(WATCHED_KEY, []), _is_id_list, [])

    @property
    def rated(self) -> list[int]:
        return _checked(RATED_KEY, self._store.get(RATED_KEY, []), _is_id_list, [])

    @property
    def achievements(self) -> list[str]:
        return _checked(
            ACHIEVEMENTS_KEY,
            self._store.get(ACHIEVEMENTS_KEY, []),
            _is_code_list,
            [],
        )

    def has_achievement(self, code: str) -> bool:
        return code in self.achievements

    def current_level(self) -> int:
        return level_for_points(self.points)

    def mood_visit_state(self, mood: str) -> MoodVisitState:
        key = get_mood(mood).key
        return self._mood_states.get(key, MoodVisitState.UNSEEN)

    # Operations ------------------------------------------------------------

    def add_points(self, amount: int) -> None:
        """Credit ``amount`` points to the balance."""

        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError("Point awards must be positive integers")
        with self._transaction():
            self._store.set(
                POINTS_KEY,
                lambda prev: _checked(POINTS_KEY, prev, _is_balance, 0) + amount,
                default=0,
            )
            logger.debug("Awarded %s points", amount)

    def mark_watched(self, movie_id: int) -> bool:
        with self._transaction():
            watched = self.watched
            if movie_id in watched:
                self._notifier.notify(
                    "Already Watched",
                    "You've already marked this movie as watched.",
                )
                return False

            watched.append(movie_id)
            self._store.set(WATCHED_KEY, watched, default=[])
            self.add_points(WATCH_POINTS)
            self._notifier.notify(
                "Movie Marked as Watched! ✅",
                f"You've earned {WATCH_POINTS} points for your movie journey.",
                "success",
            )

            if len(watched) == WATCHED_MILESTONE:
                self._unlock_with_followup(achievements.WATCHED_FIVE)
            return True

    def rate_movie(self, movie_id: int, liked: bool) -> bool:
        """Record a one-time rating; the judgment only shapes the notice."""

        with self._transaction():
            rated = self.rated
            if movie_id in rated:
                self._notifier.notify(
                    "Already Rated",
                    "You've already rated this movie.",
                )
                return False

            rated.append(movie_id)
            self._store.set(RATED_KEY, rated, default=[])
            self.add_points(RATE_POINTS)
            verdict = "Liked" if liked else "Disliked"
            self._notifier.notify(
                f"Movie {verdict}!",
                f"You've earned {RATE_POINTS} points for rating.",
                "success",
            )

            if len(rated) == RATED_MILESTONE:
                self._unlock_with_followup(achievements.CRITIC)
            return True

    def record_share(self) -> bool:
        with self._transaction():
            if not self._unlock(achievements.SHARING):
                return False
            self._award_bonus(achievements.SHARING)
            return True

    def record_random_pick(self) -> bool:
        with self._transaction():
            if not self._unlock(achievements.RANDOM_PICK):
                return False
            self._award_bonus(achievements.RANDOM_PICK)
            return True

    def record_mood_visit(self, mood: str) -> bool:
        """Unlock the explorer badge for ``mood`` the first time it is visited.

        Visits are tracked per engine instance: once a mood has left the
        ``UNSEEN`` state it is never processed again by this instance, even
        when a visit re-enters while the first one is still in flight.
        """

        key = get_mood(mood).key
        code = achievements.mood_achievement_code(key)
        with self._transaction():
            if self._mood_states.get(key, MoodVisitState.UNSEEN) is not MoodVisitState.UNSEEN:
                return False
            self._mood_states[key] = MoodVisitState.PROCESSING
            try:
                unlocked = self._unlock(code)
            finally:
                self._mood_states[key] = MoodVisitState.RECORDED
            if not unlocked:
                return False
            self._award_bonus(code)
            return True

    def record_quiz_result(self, correct: int, total: int) -> int:
        """Credit a finished quiz and return the points it earned."""

        if total < 1:
            raise ValueError("A quiz must contain at least one question")
        if correct < 0 or correct > total:
            raise ValueError("Correct answers must be between 0 and the question count")

        earned = correct * QUIZ_POINTS_PER_CORRECT
        with self._transaction():
            if correct == total and self._unlock(achievements.QUIZ_MASTER):
                definition = achievements.get_achievement(achievements.QUIZ_MASTER)
                self._notifier.notify(
                    "New Achievement! 🏆",
                    f"{definition.title}: {definition.description}",
                    "success",
                )
            if earned:
                self.add_points(earned)
            self._notifier.notify(
                "Quiz Completed!",
                f"You scored {correct}/{total} and earned {earned} points!",
            )
        return earned

    # Internals -------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        with self._lock:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
                if self._depth == 0:
                    self._drain_followups()

    def _drain_followups(self) -> None:
        self._depth += 1
        try:
            while self._followups:
                step = self._followups.popleft()
                step()
        finally:
            self._depth -= 1

    def _unlock(self, code: str) -> bool:
        """Add ``code`` to the achievement set unless it is already present."""

        with self._lock:
            current = self.achievements
            if code in current:
                return False
            self._store.set(ACHIEVEMENTS_KEY, [*current, code], default=[])
            logger.info("Unlocked achievement %s", code)
            return True

    def _unlock_with_followup(self, code: str) -> None:
        if self._unlock(code):
            self._followups.append(lambda: self._award_bonus(code))

    def _award_bonus(self, code: str) -> None:
        definition = achievements.get_achievement(code)
        if definition.bonus_points:
            self.add_points(definition.bonus_points)
        self._notifier.notify(
            "New Achievement! 🏆",
            f"{definition.title}: {definition.description}",
            "success",
        )
