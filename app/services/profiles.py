"""Per-profile progression sessions kept for the lifetime of the process."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable

from ..models import ActionResult, ProgressSnapshot
from ..notifications import NotificationLog
from ..progression import LevelTracker, ProgressionEngine
from ..storage import DurableMedium, KeyValueStore
from ..utils import normalize_profile_id

logger = logging.getLogger(__name__)

MediumFactory = Callable[[str], DurableMedium | None]


class ProfileSession:
    """Store, engine and notices belonging to one profile."""

    def __init__(self, profile_id: str, medium: DurableMedium | None) -> None:
        self.profile_id = profile_id
        self.store = KeyValueStore(medium)
        self.notifications = NotificationLog()
        self.engine = ProgressionEngine(self.store, self.notifications)
        self.levels = LevelTracker(self.engine.current_level())
        self._lock = threading.RLock()

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot.from_engine(self.engine)

    def run(self, action: Callable[[ProgressionEngine], bool | int]) -> ActionResult:
        """Apply ``action`` to the engine and collect what it produced."""

        with self._lock:
            before = self.engine.points
            outcome = action(self.engine)
            after = self.engine.points
            level_up = self.levels.observe(after)
            if level_up is not None:
                logger.info("Profile %s reached level %s", self.profile_id, level_up)
                self.notifications.notify(
                    "Level Up! 🎉",
                    f"You've reached level {level_up}! "
                    "Keep exploring to unlock more features.",
                    "success",
                )
            return ActionResult(
                applied=bool(outcome),
                points_awarded=after - before,
                level_up=level_up,
                progress=self.snapshot(),
                notifications=self.notifications.drain(),
            )


class ProfileRegistry:
    """Creates one session per profile id and hands it back on later calls.

    At most ``max_sessions`` sessions stay in memory; the least recently used
    one is dropped when a new profile arrives. Dropped profiles rehydrate from
    their medium on the next request, but their in-memory mood visit states
    start over.
    """

    def __init__(self, medium_factory: MediumFactory, max_sessions: int = 1024) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._medium_factory = medium_factory
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, ProfileSession] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, profile_id: str) -> ProfileSession:
        key = normalize_profile_id(profile_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is not None:
                self._sessions.move_to_end(key)
                return session
            session = ProfileSession(key, self._medium_factory(key))
            self._sessions[key] = session
            logger.debug("Hydrated progression session for %s", key)
            while len(self._sessions) > self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug("Evicted progression session for %s", evicted)
            return session
