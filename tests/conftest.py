"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the application package is importable when running tests without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.notifications import NotificationLog  # noqa: E402
from app.progression import ProgressionEngine  # noqa: E402
from app.storage import KeyValueStore, MemoryMedium  # noqa: E402


@pytest.fixture
def medium() -> MemoryMedium:
    return MemoryMedium()


@pytest.fixture
def notifications() -> NotificationLog:
    return NotificationLog()


@pytest.fixture
def engine(medium: MemoryMedium, notifications: NotificationLog) -> ProgressionEngine:
    return ProgressionEngine(KeyValueStore(medium), notifications)
