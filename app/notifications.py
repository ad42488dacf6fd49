"""User-facing notices emitted by the progression engine."""

from __future__ import annotations

import threading
from typing import Literal, Protocol

from pydantic import BaseModel


Severity = Literal["info", "success", "warning", "error"]


class Notification(BaseModel):
    """A toast-style notice delivered alongside an API response."""

    title: str
    body: str
    severity: Severity = "info"


class Notifier(Protocol):
    def notify(self, title: str, body: str, severity: Severity = "info") -> None:
        ...


class NotificationLog:
    """Ordered buffer of notices waiting to be delivered."""

    def __init__(self) -> None:
        self._pending: list[Notification] = []
        self._lock = threading.Lock()

    def notify(self, title: str, body: str, severity: Severity = "info") -> None:
        with self._lock:
            self._pending.append(
                Notification(title=title, body=body, severity=severity)
            )

    def drain(self) -> list[Notification]:
        """Return queued notices in emission order and clear the buffer."""

        with self._lock:
            pending, self._pending = self._pending, []
        return pending

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
