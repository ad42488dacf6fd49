"""Write-through key-value store over an unreliable durable medium."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable, Protocol

from sqlalchemy import select

from .database import Database
from .db_models import StorageEntry
from .utils import canonical_json, decode_value, encode_value

logger = logging.getLogger(__name__)

Updater = Callable[[Any], Any]

_MISSING = object()


class StorageError(RuntimeError):
    """Raised by a durable medium that cannot complete a read or write."""


class StorageQuotaExceededError(StorageError):
    """Raised when a serialized value does not fit in the medium."""


class DurableMedium(Protocol):
    """Raw string storage keyed by name, e.g. a browser's local storage."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class MemoryMedium:
    """Dictionary-backed medium that lives as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    @property
    def items(self) -> dict[str, str]:
        return dict(self._items)


class DatabaseMedium:
    """Medium persisting each key as a row scoped to one namespace."""

    def __init__(
        self,
        database: Database,
        namespace: str,
        *,
        quota_bytes: int | None = None,
    ) -> None:
        self._database = database
        self._namespace = namespace
        self._quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        with self._database.session() as session:
            return session.scalar(
                select(StorageEntry.value).where(
                    StorageEntry.namespace == self._namespace,
                    StorageEntry.key == key,
                )
            )

    def set_item(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            size = len(value.encode("utf-8"))
            if size > self._quota_bytes:
                raise StorageQuotaExceededError(
                    f"Value for {key!r} is {size} bytes; quota is {self._quota_bytes}"
                )
        with self._database.session() as session:
            entry = session.scalar(
                select(StorageEntry).where(
                    StorageEntry.namespace == self._namespace,
                    StorageEntry.key == key,
                )
            )
            if entry is None:
                session.add(
                    StorageEntry(namespace=self._namespace, key=key, value=value)
                )
            else:
                entry.value = value


class KeyValueStore:
    """Typed in-memory view over a medium with best-effort write-through.

    Values are hydrated from the medium the first time a key is read and the
    in-memory copy stays authoritative afterwards. Failures of the medium are
    logged and never reach the caller; the worst outcome is that a value does
    not survive a restart.
    """

    def __init__(self, medium: DurableMedium | None) -> None:
        self._medium = medium
        self._cache: dict[str, Any] = {}
        self._lock = threading.RLock()

    def is_hydrated(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for ``key`` or ``default`` when nothing usable is stored."""

        with self._lock:
            return copy.deepcopy(self._current(key, default))

    def set(self, key: str, value: Any | Updater, *, default: Any = None) -> None:
        """Store a literal value or the result of ``value(previous)``."""

        with self._lock:
            previous = self._current(key, default)
            if callable(value):
                new_value = value(copy.deepcopy(previous))
            else:
                new_value = value

            try:
                encoded = encode_value(new_value)
                changed = canonical_json(new_value) != canonical_json(previous)
            except (TypeError, ValueError):
                logger.exception("Could not serialize value for %s; ignoring update", key)
                return

            if changed:
                self._cache[key] = copy.deepcopy(new_value)
            self._persist(key, encoded)

    def _current(self, key: str, default: Any) -> Any:
        cached = self._cache.get(key, _MISSING)
        if cached is _MISSING:
            cached = self._hydrate(key, default)
            self._cache[key] = cached
        return cached

    def _hydrate(self, key: str, default: Any) -> Any:
        if self._medium is None:
            return copy.deepcopy(default)
        try:
            raw = self._medium.get_item(key)
        except Exception:
            logger.exception("Failed to read %s from durable storage", key)
            return copy.deepcopy(default)
        if raw is None:
            return copy.deepcopy(default)
        try:
            return decode_value(raw)
        except ValueError:
            logger.warning("Discarding undecodable stored value for %s", key)
            return copy.deepcopy(default)

    def _persist(self, key: str, encoded: str) -> None:
        if self._medium is None:
            logger.debug("No durable medium available; %s kept in memory only", key)
            return
        try:
            self._medium.set_item(key, encoded)
        except Exception:
            logger.exception("Failed to persist %s to durable storage", key)
