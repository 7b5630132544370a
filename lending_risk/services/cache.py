"""Single-entry TTL cache for the most recent market snapshot."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[str, "str | None"]

DEFAULT_TTL_SECONDS = 30.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    key: CacheKey
    value: T
    stored_at: float


class SnapshotCache(Generic[T]):
    """Holds one value keyed by ``(chain, user)``.

    Writers replace the whole entry with a single attribute assignment, so
    readers see either the old entry or the new one. Concurrent refreshers
    may both fetch; the last write wins.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: CacheEntry[T] | None = None

    def _fresh(self) -> CacheEntry[T] | None:
        entry = self._entry
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            return None
        return entry

    def get(self, key: CacheKey) -> T | None:
        entry = self._fresh()
        if entry is None or entry.key != key:
            return None
        return entry.value

    def peek(self) -> tuple[CacheKey, T] | None:
        """The current entry regardless of key, if still fresh."""
        entry = self._fresh()
        if entry is None:
            return None
        return entry.key, entry.value

    def put(self, key: CacheKey, value: T) -> None:
        self._entry = CacheEntry(key=key, value=value, stored_at=self._clock())
        logger.debug("Cached snapshot for %s", key)

    def clear(self) -> None:
        self._entry = None

    def age(self) -> float | None:
        """Seconds since the entry was stored, or None when empty."""
        entry = self._entry
        if entry is None:
            return None
        return self._clock() - entry.stored_at
