"""Versioned in-memory cache table, one entry per output kind."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class CacheKind(str, Enum):
    CIRCULATING = "circulating"
    TOTAL = "total"
    DETAILED = "detailed"


class CacheStatus(str, Enum):
    """Tag describing how a served value was obtained."""

    FRESH = "FRESH"
    STALE = "STALE"
    MISS = "MISS"
    ERROR_FALLBACK = "ERROR-FALLBACK"
    ERROR = "ERROR"


class Freshness(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"


@dataclass(frozen=True)
class CacheEntry:
    """A derived output plus the clock reading and version of its refresh."""

    value: Any
    timestamp: float
    version: int

    def age(self, now: float) -> float:
        return max(0.0, now - self.timestamp)


def classify(
    entry: CacheEntry | None, now: float, fresh_ttl: float, stale_ttl: float
) -> Freshness:
    """Place an entry in the fresh / stale / expired zone by its age."""
    if entry is None:
        return Freshness.EXPIRED
    age = entry.age(now)
    if age < fresh_ttl:
        return Freshness.FRESH
    if age < stale_ttl:
        return Freshness.STALE
    return Freshness.EXPIRED


class CacheStore:
    """Holds the latest entry for every :class:`CacheKind`.

    Writes swap the whole entry table in one step and carry a version
    allocated when the refresh started; a write older than the stored
    version is rejected so a slow refresh cannot overwrite a newer one.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKind, CacheEntry] = {}
        self._allocated_version = 0
        self._stored_version = 0
        self.last_error: str | None = None
        self.last_error_at: float | None = None

    def next_version(self) -> int:
        self._allocated_version += 1
        return self._allocated_version

    def get(self, kind: CacheKind) -> CacheEntry | None:
        return self._entries.get(kind)

    def replace(
        self, values: Mapping[CacheKind, Any], *, timestamp: float, version: int
    ) -> bool:
        """Replace the entries for ``values`` together.

        Returns:
            False if ``version`` is older than the stored one and nothing was
            written, True otherwise
        """
        if version < self._stored_version:
            return False

        entries = dict(self._entries)
        for kind, value in values.items():
            entries[kind] = CacheEntry(value=value, timestamp=timestamp, version=version)
        self._entries = entries
        self._stored_version = version
        self.last_error = None
        self.last_error_at = None
        return True

    def record_error(self, error: str, at: float) -> None:
        """Remember the last refresh failure without touching any entry."""
        self.last_error = error
        self.last_error_at = at

    def clear(self) -> None:
        self._entries = {}
        self.last_error = None
        self.last_error_at = None
