"""Freshness-tiered serving of supply figures."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from ..domain import GlobalSupplySnapshot
from ..report.breakdown import build_breakdown
from ..units import format_units
from .store import CacheEntry, CacheKind, CacheStatus, CacheStore, Freshness, classify

logger = logging.getLogger(__name__)

NUMERIC_SENTINEL = "0"

SnapshotFetcher = Callable[[], Awaitable[GlobalSupplySnapshot]]


@dataclass(frozen=True)
class CachedValue:
    """A served value with its cache status."""

    value: Any
    status: CacheStatus
    age_seconds: float | None = None
    error: str | None = None


def derive_outputs(snapshot: GlobalSupplySnapshot) -> dict[CacheKind, Any]:
    """Every cached output produced by one snapshot.

    Plain-text figures are unsigned, so a negative circulating total is served
    as ``"0"``; the detailed breakdown keeps the signed amounts.
    """
    return {
        CacheKind.CIRCULATING: format_units(
            max(snapshot.total_circulating, 0), snapshot.decimals
        ),
        CacheKind.TOTAL: format_units(snapshot.total_supply, snapshot.decimals),
        CacheKind.DETAILED: snapshot,
    }


class SupplyService:
    """Serves supply outputs from a :class:`CacheStore`, refreshing as needed.

    Entries younger than ``fresh_ttl`` are served as is. Entries younger than
    ``stale_ttl`` are served while one background refresh runs. Older or
    missing entries make the caller wait for a fetch; if that fails the last
    known value is served as ``ERROR-FALLBACK``, or a sentinel on cold start.

    At most one fetch is in flight; stale readers and waiting readers share it.
    """

    def __init__(
        self,
        store: CacheStore,
        fetch_snapshot: SnapshotFetcher,
        *,
        fresh_ttl: float = 60.0,
        stale_ttl: float = 300.0,
        token_address: str = "",
        excluded_addresses: Sequence[str] = (),
        clock: Callable[[], float] = time.monotonic,
    ):
        if fresh_ttl >= stale_ttl:
            raise ValueError(
                f"fresh_ttl ({fresh_ttl}) must be less than stale_ttl ({stale_ttl})"
            )
        self.store = store
        self._fetch_snapshot = fetch_snapshot
        self.fresh_ttl = fresh_ttl
        self.stale_ttl = stale_ttl
        self.token_address = token_address
        self.excluded_addresses = list(excluded_addresses)
        self._clock = clock
        self._refresh_task: asyncio.Task[dict[CacheKind, Any]] | None = None

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def _fetch_and_store(self) -> dict[CacheKind, Any]:
        version = self.store.next_version()
        try:
            snapshot = await self._fetch_snapshot()
        except Exception as e:
            self.store.record_error(str(e), self._clock())
            raise

        outputs = derive_outputs(snapshot)
        if not self.store.replace(outputs, timestamp=self._clock(), version=version):
            logger.info("Discarding out-of-order refresh result (version %d)", version)
        return outputs

    def _on_refresh_done(self, task: asyncio.Task[dict[CacheKind, Any]]) -> None:
        if task.cancelled():
            logger.warning("Supply refresh was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error("Supply refresh failed: %s", error)
        else:
            logger.debug("Supply refresh completed")

    def _ensure_refresh(self) -> asyncio.Task[dict[CacheKind, Any]]:
        """Return the in-flight refresh task, starting one if none is running."""
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._fetch_and_store())
            self._refresh_task.add_done_callback(self._on_refresh_done)
        else:
            logger.debug("Supply refresh already in flight, joining it")
        return self._refresh_task

    async def _get(self, kind: CacheKind, sentinel: Any) -> CachedValue:
        now = self._clock()
        entry = self.store.get(kind)
        zone = classify(entry, now, self.fresh_ttl, self.stale_ttl)

        if entry is not None and zone is Freshness.FRESH:
            return CachedValue(entry.value, CacheStatus.FRESH, entry.age(now))

        if entry is not None and zone is Freshness.STALE:
            self._ensure_refresh()
            return CachedValue(entry.value, CacheStatus.STALE, entry.age(now))

        try:
            # Shielded so a cancelled caller does not cancel the shared fetch
            outputs = await asyncio.shield(self._ensure_refresh())
        except Exception as e:
            fallback = self.store.get(kind)
            if fallback is not None:
                logger.warning(
                    "Serving last known %s value after failed refresh: %s",
                    kind.value,
                    e,
                )
                return CachedValue(
                    fallback.value,
                    CacheStatus.ERROR_FALLBACK,
                    fallback.age(self._clock()),
                    error=str(e),
                )
            logger.error("No cached %s value to fall back on: %s", kind.value, e)
            return CachedValue(sentinel, CacheStatus.ERROR, None, error=str(e))

        return CachedValue(outputs[kind], CacheStatus.MISS, 0.0)

    async def get_circulating_supply(self) -> CachedValue:
        """Circulating supply as a plain decimal string."""
        return await self._get(CacheKind.CIRCULATING, NUMERIC_SENTINEL)

    async def get_total_supply(self) -> CachedValue:
        """Total supply as a plain decimal string."""
        return await self._get(CacheKind.TOTAL, NUMERIC_SENTINEL)

    async def get_detailed_breakdown(self) -> CachedValue:
        """Per-chain and global figures as a JSON-ready dict."""
        cached = await self._get(CacheKind.DETAILED, None)
        if cached.value is None:
            return cached
        breakdown = build_breakdown(
            cached.value,
            token_address=self.token_address,
            excluded_addresses=self.excluded_addresses,
            cache_ages=self.cache_ages(),
        )
        return CachedValue(breakdown, cached.status, cached.age_seconds, cached.error)

    def clear_cache(self) -> None:
        """Drop every cached entry immediately."""
        self.store.clear()
        logger.info("Cache cleared")

    def cache_ages(self) -> dict[CacheKind, float | None]:
        now = self._clock()
        return {
            kind: (entry.age(now) if (entry := self.store.get(kind)) else None)
            for kind in CacheKind
        }

    def _entry_status(self, entry: CacheEntry | None, now: float) -> CacheStatus:
        zone = classify(entry, now, self.fresh_ttl, self.stale_ttl)
        if zone is Freshness.FRESH:
            return CacheStatus.FRESH
        if zone is Freshness.STALE:
            return CacheStatus.STALE
        return CacheStatus.MISS

    def cache_status(self) -> dict[str, Any]:
        """Per-kind presence, age and zone, plus the last refresh error."""
        now = self._clock()
        kinds: dict[str, Any] = {}
        for kind in CacheKind:
            entry = self.store.get(kind)
            kinds[kind.value] = {
                "has_value": entry is not None,
                "age_seconds": entry.age(now) if entry else None,
                "status": self._entry_status(entry, now).value,
            }
        return {
            "entries": kinds,
            "refresh_in_flight": self.refresh_in_flight,
            "last_error": self.store.last_error,
        }
