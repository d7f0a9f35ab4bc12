from __future__ import annotations

from .service import CachedValue, SupplyService
from .store import CacheEntry, CacheKind, CacheStatus, CacheStore, Freshness, classify

__all__ = [
    "CacheEntry",
    "CacheKind",
    "CacheStatus",
    "CacheStore",
    "CachedValue",
    "Freshness",
    "SupplyService",
    "classify",
]
