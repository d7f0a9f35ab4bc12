from __future__ import annotations

from .chain_supply import ChainSupplyFetcher
from .global_supply import GlobalSupplyFetcher, compute_global_totals

__all__ = [
    "ChainSupplyFetcher",
    "GlobalSupplyFetcher",
    "compute_global_totals",
]
