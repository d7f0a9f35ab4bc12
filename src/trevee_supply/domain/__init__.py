"""Domain models for supply aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping


class TotalSupplyPolicy(str, Enum):
    """How the global total supply is derived from per-chain totals."""

    SUM = "sum"
    CANONICAL_CHAIN = "canonical-chain"


@dataclass(frozen=True)
class ChainDescriptor:
    """A chain to query: its name, ordered endpoints and excluded addresses."""

    name: str
    endpoints: tuple[str, ...]
    excluded_addresses: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.endpoints:
            raise ValueError(f"Chain '{self.name}' needs at least one endpoint")


@dataclass(frozen=True)
class ChainSupplySnapshot:
    """Supply figures for one chain, in the token's smallest unit."""

    chain: str
    total_supply: int
    excluded_balance: int
    decimals: int | None = None

    @property
    def circulating_supply(self) -> int:
        return self.total_supply - self.excluded_balance


@dataclass(frozen=True)
class GlobalSupplySnapshot:
    """Supply aggregated over every configured chain."""

    chains: Mapping[str, ChainSupplySnapshot]
    total_circulating: int
    total_supply: int
    total_excluded: int
    decimals: int
    total_supply_policy: TotalSupplyPolicy
    canonical_chain: str | None
    fetch_duration_ms: int
    timestamp: datetime
