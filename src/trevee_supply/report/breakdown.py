"""JSON-ready breakdown of a global supply snapshot."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..domain import GlobalSupplySnapshot
from ..units import format_units


def format_age(age_seconds: float | None) -> str:
    """Render a cache age as whole seconds, e.g. ``"42s"``, or ``"none"``."""
    if age_seconds is None:
        return "none"
    return f"{int(age_seconds)}s"


def build_breakdown(
    snapshot: GlobalSupplySnapshot,
    *,
    token_address: str,
    excluded_addresses: Sequence[str],
    cache_ages: Mapping[Any, float | None] | None = None,
) -> dict[str, Any]:
    """Build the detailed breakdown served to clients.

    Every amount is formatted with the snapshot's single decimal precision.

    Args:
        snapshot: Snapshot to describe
        token_address: Token contract address
        excluded_addresses: Addresses whose balances were excluded
        cache_ages: Optional cache kind -> age in seconds

    Returns:
        Dict with ``chains``, ``totals``, metadata and cache ages
    """
    decimals = snapshot.decimals

    chains = {
        name: {
            "totalSupply": format_units(chain.total_supply, decimals),
            "excludedBalance": format_units(chain.excluded_balance, decimals),
            "circulatingSupply": format_units(chain.circulating_supply, decimals),
        }
        for name, chain in snapshot.chains.items()
    }

    breakdown: dict[str, Any] = {
        "timestamp": snapshot.timestamp.isoformat(),
        "fetchDuration": snapshot.fetch_duration_ms,
        "tokenAddress": token_address,
        "chains": chains,
        "totals": {
            "totalSupply": format_units(snapshot.total_supply, decimals),
            "excludedBalance": format_units(snapshot.total_excluded, decimals),
            "circulatingSupply": format_units(snapshot.total_circulating, decimals),
            "decimals": decimals,
            "totalSupplyPolicy": snapshot.total_supply_policy.value,
            "canonicalChain": snapshot.canonical_chain,
        },
        "excludedAddresses": list(excluded_addresses),
    }

    if cache_ages is not None:
        breakdown["cache"] = {
            f"{getattr(kind, 'value', kind)}Age": format_age(age)
            for kind, age in cache_ages.items()
        }

    return breakdown
