"""Cross-chain supply aggregation."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone

from ..domain import (
    ChainDescriptor,
    ChainSupplySnapshot,
    GlobalSupplySnapshot,
    TotalSupplyPolicy,
)
from ..errors import ChainFetchError, DecimalsFetchError
from ..units import scale_units
from .chain_supply import ChainSupplyFetcher

logger = logging.getLogger(__name__)


def compute_global_totals(
    chains: Mapping[str, ChainSupplySnapshot],
    policy: TotalSupplyPolicy,
    canonical_chain: str | None = None,
) -> tuple[int, int, int]:
    """Combine per-chain snapshots into global totals.

    Args:
        chains: Chain name -> snapshot, all at the same decimal precision
        policy: How total supply is derived
        canonical_chain: Chain whose total is used under ``CANONICAL_CHAIN``

    Returns:
        Tuple of (total circulating, total supply, total excluded)
    """
    total_circulating = sum(s.circulating_supply for s in chains.values())
    total_excluded = sum(s.excluded_balance for s in chains.values())

    if policy is TotalSupplyPolicy.CANONICAL_CHAIN:
        if canonical_chain not in chains:
            raise ValueError(
                f"Canonical chain '{canonical_chain}' has no snapshot "
                f"(available: {', '.join(chains)})"
            )
        total_supply = chains[canonical_chain].total_supply
    else:
        total_supply = sum(s.total_supply for s in chains.values())

    return total_circulating, total_supply, total_excluded


class GlobalSupplyFetcher:
    """Fetches every chain concurrently and merges the results."""

    def __init__(
        self,
        chain_fetcher: ChainSupplyFetcher,
        *,
        total_supply_policy: TotalSupplyPolicy = TotalSupplyPolicy.SUM,
        canonical_chain: str | None = None,
        decimals_chain: str | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.chain_fetcher = chain_fetcher
        self.total_supply_policy = total_supply_policy
        self.canonical_chain = canonical_chain
        self.decimals_chain = decimals_chain
        self._clock = clock

    def _decimals_source(self, chains: Sequence[ChainDescriptor]) -> ChainDescriptor:
        if self.decimals_chain is None:
            return chains[0]
        for chain in chains:
            if chain.name == self.decimals_chain:
                return chain
        raise ValueError(f"Decimals chain '{self.decimals_chain}' is not configured")

    def _align_decimals(
        self, snapshot: ChainSupplySnapshot, decimals: int
    ) -> ChainSupplySnapshot:
        if snapshot.decimals is None or snapshot.decimals == decimals:
            return snapshot
        logger.warning(
            "%s reports %d decimals, rescaling to %d",
            snapshot.chain,
            snapshot.decimals,
            decimals,
        )
        return ChainSupplySnapshot(
            chain=snapshot.chain,
            total_supply=scale_units(snapshot.total_supply, snapshot.decimals, decimals),
            excluded_balance=scale_units(
                snapshot.excluded_balance, snapshot.decimals, decimals
            ),
            decimals=decimals,
        )

    async def fetch_global_supply(
        self, chains: Sequence[ChainDescriptor]
    ) -> GlobalSupplySnapshot:
        """Fetch and aggregate supply over ``chains``.

        Any chain failing fails the whole fetch; no partial result is built.

        Raises:
            ChainFetchError: The first failing chain, in configuration order
            DecimalsFetchError: If decimals could not be fetched
        """
        if not chains:
            raise ValueError("At least one chain is required")

        started = self._clock()
        decimals_source = self._decimals_source(chains)
        logger.info(
            "Fetching supply from %d chains: %s",
            len(chains),
            ", ".join(chain.name for chain in chains),
        )

        results = await asyncio.gather(
            *[self.chain_fetcher.fetch_chain_supply(chain) for chain in chains],
            self.chain_fetcher.fetch_decimals(decimals_source),
            return_exceptions=True,
        )
        *chain_results, decimals_result = results

        failures: list[BaseException] = []
        for chain, result in zip(chains, chain_results):
            if isinstance(result, BaseException):
                logger.error("Chain '%s' failed: %s", chain.name, result)
                failures.append(result)
        if isinstance(decimals_result, BaseException):
            logger.error("Decimals fetch failed: %s", decimals_result)
            failures.append(decimals_result)

        if failures:
            first = failures[0]
            if isinstance(first, (ChainFetchError, DecimalsFetchError)):
                raise first
            raise ChainFetchError("unknown", str(first)) from first

        assert isinstance(decimals_result, int)
        decimals = decimals_result
        snapshots: dict[str, ChainSupplySnapshot] = {}
        for chain, result in zip(chains, chain_results):
            assert isinstance(result, ChainSupplySnapshot)
            snapshots[chain.name] = self._align_decimals(result, decimals)

        total_circulating, total_supply, total_excluded = compute_global_totals(
            snapshots, self.total_supply_policy, self.canonical_chain
        )

        duration_ms = int((self._clock() - started) * 1000)
        logger.info("Supply fetched from %d chains in %dms", len(chains), duration_ms)

        return GlobalSupplySnapshot(
            chains=snapshots,
            total_circulating=total_circulating,
            total_supply=total_supply,
            total_excluded=total_excluded,
            decimals=decimals,
            total_supply_policy=self.total_supply_policy,
            canonical_chain=(
                self.canonical_chain
                if self.total_supply_policy is TotalSupplyPolicy.CANONICAL_CHAIN
                else None
            ),
            fetch_duration_ms=duration_ms,
            timestamp=datetime.now(timezone.utc),
        )
