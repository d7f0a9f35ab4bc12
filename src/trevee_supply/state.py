"""Application state container."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from .cache import CacheStore, SupplyService
from .clients import ChainQueryClient, ReaderFactory
from .domain import GlobalSupplySnapshot
from .processors import ChainSupplyFetcher, GlobalSupplyFetcher
from .settings import SupplySettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed to the transport layer to avoid global state and enable testing.
    """

    settings: SupplySettings
    logger: logging.Logger
    client: ChainQueryClient
    fetcher: GlobalSupplyFetcher
    service: SupplyService
    started_at: float = field(default_factory=time.monotonic)

    async def fetch_snapshot(self) -> GlobalSupplySnapshot:
        """Fetch a fresh snapshot over every configured chain, bypassing the cache."""
        return await self.fetcher.fetch_global_supply(
            self.settings.chain_descriptors
        )

    async def aclose(self) -> None:
        await self.client.aclose()


def build_state(
    settings: SupplySettings,
    logger: logging.Logger | None = None,
    *,
    reader_factory: ReaderFactory | None = None,
    store: CacheStore | None = None,
) -> AppState:
    """Wire the query client, fetchers and cache service from settings."""
    client = ChainQueryClient(
        settings.token_address,
        rpc_timeout=settings.rpc_timeout,
        max_concurrent_calls=settings.rpc_max_concurrent_calls,
        reader_factory=reader_factory,
    )
    chain_fetcher = ChainSupplyFetcher(
        client,
        max_attempts=settings.max_retries,
        base_delay=settings.retry_base_delay,
        jitter=settings.retry_jitter,
        read_decimals=settings.normalize_chain_decimals,
    )
    fetcher = GlobalSupplyFetcher(
        chain_fetcher,
        total_supply_policy=settings.total_supply_policy,
        canonical_chain=settings.canonical_chain,
        decimals_chain=settings.decimals_chain,
    )
    descriptors = settings.chain_descriptors

    async def fetch_snapshot() -> GlobalSupplySnapshot:
        return await fetcher.fetch_global_supply(descriptors)

    service = SupplyService(
        store or CacheStore(),
        fetch_snapshot,
        fresh_ttl=settings.fresh_ttl_seconds,
        stale_ttl=settings.stale_ttl_seconds,
        token_address=settings.token_address,
        excluded_addresses=settings.all_excluded_addresses,
    )
    return AppState(
        settings=settings,
        logger=logger or logging.getLogger("trevee_supply"),
        client=client,
        fetcher=fetcher,
        service=service,
    )
