"""Per-chain supply computation."""

from __future__ import annotations

import asyncio
import logging

from ..clients.chain_query import ChainQueryClient
from ..clients.retry import with_retry
from ..clients.token_reader import TokenReader
from ..domain import ChainDescriptor, ChainSupplySnapshot
from ..errors import ChainFetchError, DecimalsFetchError

logger = logging.getLogger(__name__)


class ChainSupplyFetcher:
    """Computes total, excluded and circulating supply for one chain at a time."""

    def __init__(
        self,
        client: ChainQueryClient,
        *,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        jitter: float = 0.0,
        read_decimals: bool = False,
    ):
        self.client = client
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.jitter = jitter
        self.read_decimals = read_decimals

    async def _read_snapshot(
        self, chain: ChainDescriptor, reader: TokenReader
    ) -> ChainSupplySnapshot:
        """One all-or-nothing attempt against a single endpoint."""
        reads = [
            reader.total_supply(),
            *[reader.balance_of(address) for address in chain.excluded_addresses],
        ]
        if self.read_decimals:
            reads.append(reader.decimals())

        results = await asyncio.gather(*reads, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

        decimals = results.pop() if self.read_decimals else None
        total_supply, *balances = results
        excluded_balance = sum(balances)

        snapshot = ChainSupplySnapshot(
            chain=chain.name,
            total_supply=total_supply,
            excluded_balance=excluded_balance,
            decimals=decimals,
        )
        if snapshot.circulating_supply < 0:
            logger.warning(
                "%s: excluded balance %d exceeds total supply %d",
                chain.name,
                excluded_balance,
                total_supply,
            )
        return snapshot

    async def fetch_chain_supply(self, chain: ChainDescriptor) -> ChainSupplySnapshot:
        """Fetch a supply snapshot for ``chain`` with endpoint fallback and retries.

        Raises:
            ChainFetchError: If every attempt failed
        """
        logger.debug(
            "Fetching %s supply (%d endpoints, %d excluded addresses)",
            chain.name,
            len(chain.endpoints),
            len(chain.excluded_addresses),
        )

        async def attempt() -> ChainSupplySnapshot:
            return await self.client.query(
                chain.endpoints,
                lambda reader: self._read_snapshot(chain, reader),
                chain=chain.name,
            )

        try:
            snapshot = await with_retry(
                attempt,
                self.max_attempts,
                self.base_delay,
                jitter=self.jitter,
                description=f"{chain.name} supply fetch",
            )
        except Exception as e:
            raise ChainFetchError(chain.name, str(e)) from e

        logger.debug(
            "%s: total=%d excluded=%d circulating=%d",
            chain.name,
            snapshot.total_supply,
            snapshot.excluded_balance,
            snapshot.circulating_supply,
        )
        return snapshot

    async def fetch_decimals(self, chain: ChainDescriptor) -> int:
        """Fetch the token's decimals from ``chain``.

        Raises:
            DecimalsFetchError: If every attempt failed
        """

        async def attempt() -> int:
            return await self.client.query(
                chain.endpoints,
                lambda reader: reader.decimals(),
                chain=chain.name,
            )

        try:
            return await with_retry(
                attempt,
                self.max_attempts,
                self.base_delay,
                jitter=self.jitter,
                description=f"{chain.name} decimals fetch",
            )
        except Exception as e:
            raise DecimalsFetchError(chain.name, str(e)) from e
