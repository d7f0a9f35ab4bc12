"""ERC20 reads against a single RPC endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from web3 import AsyncWeb3

from ..abi import load_erc20_abi

logger = logging.getLogger(__name__)


class TokenReader:
    """Reads token state through one endpoint.

    Every call is throttled by the reader's semaphore and bounded by
    ``timeout`` seconds, both at the HTTP layer and with an asyncio guard.
    """

    def __init__(
        self,
        endpoint: str,
        token_address: str,
        *,
        timeout: float = 10.0,
        max_concurrent_calls: int = 8,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(endpoint, request_kwargs={"timeout": timeout})
        )
        self.contract = self.w3.eth.contract(
            address=self.w3.to_checksum_address(token_address),
            abi=load_erc20_abi(),
        )
        self._rpc_sem = asyncio.Semaphore(max_concurrent_calls)

    async def _rpc(self, call: Any) -> Any:
        """Throttle and time-bound a single contract call."""
        async with self._rpc_sem:
            async with asyncio.timeout(self.timeout):
                return await call.call()

    async def _read_uint(self, call: Any, label: str) -> int:
        value = await self._rpc(call)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(
                f"Malformed {label} response from {self.endpoint}: {value!r}"
            )
        return value

    async def total_supply(self) -> int:
        return await self._read_uint(self.contract.functions.totalSupply(), "totalSupply")

    async def balance_of(self, address: str) -> int:
        checksum = self.w3.to_checksum_address(address)
        return await self._read_uint(
            self.contract.functions.balanceOf(checksum), "balanceOf"
        )

    async def decimals(self) -> int:
        return await self._read_uint(self.contract.functions.decimals(), "decimals")

    async def close(self) -> None:
        try:
            await self.w3.provider.disconnect()  # type: ignore[union-attr]
        except AttributeError as e:
            logger.debug(f"Provider disconnect expected (no disconnect method): {e}")
