"""Ordered-endpoint fallback for chain reads."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from ..errors import AllEndpointsFailedError, EndpointError
from .token_reader import TokenReader

logger = logging.getLogger(__name__)

T = TypeVar("T")

ReaderFactory = Callable[[str], TokenReader]
Operation = Callable[[TokenReader], Awaitable[T]]


class ChainQueryClient:
    """Runs one logical read against a chain, falling back through its endpoints.

    Readers are created lazily, one per endpoint URL, and reused across
    queries so connection pools and per-endpoint throttling persist.
    """

    def __init__(
        self,
        token_address: str,
        *,
        rpc_timeout: float = 10.0,
        max_concurrent_calls: int = 8,
        reader_factory: ReaderFactory | None = None,
    ):
        self.token_address = token_address
        self._reader_factory = reader_factory or (
            lambda endpoint: TokenReader(
                endpoint,
                token_address,
                timeout=rpc_timeout,
                max_concurrent_calls=max_concurrent_calls,
            )
        )
        self._readers: dict[str, TokenReader] = {}

    def reader_for(self, endpoint: str) -> TokenReader:
        reader = self._readers.get(endpoint)
        if reader is None:
            reader = self._reader_factory(endpoint)
            self._readers[endpoint] = reader
        return reader

    async def query(
        self,
        endpoints: Sequence[str],
        operation: Operation[T],
        *,
        chain: str = "unknown",
    ) -> T:
        """Run ``operation`` against each endpoint in order until one succeeds.

        Args:
            endpoints: Endpoint URLs in preference order
            operation: Async callable receiving a reader bound to one endpoint
            chain: Chain name, used for logging and errors

        Returns:
            The first successful result

        Raises:
            AllEndpointsFailedError: If every endpoint failed
        """
        last_error: BaseException | None = None
        for endpoint in endpoints:
            try:
                result = await operation(self.reader_for(endpoint))
            except Exception as e:
                failure = EndpointError(chain, endpoint, e)
                logger.warning("%s", failure)
                last_error = e
                continue
            logger.debug("%s: served by %s", chain, endpoint)
            return result

        raise AllEndpointsFailedError(chain, endpoints, last_error)

    async def aclose(self) -> None:
        """Close every reader created so far."""
        for reader in self._readers.values():
            await reader.close()
        self._readers.clear()
