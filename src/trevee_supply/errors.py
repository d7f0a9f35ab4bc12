"""Exception hierarchy for supply fetching."""

from __future__ import annotations

from collections.abc import Sequence


class SupplyError(Exception):
    """Base class for every failure raised by the supply fetching core."""


class EndpointError(SupplyError):
    """A single endpoint failed to answer one read operation."""

    def __init__(self, chain: str, endpoint: str, cause: BaseException):
        super().__init__(f"{chain}: endpoint {endpoint} failed: {cause!r}")
        self.chain = chain
        self.endpoint = endpoint
        self.cause = cause


class AllEndpointsFailedError(SupplyError):
    """Every endpoint of a chain failed during one pass."""

    def __init__(
        self,
        chain: str,
        endpoints: Sequence[str],
        last_error: BaseException | None,
    ):
        super().__init__(
            f"{chain}: all {len(endpoints)} endpoint(s) failed, last error: {last_error!r}"
        )
        self.chain = chain
        self.endpoints = tuple(endpoints)
        self.last_error = last_error


class ChainFetchError(SupplyError):
    """Retries were exhausted while fetching one chain's supply."""

    def __init__(self, chain: str, message: str | None = None):
        super().__init__(message or f"Failed to fetch supply for chain '{chain}'")
        self.chain = chain


class DecimalsFetchError(SupplyError):
    """Retries were exhausted while fetching the token decimals."""

    def __init__(self, chain: str, message: str | None = None):
        super().__init__(
            message or f"Failed to fetch token decimals from chain '{chain}'"
        )
        self.chain = chain
