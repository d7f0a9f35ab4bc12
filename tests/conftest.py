from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone

import pytest

from trevee_supply.domain import (
    ChainSupplySnapshot,
    GlobalSupplySnapshot,
    TotalSupplyPolicy,
)

WHOLE = 10**18


class FakeReader:
    """In-memory stand-in for TokenReader bound to one endpoint."""

    def __init__(
        self,
        endpoint: str,
        total_supply: int = 0,
        balances: dict[str, int] | None = None,
        decimals: int = 18,
    ):
        self.endpoint = endpoint
        self._total_supply = total_supply
        self._balances = {k.lower(): v for k, v in (balances or {}).items()}
        self._decimals = decimals
        self._failures: dict[str, list[BaseException]] = defaultdict(list)
        self.calls: list[tuple[str, ...]] = []
        self.closed = False

    def fail_next(self, method: str, error: BaseException, times: int = 1) -> None:
        self._failures[method].extend([error] * times)

    def _maybe_fail(self, method: str) -> None:
        if self._failures[method]:
            raise self._failures[method].pop(0)

    async def total_supply(self) -> int:
        self.calls.append(("totalSupply",))
        self._maybe_fail("totalSupply")
        return self._total_supply

    async def balance_of(self, address: str) -> int:
        self.calls.append(("balanceOf", address))
        self._maybe_fail("balanceOf")
        return self._balances.get(address.lower(), 0)

    async def decimals(self) -> int:
        self.calls.append(("decimals",))
        self._maybe_fail("decimals")
        return self._decimals

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_reader():
    """The FakeReader class, for building readers per endpoint."""
    return FakeReader


def build_snapshot(
    circulating: int = 900_000_000,
    total: int = 1_000_000_000,
    decimals: int = 18,
) -> GlobalSupplySnapshot:
    """A single-chain snapshot holding whole-token amounts."""
    unit = 10**decimals
    chain = ChainSupplySnapshot(
        chain="ethereum",
        total_supply=total * unit,
        excluded_balance=(total - circulating) * unit,
    )
    return GlobalSupplySnapshot(
        chains={"ethereum": chain},
        total_circulating=circulating * unit,
        total_supply=total * unit,
        total_excluded=(total - circulating) * unit,
        decimals=decimals,
        total_supply_policy=TotalSupplyPolicy.SUM,
        canonical_chain=None,
        fetch_duration_ms=12,
        timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def make_snapshot():
    return build_snapshot


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
