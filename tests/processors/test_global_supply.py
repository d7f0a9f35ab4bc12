from __future__ import annotations

from datetime import timezone

import pytest

from trevee_supply.clients import ChainQueryClient
from trevee_supply.domain import (
    ChainDescriptor,
    ChainSupplySnapshot,
    TotalSupplyPolicy,
)
from trevee_supply.errors import ChainFetchError, DecimalsFetchError
from trevee_supply.processors import (
    ChainSupplyFetcher,
    GlobalSupplyFetcher,
    compute_global_totals,
)
from trevee_supply.units import format_units

WHOLE = 10**18
TOKEN = "0xe90FE2DE4A415aD48B6DcEc08bA6ae98231948Ac"
DEAD = "0x000000000000000000000000000000000000dEaD"

CHAINS = [
    ChainDescriptor("ethereum", ("https://eth.example",), (DEAD,)),
    ChainDescriptor("sonic", ("https://sonic.example",), (DEAD,)),
    ChainDescriptor("plasma", ("https://plasma.example",), (DEAD,)),
]


@pytest.fixture
def readers(fake_reader):
    return {
        "https://eth.example": fake_reader(
            "https://eth.example",
            total_supply=500_000_000 * WHOLE,
            balances={DEAD: 50_000_000 * WHOLE},
        ),
        "https://sonic.example": fake_reader(
            "https://sonic.example",
            total_supply=300_000_000 * WHOLE,
            balances={DEAD: 30_000_000 * WHOLE},
        ),
        "https://plasma.example": fake_reader(
            "https://plasma.example",
            total_supply=200_000_000 * WHOLE,
            balances={DEAD: 20_000_000 * WHOLE},
        ),
    }


def make_fetcher(readers, *, read_decimals=False, max_attempts=2, **kwargs):
    client = ChainQueryClient(TOKEN, reader_factory=readers.__getitem__)
    chain_fetcher = ChainSupplyFetcher(
        client, max_attempts=max_attempts, base_delay=0.0, read_decimals=read_decimals
    )
    kwargs.setdefault("decimals_chain", "ethereum")
    kwargs.setdefault("canonical_chain", "sonic")
    return GlobalSupplyFetcher(chain_fetcher, **kwargs)


@pytest.mark.asyncio
async def test_sums_chains_into_global_totals(readers):
    snapshot = await make_fetcher(readers).fetch_global_supply(CHAINS)

    assert list(snapshot.chains) == ["ethereum", "sonic", "plasma"]
    assert snapshot.chains["sonic"].circulating_supply == 270_000_000 * WHOLE
    assert snapshot.total_circulating == 900_000_000 * WHOLE
    assert snapshot.total_supply == 1_000_000_000 * WHOLE
    assert snapshot.total_excluded == 100_000_000 * WHOLE
    assert snapshot.decimals == 18
    assert snapshot.total_supply_policy is TotalSupplyPolicy.SUM
    assert snapshot.canonical_chain is None
    assert snapshot.fetch_duration_ms >= 0
    assert snapshot.timestamp.tzinfo is timezone.utc

    assert format_units(snapshot.total_circulating, snapshot.decimals) == "900000000"
    assert format_units(snapshot.total_supply, snapshot.decimals) == "1000000000"


@pytest.mark.asyncio
async def test_canonical_chain_policy(readers):
    fetcher = make_fetcher(
        readers, total_supply_policy=TotalSupplyPolicy.CANONICAL_CHAIN
    )
    snapshot = await fetcher.fetch_global_supply(CHAINS)

    assert snapshot.total_supply == 300_000_000 * WHOLE
    assert snapshot.total_circulating == 900_000_000 * WHOLE
    assert snapshot.canonical_chain == "sonic"


@pytest.mark.asyncio
async def test_one_failing_chain_fails_the_fetch(readers):
    readers["https://plasma.example"].fail_next(
        "totalSupply", ConnectionError("plasma down"), times=2
    )

    with pytest.raises(ChainFetchError) as exc_info:
        await make_fetcher(readers).fetch_global_supply(CHAINS)

    assert exc_info.value.chain == "plasma"


@pytest.mark.asyncio
async def test_first_failing_chain_in_order_is_raised(readers):
    for endpoint in ("https://sonic.example", "https://plasma.example"):
        readers[endpoint].fail_next("totalSupply", ConnectionError("down"), times=2)

    with pytest.raises(ChainFetchError) as exc_info:
        await make_fetcher(readers).fetch_global_supply(CHAINS)

    assert exc_info.value.chain == "sonic"


@pytest.mark.asyncio
async def test_decimals_failure(readers):
    readers["https://eth.example"].fail_next(
        "decimals", ConnectionError("down"), times=2
    )

    with pytest.raises(DecimalsFetchError) as exc_info:
        await make_fetcher(readers).fetch_global_supply(CHAINS)

    assert exc_info.value.chain == "ethereum"


@pytest.mark.asyncio
async def test_decimals_read_from_configured_chain(readers, fake_reader):
    readers["https://sonic.example"] = fake_reader(
        "https://sonic.example", total_supply=1, decimals=9
    )

    snapshot = await make_fetcher(readers, decimals_chain="sonic").fetch_global_supply(
        CHAINS
    )

    assert snapshot.decimals == 9


@pytest.mark.asyncio
async def test_mismatched_chain_decimals_are_rescaled(readers, fake_reader):
    readers["https://plasma.example"] = fake_reader(
        "https://plasma.example",
        total_supply=200_000_000 * 10**6,
        balances={DEAD: 20_000_000 * 10**6},
        decimals=6,
    )

    snapshot = await make_fetcher(readers, read_decimals=True).fetch_global_supply(
        CHAINS
    )

    assert snapshot.chains["plasma"].total_supply == 200_000_000 * WHOLE
    assert snapshot.chains["plasma"].decimals == 18
    assert snapshot.total_circulating == 900_000_000 * WHOLE


@pytest.mark.asyncio
async def test_empty_chain_list_rejected(readers):
    with pytest.raises(ValueError):
        await make_fetcher(readers).fetch_global_supply([])


def test_compute_totals_canonical_chain_missing():
    chains = {"ethereum": ChainSupplySnapshot("ethereum", 10, 1)}

    with pytest.raises(ValueError, match="sonic"):
        compute_global_totals(chains, TotalSupplyPolicy.CANONICAL_CHAIN, "sonic")


def test_compute_totals_sum():
    chains = {
        "ethereum": ChainSupplySnapshot("ethereum", 10, 1),
        "sonic": ChainSupplySnapshot("sonic", 5, 2),
    }

    assert compute_global_totals(chains, TotalSupplyPolicy.SUM) == (12, 15, 3)
