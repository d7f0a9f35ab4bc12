from __future__ import annotations

import pytest

from trevee_supply.cache import CacheEntry, CacheKind, CacheStore, Freshness, classify


@pytest.mark.parametrize(
    "age,expected",
    [
        (0, Freshness.FRESH),
        (59.9, Freshness.FRESH),
        (60, Freshness.STALE),
        (299.9, Freshness.STALE),
        (300, Freshness.EXPIRED),
        (10_000, Freshness.EXPIRED),
    ],
)
def test_classify_zones(age, expected):
    entry = CacheEntry(value="1", timestamp=1000.0, version=1)
    assert classify(entry, 1000.0 + age, 60, 300) is expected


def test_classify_missing_entry_is_expired():
    assert classify(None, 0.0, 60, 300) is Freshness.EXPIRED


def test_replace_writes_every_kind_together():
    store = CacheStore()
    version = store.next_version()

    assert store.replace(
        {CacheKind.CIRCULATING: "9", CacheKind.TOTAL: "10"},
        timestamp=5.0,
        version=version,
    )

    assert store.get(CacheKind.CIRCULATING) == CacheEntry("9", 5.0, version)
    assert store.get(CacheKind.TOTAL) == CacheEntry("10", 5.0, version)
    assert store.get(CacheKind.DETAILED) is None


def test_older_version_is_rejected():
    store = CacheStore()
    slow = store.next_version()
    fast = store.next_version()

    assert store.replace({CacheKind.TOTAL: "new"}, timestamp=2.0, version=fast)
    assert not store.replace({CacheKind.TOTAL: "old"}, timestamp=3.0, version=slow)

    assert store.get(CacheKind.TOTAL).value == "new"


def test_successful_write_clears_last_error():
    store = CacheStore()
    store.record_error("boom", at=1.0)
    assert store.last_error == "boom"

    store.replace({CacheKind.TOTAL: "1"}, timestamp=2.0, version=store.next_version())

    assert store.last_error is None
    assert store.last_error_at is None


def test_record_error_keeps_entries():
    store = CacheStore()
    store.replace({CacheKind.TOTAL: "1"}, timestamp=2.0, version=store.next_version())

    store.record_error("boom", at=3.0)

    assert store.get(CacheKind.TOTAL).value == "1"
    assert store.last_error_at == 3.0


def test_clear():
    store = CacheStore()
    store.replace({CacheKind.TOTAL: "1"}, timestamp=2.0, version=store.next_version())
    store.record_error("boom", at=3.0)

    store.clear()

    assert store.get(CacheKind.TOTAL) is None
    assert store.last_error is None
