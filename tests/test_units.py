from __future__ import annotations

from decimal import Decimal

import pytest

from trevee_supply.units import format_units, parse_units, scale_units


def test_scale_units_same_decimals():
    assert scale_units(123, 18, 18) == 123


def test_scale_units_scale_up():
    assert scale_units(1, 6, 18) == 10**12
    assert scale_units(10**8, 8, 18) == 10**18


def test_scale_units_scale_down():
    assert scale_units(10**20, 20, 18) == 10**18
    assert scale_units(100, 20, 18) == 1


@pytest.mark.parametrize(
    "value, decimals, expected",
    [
        (900_000_000 * 10**18, 18, "900000000"),
        (1_000_000_000 * 10**18, 18, "1000000000"),
        (15 * 10**17, 18, "1.5"),
        (1, 18, "0.000000000000000001"),
        (0, 18, "0"),
        (123456, 0, "123456"),
        (10**30, 6, "1000000000000000000000000"),
        (-25 * 10**17, 18, "-2.5"),
    ],
)
def test_format_units(value, decimals, expected):
    assert format_units(value, decimals) == expected


def test_format_units_never_uses_exponent_notation():
    text = format_units(10**40, 18)
    assert "e" not in text.lower()
    assert text == "1" + "0" * 22


def test_format_units_rejects_negative_decimals():
    with pytest.raises(ValueError, match="non-negative"):
        format_units(1, -1)


@pytest.mark.parametrize(
    "value, decimals",
    [
        (0, 18),
        (1, 18),
        (449_999_999_999_999_999_999_999_999, 18),
        (7 * 10**25 + 3, 18),
        (987654321, 6),
        (42, 0),
    ],
)
def test_formatted_values_scale_back_to_raw(value, decimals):
    text = format_units(value, decimals)

    assert parse_units(text, decimals) == value
    assert Decimal(text) * (10**decimals) == value


def test_parse_units_rejects_excess_precision():
    with pytest.raises(ValueError, match="fractional digits"):
        parse_units("1.0000001", 6)


def test_parse_units_rejects_exponent_notation():
    with pytest.raises(ValueError, match="plain decimal"):
        parse_units("1e18", 18)
