from __future__ import annotations


def scale_units(value: int, from_decimals: int, to_decimals: int) -> int:
    """Rescale an integer amount between two decimal precisions.

    Args:
        value: Integer amount expressed with ``from_decimals`` decimal places.
        from_decimals: Current decimal precision of ``value``.
        to_decimals: Target decimal precision.

    Returns:
        The amount expressed with ``to_decimals`` decimal places.

    Notes:
        - Scaling up multiplies by a power of ten and is exact.
        - Scaling down uses integer division (truncates toward zero).
    """
    if from_decimals == to_decimals:
        return value
    if from_decimals < to_decimals:
        return value * (10 ** (to_decimals - from_decimals))
    return value // (10 ** (from_decimals - to_decimals))


def format_units(value: int, decimals: int) -> str:
    """Format a raw integer token amount as a plain decimal string.

    The result never uses exponent notation, carries at most ``decimals``
    fractional digits, drops trailing fractional zeros (and a bare trailing
    point) and has no leading zeros beyond a single ``0``. Negative values
    keep a leading ``-``.

    >>> format_units(900_000_000 * 10**18, 18)
    '900000000'
    >>> format_units(1_500_000_000_000_000_000, 18)
    '1.5'
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    if decimals == 0 or fraction == 0:
        return f"{sign}{whole}"

    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{fraction_text}"


def parse_units(text: str, decimals: int) -> int:
    """Parse a decimal string produced by :func:`format_units` back to raw units."""
    text = text.strip()
    negative = text.startswith("-")
    if negative:
        text = text[1:]

    whole, _, fraction = text.partition(".")
    if not whole.isdigit() or (fraction and not fraction.isdigit()):
        raise ValueError(f"Not a plain decimal number: {text!r}")
    if len(fraction) > decimals:
        raise ValueError(
            f"{text!r} has more than {decimals} fractional digits"
        )

    raw = int(whole) * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    return -raw if negative else raw
