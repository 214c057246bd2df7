"""
Fixed-point amount codec.

Converts between human-readable decimal strings and integer smallest-unit
amounts. All arithmetic is done on Python integers; a float never appears
between the input string and the returned value.
"""

import re

# Upper bound the wallet front-end enforces on typed amounts (8 decimals).
MAX_SAFE_AMOUNT = "999999999.99999999"

# Digits, optionally followed by a point and at least one more digit.
# No sign, exponent, separators or surrounding whitespace.
_DECIMAL_PATTERN = re.compile(r"(?P<whole>[0-9]+)(?:\.(?P<fraction>[0-9]+))?")


class InvalidFormat(ValueError):
    """Raised when a string is not a valid non-negative decimal amount."""


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise ValueError(f"decimals must be a non-negative integer, got {decimals!r}")


def to_smallest_units(decimal_amount: str, decimals: int) -> int:
    """Parse a decimal string into an integer count of smallest units.

    Args:
        decimal_amount: Amount such as "0.00000001" or "5"
        decimals: Number of fractional digits of the token

    Returns:
        decimal_amount scaled by 10**decimals

    Raises:
        InvalidFormat: If the string is empty, padded with whitespace, not a
            plain non-negative numeral, or has more fractional digits than
            decimals allows (no rounding is ever applied)
    """
    _check_decimals(decimals)
    if not isinstance(decimal_amount, str):
        raise InvalidFormat(f"Amount must be a string, got {type(decimal_amount).__name__}")
    if not decimal_amount:
        raise InvalidFormat("Amount is required")

    match = _DECIMAL_PATTERN.fullmatch(decimal_amount)
    if match is None:
        raise InvalidFormat(f"Invalid amount format: {decimal_amount!r}")

    fraction = match.group("fraction") or ""
    if len(fraction) > decimals:
        raise InvalidFormat(
            f"Amount cannot have more than {decimals} decimal places: {decimal_amount!r}"
        )

    whole = int(match.group("whole"))
    return whole * 10 ** decimals + int(fraction.ljust(decimals, "0") or "0")


def to_decimal_string(smallest_units: int, decimals: int) -> str:
    """Format smallest units as a fixed-point string with exactly `decimals` digits.

    Args:
        smallest_units: Non-negative integer amount
        decimals: Number of fractional digits of the token

    Returns:
        Zero-padded decimal string, e.g. "0.00000000"; no point when decimals is 0

    Raises:
        InvalidFormat: If smallest_units is not a non-negative integer
    """
    _check_decimals(decimals)
    if isinstance(smallest_units, bool) or not isinstance(smallest_units, int):
        raise InvalidFormat(f"Smallest units must be an integer, got {smallest_units!r}")
    if smallest_units < 0:
        raise InvalidFormat(f"Smallest units cannot be negative: {smallest_units}")

    if decimals == 0:
        return str(smallest_units)

    whole, fraction = divmod(smallest_units, 10 ** decimals)
    return f"{whole}.{fraction:0{decimals}d}"


def max_safe_units(decimals: int) -> int:
    """Largest smallest-unit amount not above MAX_SAFE_AMOUNT.

    Exact for any precision: with fewer than eight decimals the limit is
    rounded down to a whole smallest unit.
    """
    _check_decimals(decimals)
    limit_decimals = len(MAX_SAFE_AMOUNT.partition(".")[2])
    limit_units = to_smallest_units(MAX_SAFE_AMOUNT, limit_decimals)
    return limit_units * 10 ** decimals // 10 ** limit_decimals


def is_decimal_amount(text: str, decimals: int) -> bool:
    """Check whether text parses as an amount with at most `decimals` digits."""
    try:
        to_smallest_units(text, decimals)
    except InvalidFormat:
        return False
    return True
