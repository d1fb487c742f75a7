"""
Conversion between human decimal strings and integer base units.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation


class PrecisionError(ValueError):
    """More fractional digits than the token supports."""


def parse_units(value: str, decimals: int) -> int:
    """
    "1.5" with 18 decimals -> 1500000000000000000.

    Raises ValueError for non-numeric input or more fractional digits than
    the token supports.
    """
    text = str(value or "").strip()
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Invalid number: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid number: {value!r}")

    scaled = amount.scaleb(int(decimals))
    if scaled != scaled.to_integral_value():
        raise PrecisionError(f"Too many decimal places (max {decimals}): {value!r}")
    return int(scaled)


def format_units(value: int, decimals: int) -> str:
    """1500000000000000000 with 18 decimals -> "1.5"."""
    raw = int(value)
    sign = "-" if raw < 0 else ""
    whole, frac = divmod(abs(raw), 10 ** int(decimals))
    if decimals <= 0 or frac == 0:
        return f"{sign}{whole}"
    frac_txt = str(frac).rjust(int(decimals), "0").rstrip("0")
    return f"{sign}{whole}.{frac_txt}"
