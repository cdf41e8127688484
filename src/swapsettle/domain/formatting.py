from __future__ import annotations

from decimal import Decimal, ROUND_DOWN


def truncate_decimal(value: Decimal, places: int) -> Decimal:
    """Drop (never round) digits beyond ``places`` fractional digits."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)


def truncate_decimal_string(value: str, places: int = 6) -> str:
    """
    Truncate a numeric string to ``places`` fractional digits.

    Strings without a fractional part, or with fewer digits than ``places``,
    are returned unchanged.
    """
    value = (value or "").strip()
    if "." not in value:
        return value
    whole, frac = value.split(".", 1)
    if len(frac) <= places:
        return value
    return f"{whole}.{frac[:places]}"
