"""Decimal-width normalization for rendered dollar amounts."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from .usage_csv import UsageRow


def decimal_places(value: Decimal) -> int:
    """Number of digits after the decimal point, as written."""
    exponent = value.as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


def price_decimal_places(rows: Iterable[UsageRow]) -> int:
    """Widest unit-price precision in ``rows``, 0 for no rows."""
    return max((decimal_places(row.unit_price_dollar) for row in rows), default=0)


def pad_cost(cost: Decimal, places: int) -> str:
    """Render ``cost`` in plain notation padded with trailing zeros.

    Never rounds: a value already wider than ``places`` is returned unchanged.
    """
    text = format(cost, "f")
    current = len(text.partition(".")[2])
    if current >= places:
        return text
    if current == 0:
        text += "."
    return text + "0" * (places - current)
