from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable


def quantum(precision: int) -> Decimal:
    return Decimal(1).scaleb(-precision)


def round_units(value: Decimal, precision: int) -> Decimal:
    return value.quantize(quantum(precision), rounding=ROUND_HALF_UP)


def sum_units(values: Iterable[Decimal]) -> Decimal:
    return sum(values, Decimal("0"))
