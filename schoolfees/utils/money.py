"""Money helpers: every stored amount is a Decimal with two places"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number | None) -> Decimal:
    if value is None:
        return ZERO
    # str() first so floats like 0.1 do not drag binary noise along
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_money(value: Number | None) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Number | None]) -> Decimal:
    return round_money(sum((to_decimal(v) for v in values), ZERO))
