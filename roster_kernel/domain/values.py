"""
Boundary validation for numeric wire contracts.

Percentages and daily wages arrive from forms and JSON payloads; they are
converted to Decimal and range-checked here before they reach a model,
a service or an engine.
"""

from decimal import Decimal

from roster_kernel.db.types import (
    HUNDRED,
    PERCENTAGE_DECIMAL_PLACES,
    ZERO,
    normalize_percentage,
    to_decimal,
)
from roster_kernel.exceptions import InvalidPercentageError, InvalidWageError

_PERCENTAGE_QUANTUM = Decimal(1).scaleb(-PERCENTAGE_DECIMAL_PLACES)


def validate_percentage(value: object) -> Decimal:
    """
    Parse a sharing percentage.

    Postconditions:
        Returns a Decimal in [0, 100] with at most four decimal places,
        in canonical form (see ``normalize_percentage``).

    Raises:
        InvalidPercentageError: non-numeric, float, out of range, or finer
            than the four places the database stores.
    """
    try:
        pct = to_decimal(value)
    except ValueError:
        raise InvalidPercentageError(value) from None
    if pct < ZERO or pct > HUNDRED:
        raise InvalidPercentageError(value)
    if pct != pct.quantize(_PERCENTAGE_QUANTUM):
        raise InvalidPercentageError(value)
    return normalize_percentage(pct)


def validate_daily_wage(value: object) -> Decimal:
    """
    Parse a daily wage rate.

    Raises:
        InvalidWageError: non-numeric, float, zero or negative.
    """
    try:
        wage = to_decimal(value)
    except ValueError:
        raise InvalidWageError(value) from None
    if wage <= ZERO:
        raise InvalidWageError(value)
    return wage
