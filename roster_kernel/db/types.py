"""
Module: roster_kernel.db.types
Responsibility: Precision constants and utility functions for money-grade
    values.  Centralizes precision and rounding so that every model,
    engine and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and engines.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere.  Wages, costs and percentages are Decimal.
    - round_money() is the ONLY sanctioned rounding function for amounts.
    - Percentages carry at most PERCENTAGE_DECIMAL_PLACES places, matching
      the Numeric(9, 4) column they are stored in.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_DECIMAL_PLACES = 2
PERCENTAGE_DECIMAL_PLACES = 4
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: object) -> Decimal:
    """
    Coerce int / str / Decimal to Decimal.

    Floats are rejected: binary floating point cannot represent wage
    amounts exactly, and the caller must pass a string instead.

    Raises:
        ValueError: If value is a float, a bool, or not numeric.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Expected Decimal, int or str, got {type(value).__name__}")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation:
            raise ValueError(f"Not a decimal number: {value!r}") from None
    else:
        raise ValueError(f"Expected Decimal, int or str, got {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Not a finite decimal number: {value!r}")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for amounts in the
    system.  All other code MUST delegate rounding here.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def normalize_percentage(value: Decimal) -> Decimal:
    """
    Canonical form of a percentage, independent of the scale it was read at.

    ``Decimal("110.0000")`` (as reloaded from the database) and
    ``Decimal("110")`` both become ``Decimal("110")``; ``"12.5000"`` becomes
    ``"12.5"``.
    """
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return normalized.quantize(Decimal(1))
    return normalized
