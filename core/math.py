"""
core/math.py - Mathematical utilities.

CRITICAL: No float allowed for amounts, reserves, prices or percentages.
Raw on-chain amounts are int, everything derived is Decimal.
"""

from contextlib import contextmanager
from decimal import Decimal, ROUND_FLOOR, InvalidOperation, localcontext
from typing import Iterable, Iterator

from core.constants import MATH_PRECISION, MAX_TOKEN_DECIMALS
from core.exceptions import InvalidInputError


HUNDRED = Decimal(100)


@contextmanager
def precise() -> Iterator[None]:
    """Run a block under the high-precision Decimal context."""
    with localcontext() as ctx:
        ctx.prec = MATH_PRECISION
        yield


# =============================================================================
# SAFE CONVERSIONS (NO FLOAT)
# =============================================================================

def safe_decimal(value: int | str | Decimal, field: str = "value") -> Decimal:
    """
    Convert value to a finite Decimal.

    Raises InvalidInputError for floats, bools, NaN/Infinity and anything
    Decimal cannot parse.
    """
    if isinstance(value, float):
        raise InvalidInputError(
            f"Float values are not allowed for {field}. Use int, str, or Decimal.",
            details={"field": field, "value": value},
        )
    if isinstance(value, bool):
        raise InvalidInputError(
            f"Boolean is not a valid {field}",
            details={"field": field, "value": value},
        )

    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(
            f"Cannot convert {field} to Decimal: {value!r}",
            details={"field": field, "value": str(value)},
        )

    if not result.is_finite():
        raise InvalidInputError(
            f"{field} must be finite: {value!r}",
            details={"field": field, "value": str(value)},
        )
    return result


def safe_int(value: int | str | Decimal, field: str = "value", exact: bool = False) -> int:
    """
    Convert value to int, truncating toward negative infinity.

    With exact=True a fractional value is rejected instead of truncated.

    Raises InvalidInputError for floats and unparseable values.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    dec = safe_decimal(value, field)
    if exact and dec != dec.to_integral_value():
        raise InvalidInputError(
            f"{field} must be a whole number, got {value}",
            details={"field": field, "value": str(value)},
        )
    return int(dec.to_integral_value(rounding=ROUND_FLOOR))


def require_positive(value: int | str | Decimal, field: str) -> Decimal:
    """Parse value and reject zero or negative numbers."""
    dec = safe_decimal(value, field)
    if dec <= 0:
        raise InvalidInputError(
            f"{field} must be positive, got {value}",
            details={"field": field, "value": str(value)},
        )
    return dec


# =============================================================================
# TOKEN AMOUNT CONVERSIONS
# =============================================================================

def _check_decimals(decimals: int) -> None:
    if decimals < 0 or decimals > MAX_TOKEN_DECIMALS:
        raise InvalidInputError(
            f"Invalid decimals: {decimals}",
            details={"decimals": decimals},
        )


def to_base_units(amount: int | str | Decimal, decimals: int) -> int:
    """
    Convert a human amount to integer base units, flooring.

    Example: to_base_units("1.5", 6) -> 1500000
    """
    _check_decimals(decimals)
    with precise():
        scaled = safe_decimal(amount, "amount") * (Decimal(10) ** decimals)
        return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def from_base_units(amount: int, decimals: int) -> Decimal:
    """
    Convert integer base units to a human Decimal.

    Example: from_base_units(1000000, 6) -> Decimal('1')
    """
    _check_decimals(decimals)
    with precise():
        return Decimal(amount) / (Decimal(10) ** decimals)


# =============================================================================
# PERCENTAGES / STATS
# =============================================================================

def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """
    Signed percentage change from previous to current.

    Returns: (current - previous) / previous * 100
    """
    if previous == 0:
        raise InvalidInputError(
            "Cannot compute percent change from zero",
            details={"current": str(current), "previous": str(previous)},
        )
    with precise():
        return (current - previous) / previous * HUNDRED


def mean(values: Iterable[Decimal]) -> Decimal:
    """Arithmetic mean of a non-empty sequence."""
    items = list(values)
    if not items:
        raise InvalidInputError("Cannot average an empty sequence")
    with precise():
        return sum(items, Decimal(0)) / Decimal(len(items))


def round_pct(value: Decimal, places: int = 4) -> Decimal:
    """Quantize a percentage for display (never used inside math)."""
    return value.quantize(Decimal(1).scaleb(-places))
