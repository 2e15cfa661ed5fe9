"""
Unit and rounding primitives.

Every fee is an integer number of stroops. Conversion to XLM happens once,
for display, using Decimal so that no precision is lost.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import DivisionByZero

STROOPS_PER_XLM = 10_000_000

# Seven fractional digits: one stroop
_STROOP_QUANTUM = Decimal("0.0000001")


def ceil_div(numerator: int, denominator: int) -> int:
    """Integer division rounded towards positive infinity.

    Args:
        numerator: Dividend
        denominator: Divisor, must be > 0

    Returns:
        ceil(numerator / denominator) computed without floating point

    Raises:
        DivisionByZero: If denominator <= 0
    """
    if denominator <= 0:
        raise DivisionByZero(f"denominator must be > 0, got {denominator}")
    return (numerator + denominator - 1) // denominator


def apply_minimum_floor(computed: int, minimum: int) -> int:
    """Raise a computed fee to a protocol minimum."""
    return max(computed, minimum)


def to_display_units(stroops: int) -> Decimal:
    """Convert stroops to XLM."""
    return Decimal(stroops) / Decimal(STROOPS_PER_XLM)


def from_display_units(amount: Union[Decimal, str, int]) -> int:
    """Convert an XLM amount back to stroops.

    Raises:
        ValueError: If the amount is not numeric or has sub-stroop precision
    """
    try:
        value = Decimal(amount)
        exact = value == value.quantize(_STROOP_QUANTUM)
    except InvalidOperation:
        raise ValueError(f"{amount!r} is not an XLM amount")
    if not exact:
        raise ValueError(f"{amount} XLM is not a whole number of stroops")
    return int(value * STROOPS_PER_XLM)


def format_display_units(stroops: int) -> str:
    """Format stroops as an XLM string with seven fractional digits."""
    return f"{to_display_units(stroops).quantize(_STROOP_QUANTUM):f}"
