"""Numeric helpers for score handling."""

from decimal import ROUND_HALF_UP, Decimal


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper].

    Example:
        >>> clamp(11.2, 1.0, 10.0)
        10.0
    """
    return max(lower, min(upper, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (6.5 -> 7.0), unlike Python's banker's round.

    Example:
        >>> round_half_up(6.5)
        7.0
        >>> round_half_up(7.25, 1)
        7.3
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
