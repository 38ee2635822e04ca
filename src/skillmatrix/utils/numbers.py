"""Numeric helpers shared by the scoring and reporting code."""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round half away from zero for non-negative values (2.5 -> 3, 0.125 -> 0.13).

    Python's built-in round() uses banker's rounding, which would turn a 62.5%
    completion into 62. Percentages and scores in this service round halves up.

    Args:
        value: Number to round
        digits: Decimal places to keep

    Returns:
        The rounded value (an int-valued float when digits is 0)
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def percent(part: float, whole: float) -> int:
    """Return part/whole as a whole-number percentage, 0 when whole is 0."""
    if not whole:
        return 0
    return int(round_half_up(part / whole * 100))
