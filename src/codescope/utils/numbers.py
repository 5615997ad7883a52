"""Numeric helpers."""

import math


def round_half_up(value: float, digits: int = 0) -> float | int:
    """Round with .5 going up, unlike the builtin banker's rounding.

    Returns an ``int`` when ``digits`` is 0.
    """
    factor = 10**digits
    rounded = math.floor(value * factor + 0.5) / factor
    if digits == 0:
        return int(rounded)
    return rounded
