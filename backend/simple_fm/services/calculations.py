"""
Spool weight arithmetic

Gross weight is what the scale shows with the spool on it; the tare is the
empty spool. Everything here works in whole grams.
"""
import math


def compute_remaining(weight_g: int, spool_weight_g: int) -> int:
    """Material left on a spool, never negative."""
    return max(weight_g - spool_weight_g, 0)


def compute_capacity(weight_g: int, spool_weight_g: int) -> int:
    """Material mass the spool held when it was weighed in."""
    return weight_g - spool_weight_g


def compute_percent_remaining(remaining_g: int, weight_g: int, spool_weight_g: int) -> int:
    """
    Remaining material as a whole percentage of the spool's capacity.

    Returns 0 when the tare is not smaller than the gross weight, and clamps
    the result to 0..100 when remaining_g has drifted outside the capacity.
    """
    capacity = compute_capacity(weight_g, spool_weight_g)
    if capacity <= 0:
        return 0
    # Half-up rounding: 77.5 % shows as 78 %
    percent = math.floor(remaining_g * 100 / capacity + 0.5)
    return min(max(percent, 0), 100)
