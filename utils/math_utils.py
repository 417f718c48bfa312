"""
Numeric helpers shared by the simulation engine.

Every ratio in the engine goes through safe_divide so a zero
denominator yields an explicit fallback instead of NaN/inf.
"""

import math


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Limit value to the closed range [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Divide, returning default when the denominator is zero.

    Args:
        numerator: Dividend
        denominator: Divisor
        default: Value returned for a zero divisor

    Returns:
        numerator / denominator, or default
    """
    if denominator == 0:
        return default
    return numerator / denominator


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves towards +infinity.

    Python's round() uses banker's rounding (round(2.5) == 2); planning
    quantities and day counts round 2.5 → 3 and -2.5 → -2.
    """
    return int(math.floor(value + 0.5))


def scale_to_25(value: float, minimum: float, maximum: float) -> float:
    """
    Linearly scale value from [minimum, maximum] into [0, 25].

    Returns 0 for a degenerate range (maximum <= minimum).
    """
    if maximum <= minimum:
        return 0.0
    return clamp((value - minimum) / (maximum - minimum) * 25, 0, 25)


def percentile_rank(value: float, sorted_values: list[float]) -> float:
    """
    Percentage of values strictly below value.

    Args:
        value: Value to rank
        sorted_values: Distribution (ascending)

    Returns:
        Rank in [0, 100]; 0 for an empty distribution
    """
    if not sorted_values:
        return 0.0
    below = sum(1 for v in sorted_values if v < value)
    return below / len(sorted_values) * 100
