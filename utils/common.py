"""Common utility functions used across the fleet analytics tools."""

import time


def elapsed(start_time: float) -> str:
    """Format elapsed time from start_time to now as human-readable string.

    Examples:
        0m 03s, 2m 15s, 1h 05m 30s
    """
    secs = int(time.time() - start_time)
    m, s = divmod(secs, 60)
    h, m = divmod(m, 60)
    if h:
        return f"{h}h {m:02d}m {s:02d}s"
    return f"{m}m {s:02d}s"


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 when the denominator is zero.

    Every ratio the aggregation layer reports (cost per ton, coverage rate,
    kg per capita ...) goes through here so a missing denominator can never
    surface as NaN or infinity.
    """
    if not denominator:
        return 0.0
    return numerator / denominator


def percent(numerator: float, denominator: float) -> float:
    """``safe_ratio`` scaled to a percentage."""
    return safe_ratio(numerator, denominator) * 100

