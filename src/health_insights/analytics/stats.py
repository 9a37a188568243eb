"""Closed-form statistics used by the analyzers and detectors.

Population variance is used throughout: the series are complete windows of
a single person's history, not samples from a larger population.
"""

import math
from datetime import date, datetime
from typing import Optional, Sequence, Tuple


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_std_dev(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for an empty sequence."""
    if not values:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def coefficient_of_variation(values: Sequence[float]) -> Optional[float]:
    """stdDev / mean, or None when the mean is not positive."""
    avg = mean(values)
    if avg <= 0:
        return None
    return population_std_dev(values) / avg


def linear_regression(ys: Sequence[float]) -> Tuple[float, float]:
    """
    Ordinary least squares of ``ys`` against their index (0, 1, 2, ...).

    Returns:
        (slope, intercept). A single point yields a flat line through it.
    """
    n = len(ys)
    if n == 0:
        return 0.0, 0.0

    sum_x = sum(range(n))
    sum_y = sum(ys)
    sum_xy = sum(i * y for i, y in enumerate(ys))
    sum_x2 = sum(i * i for i in range(n))

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0, sum_y / n

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def percent_change(old: float, new: float) -> float:
    """Relative change from ``old`` to ``new`` in percent (0 when old is 0)."""
    if old == 0:
        return 0.0
    return (new - old) / old * 100


def iso_week(value: date | datetime) -> Tuple[int, int]:
    """(ISO year, ISO week number) of a date or datetime."""
    iso = value.isocalendar()
    return iso[0], iso[1]


def round1(value: float) -> float:
    """Round to one decimal place for display."""
    return round(value, 1)
