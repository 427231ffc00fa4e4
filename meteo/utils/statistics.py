"""
Descriptive Statistics
=======================
Mean/stddev/min/max, moving average and least-squares trend helpers over
numeric sequences. ``None`` entries are the caller's to filter; every helper
here expects plain numbers.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

import numpy as np

from meteo.domain.analysis import FieldStats


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round to ``digits`` decimals with ties going away from zero.

    Works on the exact binary value, so 2.5 -> 3.0 and -0.5 -> -1.0 while
    1.005 (stored just below) -> 1.0.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def present(values: Iterable[float | None]) -> list[float]:
    """Drop missing values, keeping order."""
    return [v for v in values if v is not None]


def describe(values: Sequence[float]) -> FieldStats:
    """
    Population statistics of a sequence.

    Mean and standard deviation are rounded to 3 decimals. An empty sequence
    yields all-zero stats with ``count == 0``.
    """
    n = len(values)
    if n == 0:
        return FieldStats()

    mean = sum(values) / n
    variance = sum((v - mean) ** 2 for v in values) / n

    return FieldStats(
        mean=round_half_up(mean, 3),
        std=round_half_up(variance**0.5, 3),
        min=min(values),
        max=max(values),
        count=n,
    )


def moving_average(values: Sequence[float], window_size: int = 5) -> list[float]:
    """
    Trailing simple moving average.

    Returns the input unchanged when it is shorter than ``window_size``.
    """
    if len(values) < window_size:
        return list(values)

    result = []
    for i in range(window_size - 1, len(values)):
        chunk = values[i - window_size + 1 : i + 1]
        result.append(sum(chunk) / window_size)
    return result


def linear_trend(values: Sequence[float]) -> float:
    """
    Ordinary least-squares slope of ``values`` against their index.

    Returns 0.0 for fewer than two values.
    """
    n = len(values)
    if n < 2:
        return 0.0

    y = np.asarray(values, dtype=float)
    x = np.arange(n, dtype=float)
    dx = x - x.mean()
    denominator = float(np.dot(dx, dx))
    if denominator == 0:
        return 0.0
    return float(np.dot(dx, y - y.mean()) / denominator)


def z_score(value: float, stats: FieldStats) -> float | None:
    """Absolute z-score of ``value``, or None when the spread is zero."""
    if stats.std <= 0:
        return None
    return abs((value - stats.mean) / stats.std)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
