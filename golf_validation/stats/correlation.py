"""
Correlation primitives.

Ranks use "min" tie-breaking: tied values share the rank of their first
occurrence in ascending order (10, 20, 20, 30 -> 1, 2, 2, 4). Spearman is
Pearson on those ranks. Every function returns 0.0 rather than NaN when the
input is too small or has no variance, so callers can aggregate freely.
"""

import math
from typing import Sequence


def rank_values(values: Sequence[float]) -> list[int]:
    """Assign 1-based ranks in ascending order, ties take the lowest rank."""
    order = sorted(range(len(values)), key=lambda i: values[i])
    ranks = [0] * len(values)
    current = 1
    for pos, idx in enumerate(order):
        if pos > 0 and values[idx] != values[order[pos - 1]]:
            current = pos + 1
        ranks[idx] = current
    return ranks


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def population_std(values: Sequence[float]) -> float:
    """Standard deviation over the whole field (divide by n)."""
    if not values:
        return 0.0
    m = mean(values)
    return math.sqrt(sum((v - m) ** 2 for v in values) / len(values))


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson r. 0.0 for empty, mismatched or zero-variance input."""
    n = len(x)
    if n == 0 or n != len(y):
        return 0.0
    mean_x = mean(x)
    mean_y = mean(y)
    num = 0.0
    den_x = 0.0
    den_y = 0.0
    for xi, yi in zip(x, y):
        dx = xi - mean_x
        dy = yi - mean_y
        num += dx * dy
        den_x += dx * dx
        den_y += dy * dy
    den = math.sqrt(den_x * den_y)
    if den == 0:
        return 0.0
    # Clamp float noise so perfect agreement reads exactly 1.0
    return max(-1.0, min(1.0, num / den))


def spearman(x: Sequence[float], y: Sequence[float], min_samples: int = 2) -> float:
    """Spearman rank correlation; 0.0 below min_samples."""
    if len(x) != len(y) or len(x) < max(min_samples, 1):
        return 0.0
    return pearson(rank_values(x), rank_values(y))


def rmse(predicted: Sequence[float], actual: Sequence[float]) -> float:
    """Root mean squared error on raw values; 0.0 for empty or mismatched input."""
    if not predicted or len(predicted) != len(actual):
        return 0.0
    return math.sqrt(sum((p - a) ** 2 for p, a in zip(predicted, actual)) / len(predicted))
