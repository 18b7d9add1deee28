"""
Metric correlation analyzer: how well each metric on its own predicted the finish.

Sign convention: lower-is-better metric values are negated and finish
positions are negated, so a positive correlation always means "more of the
good thing went with a better finish". Every metric asked for is returned,
with correlation 0 when there are too few samples or no variance.
"""

import logging
import math
from dataclasses import dataclass

from golf_validation import config
from golf_validation.metrics import is_lower_better
from golf_validation.stats.correlation import spearman

logger = logging.getLogger("stats.metric_correlation")


@dataclass(frozen=True)
class CorrelationResult:
    metric: str
    correlation: float
    sample_size: int
    strength: str = config.CORRELATION_STRENGTH_FLOOR
    # Un-flipped value correlation pointed the way the metric's direction expects
    direction_match: bool = False
    top_n_correlation: float = 0.0

    def to_dict(self) -> dict:
        return {
            "metric": self.metric,
            "correlation": self.correlation,
            "sample_size": self.sample_size,
            "strength": self.strength,
            "direction_match": self.direction_match,
            "top_n_correlation": self.top_n_correlation,
        }


def correlation_strength(correlation: float) -> str:
    """Strong > 0.3, Moderate > 0.2, Weak > 0.1 on |r|, else Very Weak."""
    magnitude = abs(correlation)
    for cutoff, label in config.CORRELATION_STRENGTH:
        if magnitude > cutoff:
            return label
    return config.CORRELATION_STRENGTH_FLOOR


def _is_usable(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def adjust_value(metric: str, value: float) -> float:
    """Flip lower-is-better values so bigger always means better."""
    return -value if is_lower_better(metric) else value


def compute_metric_correlation(metric: str, positions, values,
                               min_samples: int = config.MIN_METRIC_CORRELATION_SAMPLES) -> float:
    """Spearman between the sign-corrected metric and the negated finish position."""
    positions = list(positions)
    values = list(values)
    if len(positions) != len(values) or len(values) < max(min_samples, 1):
        return 0.0
    adjusted = [adjust_value(metric, v) for v in values]
    return spearman([-p for p in positions], adjusted, min_samples=min_samples)


def correlate_with_top_n(metric: str, positions, values,
                         top_n: int = config.TOP_N_SUCCESS,
                         min_samples: int = config.MIN_TOP_N_CORRELATION_SAMPLES) -> float:
    """Spearman between the sign-corrected metric and a finished-inside-top-N indicator."""
    positions = list(positions)
    values = list(values)
    if len(positions) != len(values) or len(values) < max(min_samples, 1):
        return 0.0
    success = [1.0 if p <= top_n else 0.0 for p in positions]
    adjusted = [adjust_value(metric, v) for v in values]
    return spearman(adjusted, success, min_samples=min_samples)


def collect_pairs(metric: str, results, player_ids=None) -> tuple[list[int], list[float]]:
    """(positions, values) for players with a finite value of `metric`."""
    positions, values = [], []
    for result in results:
        if player_ids is not None and result.player_id not in player_ids:
            continue
        value = result.metrics.get(metric)
        if not _is_usable(value):
            continue
        positions.append(result.finish_position)
        values.append(float(value))
    return positions, values


def analyze_metric(metric: str, positions, values,
                   min_samples: int = config.MIN_METRIC_CORRELATION_SAMPLES,
                   min_top_n_samples: int = config.MIN_TOP_N_CORRELATION_SAMPLES,
                   top_n: int = config.TOP_N_SUCCESS) -> CorrelationResult:
    positions = list(positions)
    values = list(values)
    correlation = compute_metric_correlation(metric, positions, values, min_samples)
    # Raw (un-flipped) correlation against "better finish"
    raw = (spearman([-p for p in positions], values, min_samples=min_samples)
           if len(values) >= max(min_samples, 1) else 0.0)
    expected_negative = is_lower_better(metric)
    return CorrelationResult(
        metric=metric,
        correlation=correlation,
        sample_size=len(values),
        strength=correlation_strength(correlation),
        direction_match=(raw < 0) if expected_negative else (raw > 0),
        top_n_correlation=correlate_with_top_n(metric, positions, values, top_n, min_top_n_samples),
    )


def analyze_metric_correlations(metrics, results, predictions=None,
                                min_samples: int = config.MIN_METRIC_CORRELATION_SAMPLES,
                                min_top_n_samples: int = config.MIN_TOP_N_CORRELATION_SAMPLES,
                                top_n: int = config.TOP_N_SUCCESS) -> list[CorrelationResult]:
    """
    One CorrelationResult per metric name, in the order given.

    When predictions are supplied only players present in both feeds count.
    """
    results = list(results)
    player_ids = None
    if predictions is not None:
        player_ids = {p.player_id for p in predictions}

    out = []
    for metric in metrics:
        positions, values = collect_pairs(metric, results, player_ids)
        out.append(analyze_metric(metric, positions, values, min_samples, min_top_n_samples, top_n))
        if len(values) < min_samples:
            logger.debug("%s: %d samples, correlation set to 0", metric, len(values))
    return out
