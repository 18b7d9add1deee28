"""
Z-score normalizer for one event's field.

z = (value - mean) / std over the players with a value (population std).
z_adj flips the sign for lower-is-better metrics so positive always means
better than the field. A metric with std 0 yields no z-scores at all.
"""

import math
from dataclasses import dataclass

from golf_validation.metrics import is_lower_better
from golf_validation.stats.correlation import mean, population_std


@dataclass(frozen=True)
class MetricStats:
    metric: str
    mean: float
    std: float
    count: int


@dataclass(frozen=True)
class ZScore:
    player_id: str
    metric: str
    value: float
    z: float
    z_adj: float


def _finite(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def metric_stats(metric: str, values) -> MetricStats:
    usable = [float(v) for v in values if _finite(v)]
    return MetricStats(metric=metric, mean=mean(usable), std=population_std(usable), count=len(usable))


def zscores_for_metric(metric: str, values_by_player: dict) -> dict[str, ZScore]:
    """player_id -> ZScore; empty when the field has no spread."""
    usable = {pid: float(v) for pid, v in values_by_player.items() if _finite(v)}
    stats = metric_stats(metric, usable.values())
    if stats.count == 0 or stats.std == 0:
        return {}
    flip = -1.0 if is_lower_better(metric) else 1.0
    out = {}
    for pid, value in usable.items():
        z = (value - stats.mean) / stats.std
        out[pid] = ZScore(player_id=pid, metric=metric, value=value, z=z, z_adj=z * flip)
    return out


def build_zscore_table(results, metrics) -> dict[str, dict[str, ZScore]]:
    """player_id -> metric -> ZScore, over the metrics' actual values in the result feed."""
    table: dict[str, dict[str, ZScore]] = {r.player_id: {} for r in results}
    for metric in metrics:
        values = {r.player_id: r.metrics.get(metric) for r in results}
        for pid, score in zscores_for_metric(metric, values).items():
            table[pid][metric] = score
    return table


def field_stats(results, metrics) -> list[MetricStats]:
    return [metric_stats(m, [r.metrics.get(m) for r in results]) for m in metrics]
