"""
Metric group stability across seasons.

For each metric group, the mean metric correlation per season. With at least
two seasons:

    cv        = std / |mean|   (0 when |mean| <= 0.001)
    stability = max(0, 1 - cv)

HIGH >= 0.70, MEDIUM >= 0.40, else LOW. Groups seen in fewer seasons get
stability 0.
"""

from dataclasses import dataclass, field

from golf_validation import config
from golf_validation.metrics import get_metric_group
from golf_validation.stats.correlation import mean, population_std

HIGH = "HIGH"
MEDIUM = "MEDIUM"
LOW = "LOW"


@dataclass(frozen=True)
class GroupStability:
    group: str
    correlations: dict = field(default_factory=dict)  # season -> mean correlation
    mean: float = 0.0
    std_dev: float = 0.0
    stability: float = 0.0
    count: int = 0
    level: str = LOW


def season_group_correlations(analyses) -> dict[str, float]:
    """Group -> mean correlation over every metric entry with samples."""
    buckets: dict[str, list[float]] = {}
    for analysis in analyses:
        for entry in analysis.metrics:
            group = get_metric_group(entry.metric)
            if not group or entry.field_count <= 0:
                continue
            buckets.setdefault(group, []).append(entry.correlation)
    return {group: mean(values) for group, values in buckets.items()}


def stability_level(score: float, high: float = config.STABILITY_HIGH,
                    moderate: float = config.STABILITY_MODERATE) -> str:
    if score >= high:
        return HIGH
    if score >= moderate:
        return MEDIUM
    return LOW


def analyze_stability(analyses_by_season: dict, high: float = config.STABILITY_HIGH,
                      moderate: float = config.STABILITY_MODERATE) -> list[GroupStability]:
    """Stability per group, most stable first."""
    per_season = {
        str(season): season_group_correlations(analyses)
        for season, analyses in sorted(analyses_by_season.items(), key=lambda kv: str(kv[0]))
    }
    groups = sorted({g for correlations in per_season.values() for g in correlations})

    out = []
    for group in groups:
        series = {s: c[group] for s, c in per_season.items() if group in c}
        values = list(series.values())
        if len(values) < config.STABILITY_MIN_SEASONS:
            out.append(GroupStability(group=group, correlations=series, count=len(values)))
            continue
        m = mean(values)
        std = population_std(values)
        cv = std / abs(m) if abs(m) > config.STABILITY_MEAN_EPSILON else 0.0
        score = max(0.0, 1.0 - cv)
        out.append(GroupStability(
            group=group,
            correlations=series,
            mean=m,
            std_dev=std,
            stability=score,
            count=len(values),
            level=stability_level(score, high, moderate),
        ))
    return sorted(out, key=lambda g: (-g.stability, g.group))
