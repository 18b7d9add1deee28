"""
Model bias trends: systematic error between the model's metric estimates and
what players actually produced.

Each result row may carry "<metric> - Model" next to "<metric>"; the delta
is model - actual. Per metric, across every event in the season:

  count, mean delta, mean |delta|, std dev (population)
  bias_z = |mean| / std   (std 0: 1 if mean != 0 else 0)
  over_pct / under_pct = share of deltas above / below zero

Status is STABLE when count >= 20 and bias_z <= 0.2, CHRONIC when
count >= 20 and bias_z >= 0.75, otherwise WATCH. Trends are rebuilt from
the feeds on every run.
"""

import logging
import math
from dataclasses import asdict, dataclass

from golf_validation import config
from golf_validation.stats.correlation import mean, population_std

logger = logging.getLogger("bias_trends")

STABLE = "STABLE"
WATCH = "WATCH"
CHRONIC = "CHRONIC"


@dataclass(frozen=True)
class BiasTrendEntry:
    metric: str
    sample_count: int
    mean_delta: float
    mean_abs_delta: float
    std_dev: float
    bias_z: float
    over_pct: float
    under_pct: float
    status: str

    def to_dict(self) -> dict:
        return asdict(self)


def compute_bias_z(mean_delta: float, std_dev: float) -> float:
    if std_dev > 0:
        return abs(mean_delta) / std_dev
    return 1.0 if mean_delta != 0 else 0.0


def classify_bias(count: int, bias_z: float,
                  min_samples: int = config.BIAS_MIN_SAMPLES,
                  stable_z: float = config.BIAS_STABLE_Z,
                  chronic_z: float = config.BIAS_CHRONIC_Z) -> str:
    if count >= min_samples and bias_z >= chronic_z:
        return CHRONIC
    if count >= min_samples and bias_z <= stable_z:
        return STABLE
    return WATCH


def summarize_deltas(metric: str, deltas, min_samples: int = config.BIAS_MIN_SAMPLES,
                     stable_z: float = config.BIAS_STABLE_Z,
                     chronic_z: float = config.BIAS_CHRONIC_Z):
    """BiasTrendEntry for one metric, or None when there are no usable deltas."""
    values = [float(d) for d in deltas if isinstance(d, (int, float)) and math.isfinite(d)]
    count = len(values)
    if not count:
        return None
    m = mean(values)
    std = population_std(values)
    bias_z = compute_bias_z(m, std)
    return BiasTrendEntry(
        metric=metric,
        sample_count=count,
        mean_delta=m,
        mean_abs_delta=mean([abs(v) for v in values]),
        std_dev=std,
        bias_z=bias_z,
        over_pct=sum(1 for v in values if v > 0) / count * 100.0,
        under_pct=sum(1 for v in values if v < 0) / count * 100.0,
        status=classify_bias(count, bias_z, min_samples, stable_z, chronic_z),
    )


def extract_model_deltas(results) -> dict[str, list[float]]:
    """
    metric -> [model - actual] for one event.

    Players whose finish came from the missing-finish fallback are skipped,
    as are pairs missing either side.
    """
    deltas: dict[str, list[float]] = {}
    for result in results:
        if getattr(result, "fallback_finish", False):
            continue
        for metric, model_value in result.model_metrics.items():
            actual = result.metrics.get(metric)
            if actual is None or model_value is None:
                continue
            deltas.setdefault(metric, []).append(model_value - actual)
    return deltas


class BiasTrendTracker:
    """Collects per-event deltas, then summarises them in one pass."""

    def __init__(self, min_samples: int = config.BIAS_MIN_SAMPLES,
                 stable_z: float = config.BIAS_STABLE_Z,
                 chronic_z: float = config.BIAS_CHRONIC_Z):
        self.min_samples = min_samples
        self.stable_z = stable_z
        self.chronic_z = chronic_z
        self._deltas: dict[str, list[float]] = {}
        self.tournament_count = 0

    def add_event(self, results) -> int:
        """Add one event's result feed. Returns the number of deltas added."""
        added = 0
        event_deltas = extract_model_deltas(results)
        for metric, values in event_deltas.items():
            self.add_deltas(metric, values)
            added += len(values)
        if event_deltas:
            self.tournament_count += 1
        return added

    def add_deltas(self, metric: str, deltas):
        self._deltas.setdefault(metric, []).extend(deltas)

    @property
    def total_samples(self) -> int:
        return sum(len(v) for v in self._deltas.values())

    def entries(self) -> list[BiasTrendEntry]:
        """Every metric with samples, most biased first."""
        out = []
        for metric, deltas in self._deltas.items():
            entry = summarize_deltas(metric, deltas, self.min_samples, self.stable_z, self.chronic_z)
            if entry is not None:
                out.append(entry)
        chronic = [e.metric for e in out if e.status == CHRONIC]
        if chronic:
            logger.debug("Chronic model bias: %s", ", ".join(sorted(chronic)))
        return sorted(out, key=lambda e: (-e.bias_z, e.metric))
