"""
Per-event metric analysis and season correlation summaries.

For each metric the analysis compares the top-10 finishers' average with
the field average (delta = top10 - field) and records the metric's
correlation with finish position. Metric values are rounded before
aggregation so a rerun on unchanged feeds produces identical numbers.

The MetricAnalysis payload is the artifact persisted by db.py and re-read
to decide whether an event needs recomputing.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

from golf_validation import config
from golf_validation.config_loader import ValidationSettings
from golf_validation.metrics import metric_sort_key
from golf_validation.stats.correlation import mean
from golf_validation.stats.metric_correlation import analyze_metric

logger = logging.getLogger("models.metric_analysis")


@dataclass(frozen=True)
class MetricAnalysisEntry:
    metric: str
    top10_avg: float
    field_avg: float
    delta: float
    correlation: float
    top10_count: int
    field_count: int
    top10_correlation: float = 0.0
    strength: str = config.CORRELATION_STRENGTH_FLOOR
    direction_match: bool = False


@dataclass
class MetricAnalysis:
    tournament: str
    metrics: list = field(default_factory=list)
    season: Optional[str] = None
    event_id: Optional[str] = None
    course_type: Optional[str] = None
    course_type_source: Optional[str] = None
    top10_finishers: int = 0
    total_finishers: int = 0
    generated_at: str = ""
    version: int = config.METRIC_ANALYSIS_VERSION

    def to_dict(self) -> dict:
        data = asdict(self)
        data["metrics"] = [asdict(m) for m in self.metrics]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "MetricAnalysis":
        known = {f for f in MetricAnalysisEntry.__dataclass_fields__}
        metrics = [
            MetricAnalysisEntry(**{k: v for k, v in m.items() if k in known})
            for m in data.get("metrics") or []
        ]
        return cls(
            tournament=data.get("tournament") or "",
            metrics=metrics,
            season=data.get("season"),
            event_id=data.get("event_id"),
            course_type=data.get("course_type"),
            course_type_source=data.get("course_type_source"),
            top10_finishers=int(data.get("top10_finishers") or 0),
            total_finishers=int(data.get("total_finishers") or 0),
            generated_at=data.get("generated_at") or "",
            version=int(data.get("version") or 0),
        )


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def round_metric_value(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return round(number, config.METRIC_VALUE_DECIMALS)


def collect_metric_names(predictions, results) -> list[str]:
    """Every metric seen on either feed, in canonical order."""
    names = set()
    for r in results:
        names.update(r.metrics)
    for p in predictions:
        names.update(p.metrics)
    return sorted(names, key=metric_sort_key)


def build_metric_analysis(predictions, results, tournament: str,
                          season=None, event_id=None,
                          settings: ValidationSettings = None,
                          metrics: list[str] = None) -> MetricAnalysis:
    """
    Build the MetricAnalysis for one event.

    Only players on both feeds count. A metric's value comes from the result
    feed, falling back to the rankings sheet. course_type is left for the
    caller to fill in (configured or classified).
    """
    settings = settings or ValidationSettings()
    predictions = list(predictions)
    results = list(results)
    metric_names = metrics if metrics is not None else collect_metric_names(predictions, results)

    results_by_id = {r.player_id: r for r in results}
    matched = []
    for pred in predictions:
        result = results_by_id.get(pred.player_id)
        if result is not None:
            matched.append((pred, result))

    top_cut = settings.top_n_success
    entries = []
    for metric in metric_names:
        values, positions, top_values = [], [], []
        for pred, result in matched:
            raw = result.metrics.get(metric)
            if raw is None:
                raw = pred.metrics.get(metric)
            value = round_metric_value(raw)
            if value is None:
                continue
            values.append(value)
            positions.append(result.finish_position)
            if result.finish_position <= top_cut:
                top_values.append(value)

        corr = analyze_metric(
            metric, positions, values,
            min_samples=settings.min_metric_samples,
            min_top_n_samples=settings.min_top_n_samples,
            top_n=top_cut,
        )
        field_avg = mean(values)
        top10_avg = mean(top_values)
        entries.append(MetricAnalysisEntry(
            metric=metric,
            top10_avg=top10_avg,
            field_avg=field_avg,
            delta=top10_avg - field_avg,
            correlation=corr.correlation,
            top10_count=len(top_values),
            field_count=len(values),
            top10_correlation=corr.top_n_correlation,
            strength=corr.strength,
            direction_match=corr.direction_match,
        ))

    finishers = [r for _, r in matched]
    logger.debug("Metric analysis for %s: %d metrics over %d players", tournament, len(entries), len(finishers))
    return MetricAnalysis(
        tournament=tournament,
        metrics=entries,
        season=None if season is None else str(season),
        event_id=None if event_id is None else str(event_id),
        top10_finishers=sum(1 for r in finishers if r.finish_position <= top_cut),
        total_finishers=len(finishers),
        generated_at=utc_now_iso(),
    )


# ── Season summaries ────────────────────────────────────────────────

@dataclass(frozen=True)
class CorrelationSummaryEntry:
    metric: str
    avg_delta: float
    avg_correlation: float
    samples: int


def build_correlation_summary(analyses) -> list[CorrelationSummaryEntry]:
    """Average delta and correlation per metric across analyses, canonical order."""
    sums: dict[str, list] = {}
    for analysis in analyses:
        for entry in analysis.metrics:
            record = sums.setdefault(entry.metric, [0.0, 0.0, 0])
            record[0] += entry.delta or 0.0
            record[1] += entry.correlation or 0.0
            record[2] += 1

    summary = [
        CorrelationSummaryEntry(
            metric=metric,
            avg_delta=delta_sum / count if count else 0.0,
            avg_correlation=corr_sum / count if count else 0.0,
            samples=count,
        )
        for metric, (delta_sum, corr_sum, count) in sums.items()
    ]
    return sorted(summary, key=lambda e: metric_sort_key(e.metric))


def group_by_course_type(analyses) -> dict[str, list]:
    """Course type -> analyses, for every known type (empty list when none)."""
    grouped = {course_type: [] for course_type in config.COURSE_TYPES}
    for analysis in analyses:
        course_type = (analysis.course_type or "").upper()
        if course_type in grouped:
            grouped[course_type].append(analysis)
    return grouped


def build_correlation_summaries(analyses) -> dict[str, list[CorrelationSummaryEntry]]:
    return {ct: build_correlation_summary(group) for ct, group in group_by_course_type(analyses).items()}
