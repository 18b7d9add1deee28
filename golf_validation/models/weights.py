"""
Weight recommendation engine.

Within each template group, every metric's share of the group budget is
proportional to |correlation|:

    base_i        = |corr_i| / max_j |corr_j|
    recommended_i = base_i / sum_k base_k

A group with no correlation signal gets 0 for every metric rather than an
equal split. Recommendations never cross groups: the group budgets stay as
the template sets them.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Mapping, Union

from golf_validation import config
from golf_validation.metrics import get_definition, normalize_metric_name
from golf_validation.templates import WeightTemplate

logger = logging.getLogger("models.weights")


@dataclass(frozen=True)
class WeightRecommendation:
    metric: str
    group: str
    template_weight: float
    recommended_weight: float
    correlation: float
    gap: float
    # gap / template_weight, or "N/A" when the template weight is 0
    pct_change: Union[float, str]
    group_weight: float = 0.0
    invert: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def correlation_map(entries) -> dict[str, float]:
    """metric -> correlation from summary entries (avg_correlation) or plain results."""
    out = {}
    for entry in entries:
        value = getattr(entry, "avg_correlation", None)
        if value is None:
            value = getattr(entry, "correlation", 0.0)
        out[normalize_metric_name(entry.metric)] = value or 0.0
    return out


def group_shares(correlations: Mapping[str, float]) -> dict[str, float]:
    """Proportional-to-|correlation| shares for one group's metrics."""
    magnitudes = {m: abs(c or 0.0) for m, c in correlations.items()}
    max_abs = max(magnitudes.values(), default=0.0)
    if max_abs <= 0:
        return {m: 0.0 for m in magnitudes}
    bases = {m: v / max_abs for m, v in magnitudes.items()}
    total = sum(bases.values())
    return {m: b / total for m, b in bases.items()}


def percent_change(gap: float, template_weight: float) -> Union[float, str]:
    if template_weight == 0:
        return config.NOT_APPLICABLE
    return gap / template_weight


def recommend_weights(correlations: Mapping[str, float], template: WeightTemplate) -> list[WeightRecommendation]:
    """One recommendation per metric in the template, in template order."""
    recommendations = []
    for group, metric_weights in template.metric_weights.items():
        group_corr = {m: correlations.get(m, 0.0) for m in metric_weights}
        shares = group_shares(group_corr)
        for metric, template_weight in metric_weights.items():
            recommended = shares[metric]
            gap = recommended - template_weight
            recommendations.append(WeightRecommendation(
                metric=metric,
                group=group,
                template_weight=template_weight,
                recommended_weight=recommended,
                correlation=group_corr[metric],
                gap=gap,
                pct_change=percent_change(gap, template_weight),
                group_weight=template.group_weight(group),
                invert=metric in template.inverted or get_definition(metric).invert,
            ))
    return recommendations


def recommend_from_summary(summary, template: WeightTemplate) -> list[WeightRecommendation]:
    return recommend_weights(correlation_map(summary), template)


def group_totals(recommendations) -> dict[str, float]:
    totals: dict[str, float] = {}
    for rec in recommendations:
        totals[rec.group] = totals.get(rec.group, 0.0) + rec.recommended_weight
    return totals


def build_weight_guide(summaries: Mapping[str, list], store, type_counts: Mapping[str, int] = None) -> dict:
    """
    Course type -> {tournaments, recommendations} for every type with a template.
    """
    type_counts = type_counts or {}
    guide = {}
    for course_type in config.COURSE_TYPES:
        if not store.has(course_type):
            logger.warning("No template for %s; skipped in weight guide", course_type,
                           extra={"course_type": course_type})
            continue
        recs = recommend_from_summary(summaries.get(course_type, []), store.get(course_type))
        guide[course_type] = {
            "tournaments": type_counts.get(course_type, 0),
            "recommendations": recs,
        }
    return guide
