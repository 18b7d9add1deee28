"""
Course type classification (POWER / TECHNICAL / BALANCED).

Takes the metrics with the largest |delta| between top-10 finishers and the
field, weights each by its group's share in the BALANCED template and adds
it to a bucket:

  Driving Performance                      -> POWER
  Approach groups, Course Management        -> TECHNICAL
  Putting, Around the Green, Scoring        -> BALANCED

The top bucket wins only if it beats the runner-up by the margin
(1.25x by default); otherwise, or with no signal at all, the event is BALANCED.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from golf_validation import config
from golf_validation.feeds import display_tournament_name
from golf_validation.metrics import get_metric_group

SOURCE_CONFIG = "config"
SOURCE_ANALYSIS = "metric_analysis"


@dataclass(frozen=True)
class CourseTypeClassification:
    course_type: str
    source: str
    scores: Optional[dict] = None


def bucket_for_group(group: Optional[str]) -> Optional[str]:
    if not group:
        return None
    if group == "Driving Performance":
        return "POWER"
    if group.startswith("Approach") or group == "Course Management":
        return "TECHNICAL"
    if group in ("Putting", "Around the Green", "Scoring"):
        return "BALANCED"
    return None


def score_course_types(entries, group_weights: Mapping[str, float],
                       top_metrics: int = config.COURSE_TYPE_TOP_METRICS) -> dict[str, float]:
    """Bucket scores: sum of group weight x |delta| over the top metrics by |delta|."""
    scores = {course_type: 0.0 for course_type in config.COURSE_TYPES}
    ranked = sorted(entries, key=lambda e: -abs(e.delta or 0.0))[:top_metrics]
    for entry in ranked:
        strength = abs(entry.delta or 0.0)
        bucket = bucket_for_group(get_metric_group(entry.metric))
        if bucket is None or strength == 0:
            continue
        scores[bucket] += group_weights.get(get_metric_group(entry.metric), 0.0) * strength
    return scores


def classify_course_type(entries, group_weights: Mapping[str, float],
                         top_metrics: int = config.COURSE_TYPE_TOP_METRICS,
                         margin: float = config.COURSE_TYPE_MARGIN) -> CourseTypeClassification:
    """Pure function of the metric entries and the reference group weights."""
    scores = score_course_types(entries, group_weights, top_metrics)
    label = config.DEFAULT_COURSE_TYPE
    if any(v > 0 for v in scores.values()):
        # Stable sort keeps POWER, TECHNICAL, BALANCED order on equal scores
        ranked = sorted(scores.items(), key=lambda kv: -kv[1])
        (top_type, top_score), (_, second_score) = ranked[0], ranked[1]
        if top_score >= second_score * margin:
            label = top_type
    return CourseTypeClassification(course_type=label, source=SOURCE_ANALYSIS, scores=scores)


def resolve_course_type(configured: Optional[str], entries, group_weights,
                        top_metrics: int = config.COURSE_TYPE_TOP_METRICS,
                        margin: float = config.COURSE_TYPE_MARGIN) -> CourseTypeClassification:
    """A configured course type wins over the classifier."""
    if configured and str(configured).upper() in config.COURSE_TYPES:
        return CourseTypeClassification(course_type=str(configured).upper(), source=SOURCE_CONFIG)
    return classify_course_type(entries, group_weights, top_metrics, margin)


def build_classification_roster(analyses, season=None) -> list[dict]:
    """One entry per analysed event that has a course type."""
    roster = []
    for analysis in analyses:
        if not analysis.tournament or not analysis.course_type:
            continue
        name = display_tournament_name(analysis.tournament)
        roster.append({
            "tournament": analysis.tournament,
            "display_name": f"{name} ({season})" if season else name,
            "event_id": analysis.event_id,
            "course_type": analysis.course_type,
            "source": analysis.course_type_source or SOURCE_ANALYSIS,
        })
    return roster


def count_by_course_type(roster) -> dict[str, int]:
    counts = {course_type: 0 for course_type in config.COURSE_TYPES}
    for entry in roster:
        if entry["course_type"] in counts:
            counts[entry["course_type"]] += 1
    return counts
