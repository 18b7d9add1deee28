"""Tests for course type classification."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from golf_validation.models.course_type import (
    SOURCE_ANALYSIS,
    SOURCE_CONFIG,
    bucket_for_group,
    build_classification_roster,
    classify_course_type,
    count_by_course_type,
    resolve_course_type,
)
from golf_validation.models.metric_analysis import MetricAnalysis, MetricAnalysisEntry

WEIGHTS = {
    "Driving Performance": 0.1,
    "Putting": 0.1,
    "Approach - Short (<100)": 0.1,
}


def _entry(metric, delta):
    return MetricAnalysisEntry(metric=metric, top10_avg=delta, field_avg=0.0, delta=delta,
                               correlation=0.0, top10_count=10, field_count=50)


def test_bucket_for_group():
    assert bucket_for_group("Driving Performance") == "POWER"
    assert bucket_for_group("Approach - Mid (100-150)") == "TECHNICAL"
    assert bucket_for_group("Course Management") == "TECHNICAL"
    assert bucket_for_group("Scoring") == "BALANCED"
    assert bucket_for_group(None) is None


def test_power_wins_with_margin():
    result = classify_course_type([_entry("Driving Distance", 1.3), _entry("SG Putting", 1.0)], WEIGHTS)
    assert result.course_type == "POWER", f"scores={result.scores}"
    assert result.source == SOURCE_ANALYSIS


def test_inside_margin_is_balanced():
    result = classify_course_type([_entry("Driving Distance", 1.2), _entry("SG Putting", 1.0)], WEIGHTS)
    assert result.course_type == "BALANCED", f"scores={result.scores}"


def test_technical():
    result = classify_course_type([_entry("Approach <100 SG", 2.0), _entry("SG Putting", 0.5)], WEIGHTS)
    assert result.course_type == "TECHNICAL"


def test_no_signal_is_balanced():
    assert classify_course_type([], WEIGHTS).course_type == "BALANCED"
    result = classify_course_type([_entry("Driving Distance", 0.0)], WEIGHTS)
    assert result.course_type == "BALANCED"


def test_negative_delta_counts_by_magnitude():
    result = classify_course_type([_entry("Driving Distance", -2.0), _entry("SG Putting", 0.5)], WEIGHTS)
    assert result.course_type == "POWER"


def test_classification_is_pure():
    entries = [_entry("Driving Distance", 1.3), _entry("SG Putting", 1.0), _entry("Approach <100 SG", 0.4)]
    first = classify_course_type(entries, WEIGHTS)
    second = classify_course_type(list(entries), dict(WEIGHTS))
    assert first == second


def test_configured_type_wins():
    entries = [_entry("Driving Distance", 5.0)]
    result = resolve_course_type("technical", entries, WEIGHTS)
    assert result.course_type == "TECHNICAL"
    assert result.source == SOURCE_CONFIG
    assert resolve_course_type(None, entries, WEIGHTS).course_type == "POWER"


def test_roster_and_counts():
    analyses = [
        MetricAnalysis(tournament="genesis-invitational", event_id="7",
                       course_type="TECHNICAL", course_type_source=SOURCE_CONFIG),
        MetricAnalysis(tournament="wm-phoenix-open", course_type="POWER"),
        MetricAnalysis(tournament="no-type"),
    ]
    roster = build_classification_roster(analyses, season="2026")
    assert len(roster) == 2
    assert roster[0]["source"] == SOURCE_CONFIG
    assert roster[1]["source"] == SOURCE_ANALYSIS
    assert roster[0]["display_name"].endswith("(2026)")
    assert count_by_course_type(roster) == {"POWER": 1, "TECHNICAL": 1, "BALANCED": 0}
