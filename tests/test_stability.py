"""Tests for cross-season metric group stability."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from golf_validation.models.metric_analysis import MetricAnalysis, MetricAnalysisEntry
from golf_validation.models.stability import HIGH, LOW, MEDIUM, analyze_stability, stability_level


def _analysis(correlations):
    return MetricAnalysis(
        tournament="event",
        metrics=[
            MetricAnalysisEntry(metric=m, top10_avg=0.0, field_avg=0.0, delta=0.0,
                                correlation=c, top10_count=10, field_count=50)
            for m, c in correlations.items()
        ],
    )


def test_levels():
    assert stability_level(0.7) == HIGH
    assert stability_level(0.5) == MEDIUM
    assert stability_level(0.1) == LOW


def test_consistent_group_is_stable():
    by_season = {
        "2025": [_analysis({"SG Putting": 0.3})],
        "2026": [_analysis({"SG Putting": 0.3})],
    }
    (putting,) = analyze_stability(by_season)
    assert putting.group == "Putting"
    assert putting.stability == 1.0
    assert putting.level == HIGH
    assert putting.count == 2


def test_sign_flip_is_unstable():
    by_season = {
        "2025": [_analysis({"SG Putting": 0.3, "Driving Distance": 0.2})],
        "2026": [_analysis({"SG Putting": 0.3, "Driving Distance": -0.1})],
    }
    out = analyze_stability(by_season)
    assert [g.group for g in out] == ["Putting", "Driving Performance"]
    driving = out[1]
    assert driving.stability == 0.0
    assert driving.level == LOW


def test_single_season_scores_zero():
    (putting,) = analyze_stability({"2026": [_analysis({"SG Putting": 0.3})]})
    assert putting.count == 1
    assert putting.stability == 0.0
    assert putting.level == LOW
