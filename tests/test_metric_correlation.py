"""Tests for per-metric correlation with finish position."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from golf_validation.feeds import PlayerPrediction, PlayerResult
from golf_validation.stats.metric_correlation import (
    analyze_metric,
    analyze_metric_correlations,
    compute_metric_correlation,
    correlate_with_top_n,
    correlation_strength,
)


def test_lower_is_better_sign_convention():
    """Rough Proximity 5/10/15 for finishes 1/2/3: closer proximity, better finish."""
    corr = compute_metric_correlation("Rough Proximity", [1, 2, 3], [5, 10, 15])
    assert corr > 0.99, f"Expected ~1.0 after sign flip, got {corr}"


def test_higher_is_better_metric():
    corr = compute_metric_correlation("SG Putting", [1, 2, 3, 4], [2.0, 1.0, 0.5, -1.0])
    assert corr == 1.0


def test_below_threshold_is_exactly_zero():
    corr = compute_metric_correlation("SG Putting", [1, 2], [2.0, 1.0])
    assert corr == 0.0
    assert corr is not None


def test_zero_variance_is_zero():
    corr = compute_metric_correlation("SG Putting", [1, 2, 3, 4], [1.0, 1.0, 1.0, 1.0])
    assert corr == 0.0


def test_top_n_needs_five_samples():
    assert correlate_with_top_n("SG Putting", [1, 2, 11, 12], [3.0, 2.0, 1.0, 0.0]) == 0.0
    corr = correlate_with_top_n("SG Putting", [1, 2, 11, 12, 13], [3.0, 2.0, 1.0, 0.0, -1.0])
    assert corr > 0.5, f"Top finishers had the best values, got {corr}"


def test_strength_labels():
    assert correlation_strength(0.35) == "Strong"
    assert correlation_strength(-0.25) == "Moderate"
    assert correlation_strength(0.15) == "Weak"
    assert correlation_strength(0.1) == "Very Weak"
    assert correlation_strength(0.0) == "Very Weak"


def test_direction_match_for_lower_is_better():
    result = analyze_metric("Scoring Average", [1, 2, 3, 4], [68.0, 69.0, 70.0, 71.0])
    assert result.direction_match is True
    assert result.correlation == 1.0


def test_direction_mismatch_flagged():
    result = analyze_metric("Driving Distance", [1, 2, 3, 4], [280.0, 290.0, 300.0, 310.0])
    assert result.direction_match is False
    assert result.correlation == -1.0


def test_every_metric_emitted():
    results = [
        PlayerResult("a", 1, metrics={"SG Putting": 1.5}),
        PlayerResult("b", 2, metrics={"SG Putting": 1.0}),
        PlayerResult("c", 3, metrics={"SG Putting": 0.2, "SG OTT": 0.3}),
    ]
    out = analyze_metric_correlations(["SG Putting", "SG OTT", "Driving Distance"], results)
    assert [r.metric for r in out] == ["SG Putting", "SG OTT", "Driving Distance"]
    by_name = {r.metric: r for r in out}
    assert by_name["SG Putting"].sample_size == 3
    assert by_name["SG OTT"].correlation == 0.0
    assert by_name["Driving Distance"].sample_size == 0


def test_unmatched_players_excluded():
    results = [
        PlayerResult("a", 1, metrics={"SG Putting": 1.5}),
        PlayerResult("b", 2, metrics={"SG Putting": 1.0}),
        PlayerResult("c", 3, metrics={"SG Putting": 0.2}),
        PlayerResult("z", 50, metrics={"SG Putting": 9.0}),
    ]
    predictions = [PlayerPrediction(pid, i + 1) for i, pid in enumerate(["a", "b", "c"])]
    out = analyze_metric_correlations(["SG Putting"], results, predictions)
    assert out[0].sample_size == 3
    assert out[0].correlation == 1.0


def test_non_finite_values_skipped():
    results = [
        PlayerResult("a", 1, metrics={"SG Putting": 1.5}),
        PlayerResult("b", 2, metrics={"SG Putting": float("nan")}),
        PlayerResult("c", 3, metrics={"SG Putting": 0.2}),
    ]
    out = analyze_metric_correlations(["SG Putting"], results)
    assert out[0].sample_size == 2
    assert out[0].correlation == 0.0
