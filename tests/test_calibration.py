"""Tests for the top-finisher calibration report."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from golf_validation.calibration import (
    NOTE_MISSED,
    NOTE_PARTIAL,
    NOTE_PERFECT,
    build_calibration,
    bucket_for_rank,
    merge_calibrations,
)
from golf_validation.feeds import PlayerPrediction, PlayerResult


def _preds(ranks):
    return [PlayerPrediction(pid, rank, name=pid.upper()) for pid, rank in ranks.items()]


def _results(finishes):
    return [PlayerResult(pid, pos, name=pid.upper()) for pid, pos in finishes.items()]


def test_bucket_for_rank():
    assert bucket_for_rank(1) == "Top 20"
    assert bucket_for_rank(20) == "Top 20"
    assert bucket_for_rank(21) == "Top 50"
    assert bucket_for_rank(51) == "Outside Top 50"


def test_single_event_counts():
    predictions = _preds({"a": 3, "b": 25, "c": 40, "d": 60, "e": 1})
    results = _results({"a": 1, "b": 2, "c": 7, "d": 9, "e": 30})
    cal = build_calibration("Genesis Invitational", predictions, results)

    record = cal.tournaments[0]
    assert [f.player_id for f in record.top_finishers] == ["a", "b", "c", "d"]
    assert record.top_finishers[0].miss_score == 2
    assert record.top_finishers[3].bucket == "Outside Top 50"

    assert cal.total_top5 == 2
    assert cal.predicted_top5_in_top20 == 1
    assert cal.total_top10 == 4
    assert cal.predicted_top10_in_top30 == 2
    assert cal.top5_ratio == 0.5
    assert record.note() == NOTE_PARTIAL
    assert record.top5_accuracy() == 50.0
    assert record.accuracy_metrics.predicted_within_top20_window == 3
    assert record.accuracy_metrics.avg_miss_top5 == 12.5


def test_unmatched_and_fallback_excluded():
    predictions = _preds({"a": 1})
    results = [
        PlayerResult("a", 1),
        PlayerResult("ghost", 2),
        PlayerResult("cut", 3, fallback_finish=True),
    ]
    cal = build_calibration("Test Open", predictions, results)
    record = cal.tournaments[0]
    assert len(record.top_finishers) == 1
    assert record.unmatched_top_finishers == 1
    assert cal.total_top5 == 1
    assert record.note() == NOTE_PERFECT


def test_notes():
    missed = build_calibration("x", _preds({"a": 80}), _results({"a": 1}))
    assert missed.tournaments[0].note() == NOTE_MISSED
    empty = build_calibration("x", _preds({"a": 1}), _results({"a": 8}))
    assert empty.tournaments[0].note() == "N/A"
    assert empty.tournaments[0].top5_accuracy() is None


def test_season_merge_weights_by_finisher_count():
    first = build_calibration("one", _preds({"a": 1, "b": 2}), _results({"a": 1, "b": 2}))
    second = build_calibration("two", _preds({"c": 90}), _results({"c": 1}))
    season = merge_calibrations([first, second])
    assert len(season.tournaments) == 2
    assert season.total_top5 == 3
    assert season.predicted_top5_in_top20 == 2
    assert abs(season.top5_ratio - 2 / 3) < 1e-12
    body = season.to_dict()
    assert body["tournaments"][1]["note"] == NOTE_MISSED


def test_empty_season_ratios_zero():
    season = merge_calibrations([])
    assert season.top5_ratio == 0.0
    assert season.top10_ratio == 0.0
