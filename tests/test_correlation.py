"""Tests for correlation primitives and the rank correlation evaluator."""

import math
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from golf_validation.feeds import PlayerPrediction, PlayerResult
from golf_validation.stats.correlation import pearson, population_std, rank_values, rmse, spearman
from golf_validation.stats.rank_evaluation import evaluate_predictions, hit_rate, match_players


def _preds(pairs):
    return [PlayerPrediction(player_id=pid, predicted_rank=rank, name=pid) for pid, rank in pairs]


def _results(pairs):
    return [PlayerResult(player_id=pid, finish_position=pos, name=pid) for pid, pos in pairs]


# ── Primitives ──────────────────────────────────────────────────────

def test_rank_values_min_ties():
    """Ties share the rank of their first occurrence."""
    assert rank_values([10, 20, 20, 30]) == [1, 2, 2, 4]
    assert rank_values([3, 1, 2]) == [3, 1, 2]


def test_rank_values_all_equal():
    assert rank_values([5, 5, 5]) == [1, 1, 1]


def test_pearson_zero_variance_is_zero():
    assert pearson([1, 1, 1], [1, 2, 3]) == 0.0


def test_pearson_mismatched_lengths_is_zero():
    assert pearson([1, 2], [1, 2, 3]) == 0.0


def test_pearson_perfect_negative():
    assert pearson([1, 2, 3], [3, 2, 1]) == -1.0


def test_spearman_below_min_samples_is_zero():
    assert spearman([1], [1], min_samples=2) == 0.0
    assert spearman([1, 2], [1, 2], min_samples=3) == 0.0


def test_spearman_monotonic_nonlinear():
    """Spearman only cares about order."""
    assert spearman([1, 2, 3, 4], [1, 4, 9, 100]) == 1.0


def test_rmse_raw_values():
    assert rmse([1, 2, 3], [1, 2, 3]) == 0.0
    assert math.isclose(rmse([1, 2], [3, 4]), 2.0)


def test_rmse_empty_is_zero():
    assert rmse([], []) == 0.0


def test_population_std():
    assert math.isclose(population_std([2, 4, 4, 4, 5, 5, 7, 9]), 2.0)


# ── Rank correlation evaluator ──────────────────────────────────────

def test_perfect_prediction_scenario():
    """Predicted rank == finish for A, B, C: r = 1, RMSE 0, all hit."""
    ev = evaluate_predictions(_preds([("A", 1), ("B", 2), ("C", 3)]),
                              _results([("A", 1), ("B", 2), ("C", 3)]))
    assert ev.correlation == 1.0, f"Expected 1.0, got {ev.correlation}"
    assert ev.rmse == 0.0
    assert ev.hit_rate(5) == 100.0
    assert ev.matched_players == 3


def test_no_overlap_returns_zeros():
    ev = evaluate_predictions(_preds([("A", 1), ("B", 2)]), _results([("X", 1), ("Y", 2)]))
    assert ev.correlation == 0.0
    assert ev.rmse == 0.0
    assert all(v == 0.0 for v in ev.hit_rates.values())
    assert ev.matched_players == 0


def test_partial_overlap_drops_unmatched():
    ev = evaluate_predictions(
        _preds([("A", 1), ("B", 2), ("C", 3), ("D", 4)]),
        _results([("A", 2), ("B", 1), ("E", 3)]),
    )
    assert ev.matched_players == 2
    assert ev.predictions == 4
    assert ev.results == 3
    assert ev.correlation == -1.0


def test_single_match_below_threshold():
    ev = evaluate_predictions(_preds([("A", 1)]), _results([("A", 7)]))
    assert ev.correlation == 0.0
    assert ev.rmse == 6.0


def test_hit_rate_uses_best_predicted():
    matched = match_players(
        _preds([("A", 1), ("B", 2), ("C", 3), ("D", 4), ("E", 5), ("F", 6)]),
        _results([("A", 1), ("B", 30), ("C", 4), ("D", 2), ("E", 50), ("F", 3)]),
    )
    # Top 5 predicted: A, B, C, D, E; finished <= 5: A, C, D
    assert math.isclose(hit_rate(matched, 5), 60.0)


def test_reversed_prediction_is_negative_one():
    ev = evaluate_predictions(
        _preds([("A", 1), ("B", 2), ("C", 3), ("D", 4)]),
        _results([("A", 4), ("B", 3), ("C", 2), ("D", 1)]),
    )
    assert ev.correlation == -1.0
