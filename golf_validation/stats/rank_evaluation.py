"""
Rank correlation evaluator: how well the pre-event ranking matched the finish.

Predictions and results are joined on player id; players in only one feed
are dropped. With no overlap every figure is 0 so season aggregation never
has to special-case an event.
"""

import logging
from dataclasses import dataclass, field

from golf_validation import config
from golf_validation.stats.correlation import rmse, spearman

logger = logging.getLogger("stats.rank_evaluation")


@dataclass(frozen=True)
class MatchedPlayer:
    player_id: str
    name: str
    predicted_rank: int
    finish_position: int


@dataclass(frozen=True)
class RankEvaluation:
    correlation: float
    rmse: float
    # window -> percent (0-100) of the N best predicted players finishing inside N
    hit_rates: dict
    matched_players: int
    predictions: int
    results: int
    players: list = field(default_factory=list)

    def hit_rate(self, window: int) -> float:
        return self.hit_rates.get(window, 0.0)

    def to_dict(self) -> dict:
        return {
            "correlation": self.correlation,
            "rmse": self.rmse,
            "hit_rates": {f"top{w}": v for w, v in self.hit_rates.items()},
            "matched_players": self.matched_players,
            "predictions": self.predictions,
            "results": self.results,
        }


def match_players(predictions, results) -> list[MatchedPlayer]:
    """Join on player id, ordered by predicted rank (then id for stability)."""
    by_id = {r.player_id: r for r in results}
    matched = []
    for pred in predictions:
        result = by_id.get(pred.player_id)
        if result is None:
            continue
        matched.append(MatchedPlayer(
            player_id=pred.player_id,
            name=pred.name or result.name,
            predicted_rank=pred.predicted_rank,
            finish_position=result.finish_position,
        ))
    matched.sort(key=lambda m: (m.predicted_rank, m.player_id))
    return matched


def hit_rate(matched: list[MatchedPlayer], window: int) -> float:
    """Percent of the `window` best-predicted matched players who finished <= window."""
    top = matched[:window]
    if not top:
        return 0.0
    hits = sum(1 for m in top if m.finish_position <= window)
    return hits / len(top) * 100.0


def evaluate_predictions(predictions, results,
                         min_samples: int = config.MIN_RANK_CORRELATION_SAMPLES,
                         windows=config.HIT_RATE_WINDOWS) -> RankEvaluation:
    """
    Compare predicted ranks to actual finishes.

    Returns Spearman correlation (min-rank ties), RMSE on raw positions and
    hit rates for each window.
    """
    predictions = list(predictions)
    results = list(results)
    matched = match_players(predictions, results)

    if not matched:
        logger.debug("No overlap between %d predictions and %d results", len(predictions), len(results))
        return RankEvaluation(
            correlation=0.0,
            rmse=0.0,
            hit_rates={w: 0.0 for w in windows},
            matched_players=0,
            predictions=len(predictions),
            results=len(results),
        )

    predicted = [m.predicted_rank for m in matched]
    actual = [m.finish_position for m in matched]
    return RankEvaluation(
        correlation=spearman(predicted, actual, min_samples=min_samples),
        rmse=rmse(predicted, actual),
        hit_rates={w: hit_rate(matched, w) for w in windows},
        matched_players=len(matched),
        predictions=len(predictions),
        results=len(results),
        players=matched,
    )
