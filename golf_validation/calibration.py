"""
Calibration report: where did the model rank the players who actually
finished in the top 10?

Per event, each top-10 finisher on both feeds gets their predicted rank,
a miss score |predicted - actual| and a bucket (predicted inside 20 /
inside 50 / outside). Headline ratios are top-5 finishers predicted inside
the top 20 and top-10 finishers predicted inside the top 30.

Season aggregation concatenates the per-event lists and sums the counts,
so events with more qualifying finishers carry more weight.
"""

import logging
from dataclasses import asdict, dataclass, field

from golf_validation import config
from golf_validation.stats.correlation import mean

logger = logging.getLogger("calibration")

NOTE_PERFECT = "Perfect"
NOTE_PARTIAL = "Partial"
NOTE_MISSED = "Missed"


@dataclass(frozen=True)
class TopFinisher:
    player_id: str
    name: str
    actual_finish: int
    predicted_rank: int
    miss_score: int
    bucket: str


@dataclass
class AccuracyMetrics:
    predicted_within_top5_window: int = 0   # top finishers predicted inside 20
    predicted_within_top10_window: int = 0  # ... inside 30
    predicted_within_top20_window: int = 0  # ... inside 50
    avg_miss_top5: float = 0.0
    avg_miss_top10: float = 0.0


@dataclass
class CalibrationRecord:
    tournament_name: str
    top_finishers: list = field(default_factory=list)
    accuracy_metrics: AccuracyMetrics = field(default_factory=AccuracyMetrics)
    unmatched_top_finishers: int = 0

    def top5(self) -> list:
        return [f for f in self.top_finishers if f.actual_finish <= 5]

    def note(self) -> str:
        """Perfect / Partial / Missed for the top-5 finishers, N/A without any."""
        top5 = self.top5()
        if not top5:
            return config.NOT_APPLICABLE
        hits = sum(1 for f in top5 if f.predicted_rank <= config.CALIBRATION_TOP5_WINDOW)
        if hits == len(top5):
            return NOTE_PERFECT
        return NOTE_PARTIAL if hits > 0 else NOTE_MISSED

    def top5_accuracy(self):
        top5 = self.top5()
        if not top5:
            return None
        hits = sum(1 for f in top5 if f.predicted_rank <= config.CALIBRATION_TOP5_WINDOW)
        return hits / len(top5) * 100.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["note"] = self.note()
        return data


@dataclass
class SeasonCalibration:
    tournaments: list = field(default_factory=list)
    total_top5: int = 0
    predicted_top5_in_top20: int = 0
    total_top10: int = 0
    predicted_top10_in_top30: int = 0

    @property
    def top5_ratio(self) -> float:
        return self.predicted_top5_in_top20 / self.total_top5 if self.total_top5 else 0.0

    @property
    def top10_ratio(self) -> float:
        return self.predicted_top10_in_top30 / self.total_top10 if self.total_top10 else 0.0

    def merge(self, other: "SeasonCalibration") -> "SeasonCalibration":
        """Concatenate and sum; returns a new aggregate."""
        return SeasonCalibration(
            tournaments=self.tournaments + other.tournaments,
            total_top5=self.total_top5 + other.total_top5,
            predicted_top5_in_top20=self.predicted_top5_in_top20 + other.predicted_top5_in_top20,
            total_top10=self.total_top10 + other.total_top10,
            predicted_top10_in_top30=self.predicted_top10_in_top30 + other.predicted_top10_in_top30,
        )

    def to_dict(self) -> dict:
        return {
            "tournaments": [t.to_dict() for t in self.tournaments],
            "total_top5": self.total_top5,
            "predicted_top5_in_top20": self.predicted_top5_in_top20,
            "top5_in_top20_ratio": self.top5_ratio,
            "total_top10": self.total_top10,
            "predicted_top10_in_top30": self.predicted_top10_in_top30,
            "top10_in_top30_ratio": self.top10_ratio,
        }


def bucket_for_rank(predicted_rank: int) -> str:
    for limit, label in config.CALIBRATION_BUCKETS:
        if predicted_rank <= limit:
            return label
    return config.CALIBRATION_OUTSIDE_LABEL


def build_calibration(tournament_name: str, predictions, results,
                      top_finish: int = config.CALIBRATION_TOP_FINISH) -> SeasonCalibration:
    """
    Calibration for one event, already in aggregate form so events can be
    merged directly.
    """
    predicted = {p.player_id: p for p in predictions}
    finishers = sorted(
        (r for r in results if r.finish_position <= top_finish and not getattr(r, "fallback_finish", False)),
        key=lambda r: (r.finish_position, r.player_id),
    )

    record = CalibrationRecord(tournament_name=tournament_name or "Tournament")
    agg = SeasonCalibration()
    for result in finishers:
        pred = predicted.get(result.player_id)
        if pred is None:
            record.unmatched_top_finishers += 1
            continue
        rank = pred.predicted_rank
        record.top_finishers.append(TopFinisher(
            player_id=result.player_id,
            name=result.name or pred.name,
            actual_finish=result.finish_position,
            predicted_rank=rank,
            miss_score=abs(rank - result.finish_position),
            bucket=bucket_for_rank(rank),
        ))
        metrics = record.accuracy_metrics
        if rank <= config.CALIBRATION_TOP5_WINDOW:
            metrics.predicted_within_top5_window += 1
        if rank <= config.CALIBRATION_TOP10_WINDOW:
            metrics.predicted_within_top10_window += 1
        if rank <= config.CALIBRATION_TOP20_WINDOW:
            metrics.predicted_within_top20_window += 1

        if result.finish_position <= 5:
            agg.total_top5 += 1
            if rank <= config.CALIBRATION_TOP5_WINDOW:
                agg.predicted_top5_in_top20 += 1
        if result.finish_position <= 10:
            agg.total_top10 += 1
            if rank <= config.CALIBRATION_TOP10_WINDOW:
                agg.predicted_top10_in_top30 += 1

    record.accuracy_metrics.avg_miss_top5 = mean([f.miss_score for f in record.top5()])
    record.accuracy_metrics.avg_miss_top10 = mean(
        [f.miss_score for f in record.top_finishers if f.actual_finish <= 10]
    )
    if record.unmatched_top_finishers:
        logger.debug("%s: %d top finishers missing from predictions",
                     tournament_name, record.unmatched_top_finishers)
    agg.tournaments.append(record)
    return agg


def merge_calibrations(calibrations) -> SeasonCalibration:
    total = SeasonCalibration()
    for calibration in calibrations:
        total = total.merge(calibration)
    return total
