"""Orchestration for per-event and per-season validation runs."""
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from golf_validation import config, db, feature_flags, feeds, reports
from golf_validation.bias_trends import BiasTrendTracker
from golf_validation.calibration import SeasonCalibration, build_calibration, merge_calibrations
from golf_validation.config_loader import (
    ValidationSettings,
    load_settings,
    load_tournament_config,
    tournament_settings,
)
from golf_validation.errors import ValidationError
from golf_validation.models.course_type import (
    SOURCE_CONFIG,
    CourseTypeClassification,
    build_classification_roster,
    count_by_course_type,
    resolve_course_type,
)
from golf_validation.models.metric_analysis import (
    MetricAnalysis,
    build_correlation_summaries,
    build_metric_analysis,
)
from golf_validation.models.stability import analyze_stability
from golf_validation.models.weights import build_weight_guide, correlation_map, recommend_weights
from golf_validation.stats.rank_evaluation import RankEvaluation, evaluate_predictions
from golf_validation.stats.zscores import build_zscore_table
from golf_validation.templates import TemplateStore, get_store

LOGGER = logging.getLogger("validation.service")

STATUS_OK = "ok"
STATUS_SKIPPED = "skipped"
STATUS_ERROR = "error"


@dataclass
class ValidationConfig:
    season: str
    tournament: Optional[str] = None
    data_root: Optional[str] = None
    course_type: Optional[str] = None
    profile: Optional[str] = None
    force: bool = False
    overrides: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EventResult:
    tournament: str
    season: str
    status: str
    reason: Optional[str] = None
    evaluation: Optional[RankEvaluation] = None
    analysis: Optional[MetricAnalysis] = None
    classification: Optional[CourseTypeClassification] = None
    recommendations: List[Any] = field(default_factory=list)
    calibration: Optional[SeasonCalibration] = None
    results: List[Any] = field(default_factory=list)
    metric_analysis_skipped: bool = False
    sources: Dict[str, Optional[str]] = field(default_factory=dict)
    outputs: List[str] = field(default_factory=list)

    def summary(self) -> dict:
        out = {
            "tournament": self.tournament,
            "season": self.season,
            "status": self.status,
        }
        if self.reason:
            out["error" if self.status == STATUS_ERROR else "reason"] = self.reason
        if self.evaluation is not None:
            out["evaluation"] = self.evaluation.to_dict()
        if self.analysis is not None:
            out["course_type"] = self.analysis.course_type
            out["course_type_source"] = self.analysis.course_type_source
            out["metrics_analyzed"] = len(self.analysis.metrics)
        if self.calibration is not None and self.calibration.tournaments:
            record = self.calibration.tournaments[0]
            out["calibration_note"] = record.note()
            out["avg_miss_top10"] = record.accuracy_metrics.avg_miss_top10
        out["metric_analysis_skipped"] = self.metric_analysis_skipped
        out["sources"] = self.sources
        return out


@dataclass
class SeasonResult:
    season: str
    events: List[EventResult] = field(default_factory=list)
    roster: List[dict] = field(default_factory=list)
    calibration: Optional[SeasonCalibration] = None
    bias_trends: List[Any] = field(default_factory=list)
    summaries: Dict[str, list] = field(default_factory=dict)
    guide: Dict[str, dict] = field(default_factory=dict)
    stability: List[Any] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        out = {STATUS_OK: 0, STATUS_SKIPPED: 0, STATUS_ERROR: 0}
        for event in self.events:
            out[event.status] = out.get(event.status, 0) + 1
        return out


class ValidationService:
    def __init__(self, data_root: Optional[str] = None, settings: Optional[ValidationSettings] = None,
                 store: Optional[TemplateStore] = None, logger: Optional[logging.Logger] = None):
        self.data_root = data_root or config.DATA_ROOT
        self.settings = settings or ValidationSettings()
        self._store = store
        self.logger = logger or LOGGER
        self.tournaments = load_tournament_config()

    @classmethod
    def from_config(cls, cfg: ValidationConfig, store: Optional[TemplateStore] = None) -> "ValidationService":
        settings = load_settings(cfg.profile, cfg.overrides or None)
        return cls(data_root=cfg.data_root, settings=settings, store=store)

    @property
    def store(self) -> TemplateStore:
        if self._store is None:
            self._store = get_store()
        return self._store

    # ── Public API ──────────────────────────────────────────

    def run_event(self, season, tournament: str, course_type: Optional[str] = None,
                  force: bool = False, write_reports: bool = True,
                  processing_log: bool = True) -> EventResult:
        """Validate one event. Missing feeds give a skipped result; bad config raises."""
        season = str(season)
        tournament_dir = feeds.resolve_tournament_dir(self.data_root, season, tournament)
        writer = reports.ReportWriter(feeds.output_dir(self.data_root, season)) if write_reports else None
        run_id = db.log_run_start(season, os.path.basename(tournament_dir))
        started = time.time()
        try:
            result = self._run_event(season, tournament_dir, course_type, force, writer)
        except Exception as exc:
            db.log_run_end(run_id, STATUS_ERROR, error=str(exc))
            raise
        db.log_run_end(run_id, result.status, summary=result.summary())
        if writer is not None and processing_log:
            result.outputs.append(writer.write_processing_log({
                "season": season,
                "data_root": self.data_root,
                "settings": asdict(self.settings),
                "tournaments": [result.summary()],
                "processed": 1 if result.status == STATUS_OK else 0,
                "skipped": 1 if result.status == STATUS_SKIPPED else 0,
                "errors": 0,
                "metric_analysis_skipped": int(result.metric_analysis_skipped),
            }))
        self._log("event.complete", tournament=result.tournament, season=season, status=result.status,
                  duration_ms=int((time.time() - started) * 1000))
        return result

    def run_season(self, season, force: bool = False, course_types: Optional[Dict[str, str]] = None) -> SeasonResult:
        """Validate every event of a season, then build the season reports."""
        season = str(season)
        course_types = course_types or {}
        out = SeasonResult(season=season)
        tournament_dirs = feeds.list_season_tournament_dirs(self.data_root, season)
        self._log("season.start", season=season, tournaments=len(tournament_dirs))

        for tournament_dir in tournament_dirs:
            slug = os.path.basename(tournament_dir)
            try:
                event = self.run_event(season, slug, course_types.get(slug), force=force,
                                       processing_log=False)
            except ValidationError as exc:
                self.logger.warning("Event %s failed: %s", slug, exc,
                                    extra={"tournament": slug, "season": season, "error": str(exc)})
                event = EventResult(tournament=slug, season=season, status=STATUS_ERROR, reason=str(exc))
            if event.status == STATUS_SKIPPED:
                self.logger.info("Skipping %s: %s", slug, event.reason,
                                 extra={"tournament": slug, "season": season})
            out.events.append(event)

        self._build_season_outputs(out)
        return out

    # ── Event internals ─────────────────────────────────────

    def _run_event(self, season: str, tournament_dir: str, course_type: Optional[str],
                   force: bool, writer: Optional[reports.ReportWriter]) -> EventResult:
        paths = feeds.event_paths(tournament_dir)
        slug = paths.slug
        event_config = tournament_settings(season, slug, self.tournaments)
        configured_type = course_type or event_config.get("course_type")

        predictions = feeds.load_predictions(paths.rankings_json, paths.rankings_csv,
                                             max_rows=self.settings.max_prediction_rows)
        results = feeds.load_results(paths)
        event = EventResult(
            tournament=slug,
            season=season,
            status=STATUS_OK,
            sources={
                "predictions": predictions.source,
                "predictions_path": predictions.path,
                "results": results.source,
                "results_path": results.path,
            },
        )
        if not predictions.records:
            event.status, event.reason = STATUS_SKIPPED, "no prediction feed"
            return event
        if not results.records:
            event.status, event.reason = STATUS_SKIPPED, "no result feed"
            return event

        event.results = results.records
        event.evaluation = evaluate_predictions(
            predictions.records, results.records, min_samples=self.settings.min_rank_samples,
        )
        event.analysis, event.metric_analysis_skipped = self._metric_analysis(
            season, slug, predictions, results, configured_type,
            event_config.get("event_id") or feeds.read_event_id(paths), force,
        )
        event.classification = CourseTypeClassification(
            course_type=event.analysis.course_type, source=event.analysis.course_type_source,
        )
        event.recommendations = recommend_weights(
            correlation_map(event.analysis.metrics), self.store.get(event.analysis.course_type),
        )
        event.calibration = build_calibration(
            feeds.display_tournament_name(slug), predictions.records, results.records,
            top_finish=self.settings.top_n_success,
        )

        if writer is not None:
            event.outputs.extend(reports.write_metric_analysis(writer, event.analysis))
            metric_names = [m.metric for m in event.analysis.metrics]
            names = {r.player_id: r.name for r in results.records}
            event.outputs.extend(reports.write_zscores(
                writer, slug, build_zscore_table(results.records, metric_names), metric_names, names,
            ))
        return event

    def _metric_analysis(self, season: str, slug: str, predictions, results,
                         configured_type: Optional[str], event_id: Optional[str],
                         force: bool) -> tuple[MetricAnalysis, bool]:
        key = db.artifact_key(season, slug)
        if not force and feature_flags.is_enabled("skip_fresh_analysis"):
            artifact = db.get_artifact(key)
            if not db.is_stale(artifact, results.modified_at):
                cached = MetricAnalysis.from_dict(artifact)
                if configured_type:
                    wanted = (configured_type.upper(), SOURCE_CONFIG)
                    reusable = (cached.course_type, cached.course_type_source) == wanted
                else:
                    reusable = cached.course_type_source != SOURCE_CONFIG
                if reusable:
                    self.logger.info("Metric analysis for %s is fresh; skipping recompute", slug,
                                     extra={"tournament": slug, "season": season})
                    return cached, True

        analysis = build_metric_analysis(
            predictions.records, results.records, tournament=slug, season=season,
            event_id=event_id, settings=self.settings,
        )
        classification = resolve_course_type(
            configured_type,
            analysis.metrics,
            self.store.group_weights(config.DEFAULT_COURSE_TYPE),
            top_metrics=self.settings.course_type_top_metrics,
            margin=self.settings.course_type_margin,
        )
        analysis.course_type = classification.course_type
        analysis.course_type_source = classification.source
        db.put_artifact(key, analysis.to_dict())
        return analysis, False

    # ── Season internals ────────────────────────────────────

    def _build_season_outputs(self, out: SeasonResult):
        season = out.season
        done = [e for e in out.events if e.status == STATUS_OK and e.analysis is not None]
        analyses = [e.analysis for e in done]

        out.roster = build_classification_roster(analyses, season)
        type_counts = count_by_course_type(out.roster)
        out.summaries = build_correlation_summaries(analyses)
        out.guide = build_weight_guide(out.summaries, self.store, type_counts)

        tracker = BiasTrendTracker(
            min_samples=self.settings.bias_min_samples,
            stable_z=self.settings.bias_stable_z,
            chronic_z=self.settings.bias_chronic_z,
        )
        for event in done:
            tracker.add_event(event.results)
        out.bias_trends = tracker.entries()

        if feature_flags.is_enabled("season_calibration"):
            out.calibration = merge_calibrations(e.calibration for e in done if e.calibration is not None)
        if feature_flags.is_enabled("metric_stability"):
            out.stability = analyze_stability(
                self._analyses_by_season(season, analyses),
                high=self.settings.stability_high,
                moderate=self.settings.stability_moderate,
            )

        writer = reports.ReportWriter(feeds.output_dir(self.data_root, season))
        out.outputs.extend(reports.write_course_type_classification(writer, out.roster))
        out.outputs.extend(reports.write_correlation_summaries(writer, out.summaries, type_counts))
        out.outputs.extend(reports.write_weight_guide(writer, out.guide))
        out.outputs.extend(reports.write_model_delta_trends(writer, out.bias_trends, {
            "source": "season_aggregate",
            "tournament_count": tracker.tournament_count,
            "total_samples": tracker.total_samples,
        }))
        if out.calibration is not None:
            out.outputs.extend(reports.write_calibration_report(writer, out.calibration))
        if out.stability:
            out.outputs.extend(reports.write_metric_stability(writer, out.stability))

        counts = out.counts()
        writer.write_processing_log({
            "season": season,
            "data_root": self.data_root,
            "settings": asdict(self.settings),
            "flags": feature_flags.get_all(),
            "tournaments": [e.summary() for e in out.events],
            "processed": counts[STATUS_OK],
            "skipped": counts[STATUS_SKIPPED],
            "errors": counts[STATUS_ERROR],
            "metric_analysis_skipped": sum(1 for e in done if e.metric_analysis_skipped),
        })
        self._log("season.complete", season=season, **counts)

    def _analyses_by_season(self, season: str, current: List[MetricAnalysis]) -> Dict[str, List[MetricAnalysis]]:
        """Current season from this run; other seasons from stored artifacts."""
        by_season: Dict[str, List[MetricAnalysis]] = {season: list(current)}
        if not os.path.isdir(self.data_root):
            return by_season
        for name in sorted(os.listdir(self.data_root)):
            if name == season or not name.isdigit():
                continue
            stored = [MetricAnalysis.from_dict(a) for a in db.list_artifacts(name)]
            if stored:
                by_season[name] = stored
        return by_season

    def _log(self, event: str, **kwargs):
        payload = {"event": event, **kwargs}
        extra = {k: kwargs[k] for k in ("tournament", "season", "duration_ms") if k in kwargs}
        self.logger.info(json.dumps(payload, default=str), extra=extra)
