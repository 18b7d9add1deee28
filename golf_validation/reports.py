"""
Report writers for the season output directory.

Every report is written as JSON plus a CSV rendering. Flat tables go through
pandas; sectioned reports (calibration, weight guide) are written row by row.
The writer remembers each file it produced, and whether it replaced an
existing one, for the processing log.
"""

import csv
import json
import logging
import os
from datetime import datetime, timezone

import pandas as pd

from golf_validation import config

logger = logging.getLogger("reports")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _fmt(value, digits: int = 4) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return f"{value:.{digits}f}"


def _pct(value, digits: int = 2) -> str:
    if isinstance(value, str):
        return value
    return f"{value * 100:.{digits}f}%"


class ReportWriter:
    """Writes reports into one output directory and records what was written."""

    def __init__(self, output_dir: str):
        self.output_dir = output_dir
        self.outputs: list[dict] = []

    def path_for(self, name: str, ext: str, subdir: str = None) -> str:
        base = os.path.join(self.output_dir, subdir) if subdir else self.output_dir
        return os.path.join(base, f"{name}.{ext}")

    def _record(self, kind: str, path: str, existed_before: bool):
        self.outputs.append({
            "type": kind,
            "path": path,
            "existed_before": existed_before,
            "written": True,
        })
        logger.debug("Wrote %s", path)

    def write_json(self, name: str, payload, subdir: str = None) -> str:
        path = self.path_for(name, "json", subdir)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        existed = os.path.exists(path)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)
        self._record(name, path, existed)
        return path

    def write_rows(self, name: str, rows: list[list], subdir: str = None) -> str:
        path = self.path_for(name, "csv", subdir)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        existed = os.path.exists(path)
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            for row in rows:
                writer.writerow(row)
        self._record(name, path, existed)
        return path

    def write_table(self, name: str, records: list[dict], columns: list[str] = None,
                    subdir: str = None) -> str:
        path = self.path_for(name, "csv", subdir)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        existed = os.path.exists(path)
        df = pd.DataFrame.from_records(records, columns=columns)
        df.to_csv(path, index=False)
        self._record(name, path, existed)
        return path

    def write_processing_log(self, details: dict) -> str:
        """Processing_Log.json: run details plus every output, flagged when overwritten."""
        name = config.OUTPUT_NAMES["processing_log"]
        outputs = [
            {**entry, "overwritten": bool(entry.get("existed_before")) and entry.get("written") is not False}
            for entry in self.outputs
        ]
        payload = {"generated_at": _now(), **details, "outputs": outputs}
        return self.write_json(name, payload)


# ── Per-event reports ───────────────────────────────────────────────

def write_metric_analysis(writer: ReportWriter, analysis) -> list[str]:
    name = f"{analysis.tournament}_metric_analysis"
    data = analysis.to_dict()
    json_path = writer.write_json(name, data, subdir=config.METRIC_ANALYSIS_DIR_NAME)
    csv_path = writer.write_table(
        name,
        data["metrics"],
        columns=["metric", "top10_avg", "field_avg", "delta", "correlation", "top10_correlation",
                 "strength", "direction_match", "top10_count", "field_count"],
        subdir=config.METRIC_ANALYSIS_DIR_NAME,
    )
    return [json_path, csv_path]


def write_zscores(writer: ReportWriter, tournament: str, table: dict, metrics: list[str],
                  names: dict = None) -> list[str]:
    """One row per player; z and z_adj per metric, blank where omitted."""
    names = names or {}
    records = []
    for player_id, scores in table.items():
        row = {"player_id": player_id, "player_name": names.get(player_id, "")}
        for metric in metrics:
            score = scores.get(metric)
            row[f"{metric} z"] = None if score is None else round(score.z, 4)
            row[f"{metric} z_adj"] = None if score is None else round(score.z_adj, 4)
        records.append(row)
    name = f"{tournament}_results_zscores"
    columns = ["player_id", "player_name"] + [f"{m} {k}" for m in metrics for k in ("z", "z_adj")]
    return [writer.write_json(name, records), writer.write_table(name, records, columns)]


# ── Season reports ──────────────────────────────────────────────────

def write_calibration_report(writer: ReportWriter, calibration) -> list[str]:
    name = config.OUTPUT_NAMES["calibration_report"]
    payload = {"generated_at": _now(), **calibration.to_dict()}

    rows = [
        ["POST-TOURNAMENT CALIBRATION ANALYSIS"],
        [],
        ["WINNER PREDICTION ACCURACY"],
        ["Metric", "Accuracy", "Count"],
        ["Top 5 finishers predicted in top 20", _pct(calibration.top5_ratio, 1),
         f"{calibration.predicted_top5_in_top20}/{calibration.total_top5}"],
        ["Top 10 finishers predicted in top 30", _pct(calibration.top10_ratio, 1),
         f"{calibration.predicted_top10_in_top30}/{calibration.total_top10}"],
        [],
        ["TOURNAMENT BREAKDOWN"],
        ["Tournament", "Top Finishers", "Avg Miss (T5)", "Top 5 Accuracy", "Notes"],
    ]
    for record in sorted(calibration.tournaments, key=lambda t: t.accuracy_metrics.avg_miss_top5):
        accuracy = record.top5_accuracy()
        rows.append([
            record.tournament_name,
            len(record.top_finishers),
            f"{record.accuracy_metrics.avg_miss_top5:.1f}",
            config.NOT_APPLICABLE if accuracy is None else f"{accuracy:.0f}%",
            record.note(),
        ])
    rows.append([])
    rows.append(["TOP FINISHERS"])
    rows.append(["Tournament", "Player", "Actual Finish", "Predicted Rank", "Miss", "Predicted Bucket"])
    for record in calibration.tournaments:
        for f in record.top_finishers:
            rows.append([record.tournament_name, f.name, f.actual_finish, f.predicted_rank,
                         f.miss_score, f.bucket])
    return [writer.write_json(name, payload), writer.write_rows(name, rows)]


def write_course_type_classification(writer: ReportWriter, roster: list[dict]) -> list[str]:
    name = config.OUTPUT_NAMES["course_type_classification"]
    payload = {
        "generated_at": _now(),
        "descriptions": config.COURSE_TYPE_DESCRIPTIONS,
        "entries": roster,
    }
    return [
        writer.write_json(name, payload),
        writer.write_table(name, roster, ["display_name", "tournament", "event_id", "course_type", "source"]),
    ]


def write_correlation_summaries(writer: ReportWriter, summaries: dict, type_counts: dict) -> list[str]:
    paths = []
    for course_type, entries in summaries.items():
        name = config.OUTPUT_NAMES[course_type]
        records = [
            {"metric": e.metric, "avg_delta": e.avg_delta, "avg_correlation": e.avg_correlation,
             "samples": e.samples}
            for e in entries
        ]
        payload = {
            "generated_at": _now(),
            "course_type": course_type,
            "tournaments": type_counts.get(course_type, 0),
            "metrics": records,
        }
        paths.append(writer.write_json(name, payload, subdir=config.CORRELATION_SUMMARY_DIR_NAME))
        paths.append(writer.write_table(name, records, ["metric", "avg_delta", "avg_correlation", "samples"],
                                        subdir=config.CORRELATION_SUMMARY_DIR_NAME))
    return paths


def write_weight_guide(writer: ReportWriter, guide: dict) -> list[str]:
    """Weight_Calibration_Guide (template vs recommended) and Weight_Templates (recommended by metric)."""
    guide_name = config.OUTPUT_NAMES["weight_calibration_guide"]
    templates_name = config.OUTPUT_NAMES["weight_templates"]

    guide_payload = {"generated_at": _now(), "types": {}}
    templates_payload = {"generated_at": _now(), "templates": {}}
    rows = [["WEIGHT CALIBRATION - Template vs Recommended by Course Type"], []]

    for course_type, body in guide.items():
        recs = body["recommendations"]
        guide_payload["types"][course_type] = [r.to_dict() for r in recs]
        templates_payload["templates"][course_type] = {
            r.metric: {
                "group": r.group,
                "template_weight": r.template_weight,
                "recommended_weight": r.recommended_weight,
                "correlation": r.correlation,
                "invert": r.invert,
            }
            for r in recs
        }
        rows.append([f"{course_type} COURSES ({body['tournaments']} tournaments)"])
        rows.append(["Group", "Metric", "Template Weight", "Recommended*", "Gap", "% Change", "Inverted"])
        for r in recs:
            rows.append([
                r.group,
                r.metric,
                _fmt(r.template_weight),
                _fmt(r.recommended_weight),
                _fmt(r.gap),
                _pct(r.pct_change),
                "yes" if r.invert else "",
            ])
        rows.append([])

    rows.append(["*Recommended weights are each metric's share of |correlation| within its group"])
    rows.append(["Gap = Recommended - Template (positive = increase weight, negative = decrease)"])
    rows.append(["% Change = Gap / Template Weight"])

    return [
        writer.write_json(guide_name, guide_payload),
        writer.write_rows(guide_name, rows),
        writer.write_json(templates_name, templates_payload),
    ]


def write_model_delta_trends(writer: ReportWriter, entries, meta: dict) -> list[str]:
    name = config.OUTPUT_NAMES["model_delta_trends"]
    records = [e.to_dict() for e in entries]
    payload = {"generated_at": _now(), "metrics": records, "meta": meta}
    return [
        writer.write_json(name, payload),
        writer.write_table(name, records, ["metric", "sample_count", "mean_delta", "mean_abs_delta",
                                           "std_dev", "bias_z", "over_pct", "under_pct", "status"]),
    ]


def write_metric_stability(writer: ReportWriter, groups) -> list[str]:
    name = config.OUTPUT_NAMES["metric_stability"]
    records = [
        {"group": g.group, "mean": g.mean, "std_dev": g.std_dev, "stability": g.stability,
         "count": g.count, "level": g.level, "correlations": g.correlations}
        for g in groups
    ]
    flat = [{k: v for k, v in r.items() if k != "correlations"} for r in records]
    return [
        writer.write_json(name, {"generated_at": _now(), "groups": records}),
        writer.write_table(name, flat, ["group", "mean", "std_dev", "stability", "count", "level"]),
    ]


def read_report(output_dir: str, name: str):
    """Load a season JSON report, or None when it has not been written."""
    path = os.path.join(output_dir, f"{name}.json")
    if not os.path.exists(path):
        return None
    with open(path, encoding="utf-8") as f:
        return json.load(f)
