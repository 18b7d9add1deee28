"""Tests for the season report writers."""

import csv
import json
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from golf_validation import config, reports
from golf_validation.logging_config import JsonFormatter
from golf_validation.models.weights import WeightRecommendation


def _rec(metric, template_weight, pct_change):
    return WeightRecommendation(metric=metric, group="Scoring", template_weight=template_weight,
                                recommended_weight=0.5, correlation=0.2, gap=0.5 - template_weight,
                                pct_change=pct_change)


def test_weight_guide_keeps_not_applicable_sentinel(tmp_path):
    writer = reports.ReportWriter(str(tmp_path))
    guide = {"POWER": {"tournaments": 2, "recommendations": [
        _rec("Scoring: Approach >200 FW SG", 0.0, config.NOT_APPLICABLE),
        _rec("SG T2G", 0.25, 1.0),
    ]}}
    reports.write_weight_guide(writer, guide)

    with open(writer.path_for(config.OUTPUT_NAMES["weight_calibration_guide"], "csv"), newline="") as f:
        rows = {r[1]: r for r in csv.reader(f) if len(r) > 5}
    assert rows["Scoring: Approach >200 FW SG"][5] == "N/A"
    assert rows["SG T2G"][5] == "100.00%"

    payload = reports.read_report(str(tmp_path), config.OUTPUT_NAMES["weight_calibration_guide"])
    assert payload["types"]["POWER"][0]["pct_change"] == "N/A"


def test_processing_log_flags_overwrites(tmp_path):
    writer = reports.ReportWriter(str(tmp_path))
    writer.write_json("First", {"a": 1})
    writer.write_json("First", {"a": 2})
    with open(writer.write_processing_log({"season": "2026"})) as f:
        log = json.load(f)
    assert [o["overwritten"] for o in log["outputs"]] == [False, True]


def test_json_log_line_carries_extras():
    record = logging.LogRecord("validation.service", logging.INFO, __file__, 1, "done", None, None)
    record.tournament = "test-open"
    record.duration_ms = 12
    line = json.loads(JsonFormatter().format(record))
    assert line["tournament"] == "test-open"
    assert line["duration_ms"] == 12
    assert "season" not in line
