"""Tests for the JSON API endpoints (called directly, no server)."""

import asyncio
import json
import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.responses import JSONResponse

import app
import golf_validation.db as db
from golf_validation import config, feeds, reports

_original_path = db.DB_PATH
_original_root = app.DATA_ROOT


def setup_module():
    db.DB_PATH = tempfile.mktemp(suffix=".db")
    db._DB_INITIALIZED = False
    app.DATA_ROOT = tempfile.mkdtemp()
    writer = reports.ReportWriter(feeds.output_dir(app.DATA_ROOT, "2026"))
    writer.write_json(config.OUTPUT_NAMES["weight_calibration_guide"], {
        "generated_at": "2026-03-01T00:00:00+00:00",
        "types": {"POWER": [{"metric": "Driving Distance", "recommended_weight": 0.5}]},
    })
    writer.write_json(config.OUTPUT_NAMES["calibration_report"], {"total_top5": 4})


def teardown_module():
    if os.path.exists(db.DB_PATH):
        os.unlink(db.DB_PATH)
    db.DB_PATH = _original_path
    db._DB_INITIALIZED = False
    app.DATA_ROOT = _original_root


def test_calibration_report():
    body = asyncio.run(app.get_calibration("2026"))
    assert body == {"total_top5": 4}


def test_missing_report_is_404():
    resp = asyncio.run(app.get_bias_trends("2026"))
    assert isinstance(resp, JSONResponse)
    assert resp.status_code == 404
    assert "Run validate.py" in json.loads(resp.body)["error"]


def test_weights_for_course_type():
    body = asyncio.run(app.get_weights("2026", "power"))
    assert body["course_type"] == "POWER"
    assert body["recommendations"][0]["metric"] == "Driving Distance"
    empty = asyncio.run(app.get_weights("2026", "TECHNICAL"))
    assert empty["recommendations"] == []


def test_unknown_course_type_is_400():
    resp = asyncio.run(app.get_weights("2026", "links"))
    assert resp.status_code == 400


def test_runs_listing():
    run_id = db.log_run_start("2026", "test-open")
    db.log_run_end(run_id, "skipped", summary={"reason": "no result feed"})
    runs = asyncio.run(app.get_runs("2026"))
    assert runs[0]["status"] == "skipped"
