#!/usr/bin/env python3
"""
Post-Event Validation - Local JSON API

Run:  python3 app.py
Open: http://localhost:8000/docs

Read-only views over a season's validation outputs, plus an endpoint that
validates one event on demand.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from golf_validation import config, db, feeds, reports
from golf_validation.errors import ValidationError
from golf_validation.logging_config import setup_logging
from golf_validation.services.validation_service import ValidationConfig, ValidationService

app = FastAPI(title="Golf Ranking Validation")

DATA_ROOT = config.DATA_ROOT


def _season_report(season: str, name: str):
    payload = reports.read_report(feeds.output_dir(DATA_ROOT, season), name)
    if payload is None:
        return JSONResponse(
            {"error": f"No {name} for season {season}. Run validate.py --season {season} --all first."},
            status_code=404,
        )
    return payload


# ── API Endpoints ───────────────────────────────────────────────────

@app.get("/api/seasons/{season}/calibration")
async def get_calibration(season: str):
    """Season calibration: top finishers vs predicted rank."""
    return _season_report(season, config.OUTPUT_NAMES["calibration_report"])


@app.get("/api/seasons/{season}/bias-trends")
async def get_bias_trends(season: str):
    """Model - actual bias per metric, most biased first."""
    return _season_report(season, config.OUTPUT_NAMES["model_delta_trends"])


@app.get("/api/seasons/{season}/course-types")
async def get_course_types(season: str):
    """Course type roster, one entry per event."""
    return _season_report(season, config.OUTPUT_NAMES["course_type_classification"])


@app.get("/api/seasons/{season}/weights/{course_type}")
async def get_weights(season: str, course_type: str):
    """Template vs recommended weights for one course type."""
    course_type = course_type.upper()
    if course_type not in config.COURSE_TYPES:
        return JSONResponse(
            {"error": f"Unknown course type '{course_type}'. Use one of {', '.join(config.COURSE_TYPES)}"},
            status_code=400,
        )
    guide = _season_report(season, config.OUTPUT_NAMES["weight_calibration_guide"])
    if isinstance(guide, JSONResponse):
        return guide
    return {
        "season": season,
        "course_type": course_type,
        "generated_at": guide.get("generated_at"),
        "recommendations": guide.get("types", {}).get(course_type, []),
    }


@app.get("/api/seasons/{season}/runs")
async def get_runs(season: str, limit: int = 50):
    """Recent validation runs logged for the season."""
    return db.get_runs(season, limit=limit)


@app.post("/api/validate")
async def validate_event(request: Request):
    """Validate one event. Body: {season, tournament, course_type?, force?, profile?}"""
    data = await request.json()
    season = str(data.get("season") or "").strip()
    tournament = str(data.get("tournament") or "").strip()
    if not season or not tournament:
        return JSONResponse({"error": "Need season and tournament"}, status_code=400)

    course_type = data.get("course_type")
    if course_type and str(course_type).upper() not in config.COURSE_TYPES:
        return JSONResponse({"error": f"Unknown course type '{course_type}'"}, status_code=400)

    cfg = ValidationConfig(
        season=season,
        tournament=tournament,
        data_root=DATA_ROOT,
        course_type=course_type,
        profile=data.get("profile"),
        force=bool(data.get("force", False)),
    )
    try:
        service = ValidationService.from_config(cfg)
        event = service.run_event(season, tournament, course_type=cfg.course_type, force=cfg.force)
    except ValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=422)

    body = event.summary()
    body["recommendations"] = [r.to_dict() for r in event.recommendations]
    body["outputs"] = event.outputs
    return body


if __name__ == "__main__":
    setup_logging()
    db.init_db()
    print("\n  Golf Ranking Validation - JSON API")
    print("  Open in browser: http://localhost:8000/docs\n")
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="warning")
