"""
SQLite artifact store for metric analyses and the validation run log.

Tables:
  metric_analyses: one row per (season, tournament slug): MetricAnalysis JSON
  validation_runs: one row per event run: status, summary JSON, timestamps

The staleness check is a pair of pure functions over a stored artifact and
the result feed's modification time, kept apart from the statistics so
those stay functions of their inputs.
"""

import json
import os
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from golf_validation import config

DB_PATH = config.DB_PATH

_DB_INITIALIZED = False


def get_conn() -> sqlite3.Connection:
    os.makedirs(os.path.dirname(os.path.abspath(DB_PATH)), exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_db():
    """Create tables if they don't exist."""
    conn = get_conn()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS metric_analyses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            season TEXT NOT NULL,
            tournament TEXT NOT NULL,
            version INTEGER NOT NULL,
            course_type TEXT,
            generated_at TEXT NOT NULL,
            payload TEXT NOT NULL,       -- MetricAnalysis as JSON
            updated_at TEXT DEFAULT (datetime('now')),
            UNIQUE(season, tournament)
        );

        CREATE TABLE IF NOT EXISTS validation_runs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            season TEXT,
            tournament TEXT,
            status TEXT DEFAULT 'running',   -- 'running', 'ok', 'skipped', 'error'
            summary TEXT,                    -- JSON
            error TEXT,
            started_at TEXT DEFAULT (datetime('now')),
            finished_at TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_runs_event
            ON validation_runs(season, tournament);
    """)
    conn.commit()
    conn.close()


def ensure_initialized():
    global _DB_INITIALIZED
    if not _DB_INITIALIZED:
        init_db()
        _DB_INITIALIZED = True


def artifact_key(season, tournament: str) -> tuple[str, str]:
    return str(season), str(tournament)


# ── Metric analysis artifacts ───────────────────────────────────────

def put_artifact(key: tuple, payload: dict):
    """Insert or replace the artifact stored under (season, tournament)."""
    ensure_initialized()
    season, tournament = key
    conn = get_conn()
    try:
        conn.execute(
            """INSERT INTO metric_analyses
               (season, tournament, version, course_type, generated_at, payload, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, datetime('now'))
               ON CONFLICT(season, tournament) DO UPDATE SET
                   version = excluded.version,
                   course_type = excluded.course_type,
                   generated_at = excluded.generated_at,
                   payload = excluded.payload,
                   updated_at = excluded.updated_at""",
            (
                str(season),
                str(tournament),
                int(payload.get("version") or 0),
                payload.get("course_type"),
                payload.get("generated_at") or datetime.now(timezone.utc).isoformat(),
                json.dumps(payload, sort_keys=True),
            ),
        )
        conn.commit()
    finally:
        conn.close()


def _row_to_artifact(row) -> dict:
    artifact = json.loads(row["payload"])
    artifact["version"] = row["version"]
    artifact["generated_at"] = row["generated_at"]
    return artifact


def get_artifact(key: tuple) -> Optional[dict]:
    """Stored payload plus version and generated_at, or None."""
    ensure_initialized()
    season, tournament = key
    conn = get_conn()
    try:
        row = conn.execute(
            "SELECT version, generated_at, payload FROM metric_analyses WHERE season = ? AND tournament = ?",
            (str(season), str(tournament)),
        ).fetchone()
    finally:
        conn.close()
    return _row_to_artifact(row) if row else None


def list_artifacts(season) -> list[dict]:
    ensure_initialized()
    conn = get_conn()
    try:
        rows = conn.execute(
            "SELECT version, generated_at, payload FROM metric_analyses WHERE season = ? ORDER BY tournament",
            (str(season),),
        ).fetchall()
    finally:
        conn.close()
    return [_row_to_artifact(r) for r in rows]


def delete_artifact(key: tuple):
    ensure_initialized()
    season, tournament = key
    conn = get_conn()
    conn.execute("DELETE FROM metric_analyses WHERE season = ? AND tournament = ?", (str(season), str(tournament)))
    conn.commit()
    conn.close()


# ── Freshness ───────────────────────────────────────────────────────

def is_populated(artifact: Optional[dict]) -> bool:
    """Non-empty metrics, a course type, and at least one metric with samples."""
    if not artifact:
        return False
    metrics = artifact.get("metrics")
    if not isinstance(metrics, list) or not metrics:
        return False
    if not str(artifact.get("course_type") or "").strip():
        return False
    if any((m.get("field_count") or 0) > 0 for m in metrics):
        return True
    return any((m.get("top10_count") or 0) > 0 for m in metrics)


def _parse_timestamp(value) -> Optional[float]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def is_stale(artifact: Optional[dict], source_timestamp: Optional[float],
             version: int = config.METRIC_ANALYSIS_VERSION) -> bool:
    """
    True when the artifact must be recomputed: missing, not populated,
    another schema version, or older than the result feed.
    """
    if not is_populated(artifact):
        return True
    if artifact.get("version") != version:
        return True
    generated = _parse_timestamp(artifact.get("generated_at"))
    if generated is None:
        return True
    if source_timestamp is not None and source_timestamp > generated:
        return True
    return False


# ── Run log ─────────────────────────────────────────────────────────

def log_run_start(season, tournament: str) -> int:
    ensure_initialized()
    conn = get_conn()
    cur = conn.execute(
        "INSERT INTO validation_runs (season, tournament) VALUES (?, ?)",
        (str(season), str(tournament)),
    )
    run_id = cur.lastrowid
    conn.commit()
    conn.close()
    return run_id


def log_run_end(run_id: int, status: str, summary: dict = None, error: str = None):
    ensure_initialized()
    conn = get_conn()
    conn.execute(
        """UPDATE validation_runs
           SET status = ?, summary = ?, error = ?, finished_at = datetime('now')
           WHERE id = ?""",
        (status, json.dumps(summary, default=str) if summary is not None else None, error, run_id),
    )
    conn.commit()
    conn.close()


def get_runs(season=None, limit: int = 50) -> list[dict]:
    ensure_initialized()
    conn = get_conn()
    if season is None:
        rows = conn.execute("SELECT * FROM validation_runs ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM validation_runs WHERE season = ? ORDER BY id DESC LIMIT ?",
            (str(season), limit),
        ).fetchall()
    conn.close()
    out = []
    for r in rows:
        d = dict(r)
        d["summary"] = json.loads(d["summary"]) if d.get("summary") else None
        out.append(d)
    return out
