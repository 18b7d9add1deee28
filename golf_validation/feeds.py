"""
Load the per-event prediction and result feeds.

Feeds live under <data_root>/<season>/<tournament-slug>/:

  pre_event/<slug>_pre_event_rankings.json | .csv   model ranking (prediction feed)
  post_event/<slug>_results.json | .csv             actual finish + metrics (result feed)
  post_event/tournament_results.json | .csv         legacy result feed name

CSV exports may carry banner rows above the real header, so the header is
located as the row matching the most required column names. Missing files
give an empty feed (source "missing"); a file that exists but cannot be
understood raises FeedError.
"""

import csv
import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from golf_validation import config
from golf_validation.errors import ConfigurationError, FeedError
from golf_validation.metrics import (
    normalize_metric_name,
    parse_finish_position,
    parse_metric_value,
)

logger = logging.getLogger("feeds")

MODEL_SUFFIX = " - Model"

ID_KEYS = ("dgId", "dg_id", "DG ID", "playerId", "player_id")
NAME_KEYS = ("playerName", "player_name", "name", "Player Name")
FINISH_KEYS = ("finishPosition", "Finish Position", "finish", "position")
RANK_KEYS = ("rank", "Rank", "Model Rank", "predictedRank")

# Columns on the rankings / results sheets that are never metrics
NON_METRIC_COLUMNS = {
    "dg id", "player name", "rank", "model rank", "finish position", "finish",
    "score", "performance analysis", "war", "position",
}


@dataclass(frozen=True)
class PlayerPrediction:
    player_id: str
    predicted_rank: int
    name: str = ""
    # Model inputs carried on the rankings sheet (metric -> value)
    metrics: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PlayerResult:
    player_id: str
    finish_position: int
    name: str = ""
    finish_text: str = ""
    metrics: dict = field(default_factory=dict)
    model_metrics: dict = field(default_factory=dict)
    # True when the position came from the max+1 fallback (CUT/WD/missing)
    fallback_finish: bool = False


@dataclass
class Feed:
    source: str
    records: list
    path: Optional[str] = None
    modified_at: Optional[float] = None

    def __len__(self):
        return len(self.records)


# ── Tournament naming ───────────────────────────────────────────────

def slugify_tournament(value) -> str:
    """'AT&T Pebble Beach Pro-Am' -> 'atandt-pebble-beach-pro-am'"""
    raw = str(value or "").strip().lower().replace("&", "and")
    return re.sub(r"[^a-z0-9]+", "-", raw).strip("-")


def display_tournament_name(value) -> str:
    """'genesis-invitational' -> 'Genesis Invitational'"""
    raw = re.sub(r"[-_]+", " ", str(value or "").strip())
    raw = re.sub(r"\s+", " ", raw).lower()
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), raw).strip()


# ── Path resolution ─────────────────────────────────────────────────

def season_dir(data_root: str, season) -> str:
    return os.path.join(data_root, str(season))


def output_dir(data_root: str, season) -> str:
    return os.path.join(season_dir(data_root, season), config.OUTPUT_DIR_NAME)


def list_season_tournament_dirs(data_root: str, season) -> list[str]:
    """Tournament directories for a season, sorted, excluding the output dir."""
    root = season_dir(data_root, season)
    if not os.path.isdir(root):
        return []
    return [
        os.path.join(root, name)
        for name in sorted(os.listdir(root))
        if os.path.isdir(os.path.join(root, name))
        and name != config.OUTPUT_DIR_NAME
        and not name.startswith(".")
    ]


def resolve_tournament_dir(data_root: str, season, tournament: str) -> str:
    slug = slugify_tournament(tournament)
    root = season_dir(data_root, season)
    exact = os.path.join(root, slug)
    if os.path.isdir(exact) or not os.path.isdir(root):
        return exact
    matches = [
        path for path in list_season_tournament_dirs(data_root, season)
        if slug in os.path.basename(path) or os.path.basename(path) in slug
    ]
    if len(matches) > 1:
        names = ", ".join(os.path.basename(p) for p in matches)
        raise ConfigurationError(f"Tournament '{tournament}' is ambiguous in season {season}: {names}")
    return matches[0] if matches else exact


@dataclass(frozen=True)
class EventPaths:
    slug: str
    tournament_dir: str
    rankings_json: str
    rankings_csv: str
    results_json: str
    results_csv: str
    legacy_results_json: str
    legacy_results_csv: str


def event_paths(tournament_dir: str) -> EventPaths:
    slug = os.path.basename(os.path.normpath(tournament_dir))
    pre = os.path.join(tournament_dir, "pre_event")
    post = os.path.join(tournament_dir, "post_event")
    return EventPaths(
        slug=slug,
        tournament_dir=tournament_dir,
        rankings_json=os.path.join(pre, f"{slug}_pre_event_rankings.json"),
        rankings_csv=os.path.join(pre, f"{slug}_pre_event_rankings.csv"),
        results_json=os.path.join(post, f"{slug}_results.json"),
        results_csv=os.path.join(post, f"{slug}_results.csv"),
        legacy_results_json=os.path.join(post, "tournament_results.json"),
        legacy_results_csv=os.path.join(post, "tournament_results.csv"),
    )


# ── Parsing helpers ─────────────────────────────────────────────────

def _normalize_header(value) -> str:
    return re.sub(r"\s+", " ", str(value or "").strip().strip('"')).lower()


def _first(row: dict, keys) -> Optional[object]:
    for key in keys:
        val = row.get(key)
        if val is not None and str(val).strip() != "":
            return val
    return None


def _mtime(path: str) -> Optional[float]:
    try:
        return os.path.getmtime(path)
    except OSError:
        return None


def read_sheet(path: str, required_headers: list[str]) -> pd.DataFrame:
    """
    Read a CSV export into a DataFrame of strings, locating the header row
    as the row that contains the most of required_headers.
    """
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            rows = list(csv.reader(f))
    except (OSError, UnicodeDecodeError) as e:
        raise FeedError(path, f"unreadable CSV ({e})") from e

    wanted = [_normalize_header(h) for h in required_headers]
    best_index, best_score = -1, 0
    for idx, row in enumerate(rows):
        cells = {_normalize_header(c) for c in row}
        score = sum(1 for h in wanted if h in cells)
        if score > best_score:
            best_index, best_score = idx, score
    if best_index == -1:
        raise FeedError(path, f"no header row with any of {required_headers}")

    headers = [str(h).strip().strip('"') for h in rows[best_index]]
    width = len(headers)
    body = [(r + [""] * width)[:width] for r in rows[best_index + 1:] if any(c.strip() for c in r)]
    df = pd.DataFrame(body, columns=headers, dtype=str)
    # Duplicate headers: keep the first occurrence
    return df.loc[:, ~df.columns.duplicated()]


def _column(df: pd.DataFrame, *names) -> Optional[str]:
    lookup = {_normalize_header(c): c for c in df.columns}
    for name in names:
        col = lookup.get(_normalize_header(name))
        if col is not None:
            return col
    return None


def _metric_columns(columns) -> tuple[dict, dict]:
    """Split sheet columns into actual-metric and model-metric column maps."""
    actual, model = {}, {}
    for col in columns:
        label = str(col).strip()
        if not label or _normalize_header(label) in NON_METRIC_COLUMNS:
            continue
        if "trend" in label.lower():
            continue
        if label.lower().endswith(MODEL_SUFFIX.lower()):
            base = normalize_metric_name(label[: -len(MODEL_SUFFIX)].strip())
            model[base] = col
        else:
            actual[normalize_metric_name(label)] = col
    return actual, model


def _parse_metrics(row, columns: dict) -> dict:
    out = {}
    for metric, col in columns.items():
        value = parse_metric_value(metric, row.get(col))
        if value is not None:
            out[metric] = value
    return out


# ── Prediction feed ─────────────────────────────────────────────────

def _predictions_from_records(records: list[dict], max_rows: int) -> list[PlayerPrediction]:
    predictions = []
    for idx, row in enumerate(records):
        player_id = str(_first(row, ID_KEYS) or "").strip()
        name = str(_first(row, NAME_KEYS) or "").strip()
        if not player_id or not name:
            continue
        rank = parse_finish_position(_first(row, RANK_KEYS))
        raw_metrics = row.get("metrics") if isinstance(row.get("metrics"), dict) else {}
        metrics = {}
        for key, value in raw_metrics.items():
            metric = normalize_metric_name(key)
            parsed = parse_metric_value(metric, value)
            if parsed is not None:
                metrics[metric] = parsed
        predictions.append(PlayerPrediction(
            player_id=player_id,
            predicted_rank=rank if rank and rank > 0 else idx + 1,
            name=name,
            metrics=metrics,
        ))
    return predictions[:max_rows]


def load_predictions(json_path: str = None, csv_path: str = None,
                     max_rows: int = config.MAX_PREDICTION_ROWS) -> Feed:
    """Load the model's pre-event ranking. JSON wins over CSV."""
    if json_path and os.path.exists(json_path):
        payload = _read_json(json_path)
        players = payload.get("players") if isinstance(payload, dict) else payload
        if not isinstance(players, list):
            raise FeedError(json_path, "expected a 'players' list")
        return Feed("json", _predictions_from_records(players, max_rows), json_path, _mtime(json_path))

    if not csv_path or not os.path.exists(csv_path):
        return Feed("missing", [])

    df = read_sheet(csv_path, ["DG ID", "Player Name", "Rank"])
    id_col = _column(df, "DG ID")
    name_col = _column(df, "Player Name")
    rank_col = _column(df, "Rank", "Model Rank")
    if id_col is None:
        raise FeedError(csv_path, "rankings sheet has no 'DG ID' column")
    metric_cols, _ = _metric_columns(df.columns)

    records = []
    for _, row in df.iterrows():
        records.append({
            "dgId": row.get(id_col),
            "name": row.get(name_col) if name_col else "",
            "rank": row.get(rank_col) if rank_col else None,
            "metrics": _parse_metrics(row, metric_cols),
        })
    return Feed("csv", _predictions_from_records(records, max_rows), csv_path, _mtime(csv_path))


# ── Result feed ─────────────────────────────────────────────────────

def apply_finish_fallback(raw_results: list[dict]) -> list[PlayerResult]:
    """
    Give players without a numeric finish (CUT, WD, DQ, blank) the position
    one worse than the worst observed finish. Players are dropped only when
    the whole field lacks a numeric finish.
    """
    positions = [r["finish_position"] for r in raw_results if r.get("finish_position") is not None]
    fallback = max(positions) + 1 if positions else None

    results = []
    for r in raw_results:
        position = r.get("finish_position")
        used_fallback = position is None
        if used_fallback:
            position = fallback
        if position is None or not r.get("player_id"):
            continue
        results.append(PlayerResult(
            player_id=r["player_id"],
            finish_position=position,
            name=r.get("name", ""),
            finish_text=r.get("finish_text", ""),
            metrics=r.get("metrics", {}),
            model_metrics=r.get("model_metrics", {}),
            fallback_finish=used_fallback,
        ))
    return results


def _result_record(row: dict, actual_cols: dict, model_cols: dict) -> dict:
    finish_raw = _first(row, FINISH_KEYS)
    return {
        "player_id": str(_first(row, ID_KEYS) or "").strip(),
        "name": str(_first(row, NAME_KEYS) or "").strip(),
        "finish_text": "" if finish_raw is None else str(finish_raw).strip(),
        "finish_position": parse_finish_position(finish_raw),
        "metrics": _parse_metrics(row, actual_cols),
        "model_metrics": _parse_metrics(row, model_cols),
    }


def _load_results_json(path: str) -> list[PlayerResult]:
    payload = _read_json(path)
    if isinstance(payload, dict):
        rows = payload.get("results")
        if not isinstance(rows, list):
            rows = payload.get("resultsCurrent")
    else:
        rows = payload
    if not isinstance(rows, list):
        raise FeedError(path, "expected a results list")
    rows = [r for r in rows if isinstance(r, dict)]
    if not rows:
        return []

    columns = []
    for r in rows:
        for key in r:
            if key not in columns:
                columns.append(key)
    actual_cols, model_cols = _metric_columns([c for c in columns if c not in ID_KEYS + NAME_KEYS + FINISH_KEYS])
    return apply_finish_fallback([_result_record(r, actual_cols, model_cols) for r in rows])


def _load_results_csv(path: str) -> list[PlayerResult]:
    df = read_sheet(path, ["DG ID", "Player Name", "Finish Position"])
    if _column(df, "DG ID") is None:
        raise FeedError(path, "results sheet has no 'DG ID' column")
    actual_cols, model_cols = _metric_columns(df.columns)
    records = [_result_record(row.to_dict(), actual_cols, model_cols) for _, row in df.iterrows()]
    return apply_finish_fallback(records)


def load_results(paths: EventPaths) -> Feed:
    """Load the result feed, trying the JSON, legacy JSON, CSV, legacy CSV files in turn."""
    candidates = [
        ("json", paths.results_json, _load_results_json),
        ("legacy_json", paths.legacy_results_json, _load_results_json),
        ("results_csv", paths.results_csv, _load_results_csv),
        ("legacy_csv", paths.legacy_results_csv, _load_results_csv),
    ]
    for source, path, loader in candidates:
        if not os.path.exists(path):
            continue
        results = loader(path)
        if results:
            return Feed(source, results, path, _mtime(path))
        logger.debug("Result feed %s is empty, trying next source", path)
    return Feed("missing", [])


def _read_json(path: str):
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise FeedError(path, f"unreadable JSON ({e})") from e


def read_event_id(paths: EventPaths) -> Optional[str]:
    """Event id recorded in the results JSON, if any."""
    if not os.path.exists(paths.results_json):
        return None
    payload = _read_json(paths.results_json)
    if isinstance(payload, dict):
        event_id = payload.get("eventId") or payload.get("event_id")
        return None if event_id is None else str(event_id)
    return None
