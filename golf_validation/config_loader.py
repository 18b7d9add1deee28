"""Configuration helpers (profiles.yaml, CLI overrides)."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from golf_validation import config
from golf_validation.errors import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_PROFILES_PATH = PROJECT_ROOT / "profiles.yaml"


@dataclass
class ProfileConfig:
    """Represents a resolved run configuration profile."""

    name: str
    values: Dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None


@dataclass(frozen=True)
class ValidationSettings:
    """Tunable thresholds threaded through one validation run."""

    min_rank_samples: int = config.MIN_RANK_CORRELATION_SAMPLES
    min_metric_samples: int = config.MIN_METRIC_CORRELATION_SAMPLES
    min_top_n_samples: int = config.MIN_TOP_N_CORRELATION_SAMPLES
    top_n_success: int = config.TOP_N_SUCCESS
    course_type_top_metrics: int = config.COURSE_TYPE_TOP_METRICS
    course_type_margin: float = config.COURSE_TYPE_MARGIN
    bias_min_samples: int = config.BIAS_MIN_SAMPLES
    bias_stable_z: float = config.BIAS_STABLE_Z
    bias_chronic_z: float = config.BIAS_CHRONIC_Z
    stability_high: float = config.STABILITY_HIGH
    stability_moderate: float = config.STABILITY_MODERATE
    max_prediction_rows: int = config.MAX_PREDICTION_ROWS

    def merge(self, overrides: Dict[str, Any]) -> "ValidationSettings":
        known = {f.name for f in fields(self)}
        unknown = sorted(k for k in overrides if k not in known)
        if unknown:
            raise ConfigurationError(f"Unknown setting(s): {', '.join(unknown)}")
        data = asdict(self)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return ValidationSettings(**data)


class ProfileNotFoundError(ConfigurationError):
    pass


def _load_profiles_file(path: Path = DEFAULT_PROFILES_PATH) -> Dict[str, ProfileConfig]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    profiles_section = raw.get("profiles", raw)
    profiles: Dict[str, ProfileConfig] = {}
    for name, body in profiles_section.items():
        if not isinstance(body, dict):
            continue
        description = body.get("description")
        values = {k: v for k, v in body.items() if k != "description"}
        profiles[name] = ProfileConfig(name=name, values=values, description=description)
    return profiles


def list_profiles(path: Path = DEFAULT_PROFILES_PATH) -> Dict[str, ProfileConfig]:
    """Return all available profiles (if the file exists)."""
    return _load_profiles_file(path)


def resolve_profile(
    profile_name: str,
    overrides: Optional[Dict[str, Any]] = None,
    path: Path = DEFAULT_PROFILES_PATH,
) -> Dict[str, Any]:
    """Return a dict merged from the profile plus explicit overrides."""
    profiles = _load_profiles_file(path)
    profile = profiles.get(profile_name)
    if not profile:
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in {path}. "
            "Create it or choose another profile."
        )

    resolved = dict(profile.values)
    if overrides:
        for key, value in overrides.items():
            if value is not None:
                resolved[key] = value
    return resolved


def load_settings(
    profile_name: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    path: Path = DEFAULT_PROFILES_PATH,
) -> ValidationSettings:
    """Build ValidationSettings from defaults, an optional profile and overrides."""
    settings = ValidationSettings()
    if profile_name:
        return settings.merge(resolve_profile(profile_name, overrides, path))
    if overrides:
        return settings.merge(overrides)
    return settings


def serialize_overrides(overrides: Dict[str, Any]) -> str:
    """Return a JSON string for logging debug purposes."""
    return json.dumps(overrides, sort_keys=True, default=str)


def load_tournament_config(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """
    Per-event settings from tournaments.yaml, keyed "<season>/<slug>" and
    "<slug>" (any season). Each value may set course_type and event_id.
    """
    path = Path(path or config.TOURNAMENTS_CONFIG_PATH)
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {path}: {e}") from e

    out: Dict[str, Dict[str, Any]] = {}
    for key, body in (raw.get("tournaments") or {}).items():
        if not isinstance(body, dict):
            continue
        course_type = body.get("course_type")
        if course_type and str(course_type).upper() not in config.COURSE_TYPES:
            raise ConfigurationError(f"{path}: unknown course_type {course_type!r} for {key}")
        out[str(key)] = {
            "course_type": str(course_type).upper() if course_type else None,
            "event_id": None if body.get("event_id") is None else str(body.get("event_id")),
        }
    return out


def tournament_settings(season, slug: str, tournaments: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return tournaments.get(f"{season}/{slug}") or tournaments.get(slug) or {}
