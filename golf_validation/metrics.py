"""
Metric definition table and value parsing.

Every metric the validation code touches is listed in metric_definitions.yaml
with its group and direction. "Lower is better" metrics (proximity, scoring
average, poor shots) are sign-flipped before any correlation or ranking so
that a bigger adjusted value always means better play.

Names missing from the table fall back to substring matching on the name.
Each fallback is logged once per process so unknown columns get noticed
and added to the table.
"""

import logging
import math
import os
import re
from dataclasses import dataclass
from typing import Optional

import yaml

from golf_validation import config, feature_flags
from golf_validation.errors import ConfigurationError

logger = logging.getLogger("metrics")

HIGHER = "higher"
LOWER = "lower"

# Lowercase substrings that mark a lower-is-better metric
LOWER_BETTER_HINTS = ("proximity", "prox", "scoring average", "poor shot")

GROUP_HINTS: list[tuple[tuple[str, ...], str]] = [
    (("driving", "ott"), "Driving Performance"),
    (("around", "arg"), "Around the Green"),
    (("putt",), "Putting"),
    (("approach",), "Approach"),
]


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    group: Optional[str]
    direction: str = HIGHER
    percentage: bool = False
    has_model: bool = False
    invert: bool = False
    source: str = "table"

    @property
    def lower_is_better(self) -> bool:
        return self.direction == LOWER


_TABLE: dict[str, MetricDefinition] = {}
_ALIASES: dict[str, str] = {}
_ORDER: list[str] = []
_LOADED = False
_WARNED: set[str] = set()


def load_metric_definitions(path: str = None) -> dict[str, MetricDefinition]:
    """Load (and cache) the metric table. Raises ConfigurationError if malformed."""
    global _TABLE, _ALIASES, _ORDER, _LOADED
    if _LOADED and path is None:
        return _TABLE

    path = path or config.METRIC_DEFINITIONS_PATH
    if not os.path.exists(path):
        raise ConfigurationError(f"Metric definition table not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {path}: {e}") from e

    table: dict[str, MetricDefinition] = {}
    order: list[str] = []
    for entry in raw.get("metrics") or []:
        name = str(entry.get("name") or "").strip()
        if not name:
            raise ConfigurationError(f"Metric entry without a name in {path}: {entry}")
        direction = str(entry.get("direction") or HIGHER).lower()
        if direction not in (HIGHER, LOWER):
            raise ConfigurationError(f"{name}: direction must be 'higher' or 'lower', got {direction!r}")
        table[name] = MetricDefinition(
            name=name,
            group=entry.get("group"),
            direction=direction,
            percentage=bool(entry.get("percentage", False)),
            has_model=bool(entry.get("has_model", False)),
            invert=bool(entry.get("invert", False)),
        )
        order.append(name)

    _TABLE = table
    _ALIASES = {str(k): str(v) for k, v in (raw.get("aliases") or {}).items()}
    _ORDER = order
    _LOADED = True
    return _TABLE


def reset():
    """Drop the cached table (tests)."""
    global _TABLE, _ALIASES, _ORDER, _LOADED
    _TABLE, _ALIASES, _ORDER = {}, {}, []
    _LOADED = False
    _WARNED.clear()


def normalize_metric_name(name) -> str:
    """Trim a metric label and resolve known aliases."""
    raw = str(name or "").strip()
    load_metric_definitions()
    return _ALIASES.get(raw, raw)


def _heuristic_definition(name: str) -> MetricDefinition:
    lowered = name.lower()
    direction = LOWER if any(hint in lowered for hint in LOWER_BETTER_HINTS) else HIGHER
    group = None
    for hints, group_name in GROUP_HINTS:
        if any(hint in lowered for hint in hints):
            group = group_name
            break
    if name not in _WARNED:
        _WARNED.add(name)
        logger.warning(
            "Metric '%s' not in definition table; using name heuristic (direction=%s, group=%s)",
            name, direction, group, extra={"metric": name},
        )
    return MetricDefinition(name=name, group=group, direction=direction, source="heuristic")


def get_definition(name) -> MetricDefinition:
    """Return the definition for a metric, falling back to the name heuristic."""
    table = load_metric_definitions()
    normalized = normalize_metric_name(name)
    definition = table.get(normalized)
    if definition is not None:
        return definition
    if feature_flags.is_enabled("heuristic_metric_fallback"):
        return _heuristic_definition(normalized)
    return MetricDefinition(name=normalized, group=None, source="unknown")


def is_lower_better(name) -> bool:
    return get_definition(name).lower_is_better


def get_metric_group(name) -> Optional[str]:
    return get_definition(name).group


def metric_order() -> list[str]:
    """Canonical metric order (the table's order)."""
    load_metric_definitions()
    return list(_ORDER)


def metric_groupings() -> dict[str, list[str]]:
    """Group name -> metric names, in table order."""
    groups: dict[str, list[str]] = {}
    for name in metric_order():
        group = _TABLE[name].group
        if group:
            groups.setdefault(group, []).append(name)
    return groups


def metric_sort_key(name: str) -> tuple[int, str]:
    index = {metric: i for i, metric in enumerate(metric_order())}
    return (index.get(name, len(index)), name)


# ── Value parsing ───────────────────────────────────────────────────

def parse_numeric_value(value, percentage: bool = False) -> Optional[float]:
    """
    Parse a cell into a float, or None when it is blank or non-numeric.

    "1,234" -> 1234.0, "65.2%" -> 0.652, "0.652" -> 0.652.
    Values written with a % sign, and any value of a percentage metric,
    are treated as already-percent (and divided by 100) when above 1.5.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
        had_percent = False
    else:
        raw = str(value).strip()
        if not raw:
            return None
        had_percent = "%" in raw
        cleaned = raw.replace(",", "").replace("%", "")
        try:
            parsed = float(cleaned)
        except ValueError:
            return None
    if not math.isfinite(parsed):
        return None
    if (had_percent or percentage) and parsed > config.PERCENT_DETECTION_THRESHOLD:
        return parsed / 100.0
    return parsed


def parse_metric_value(name, value) -> Optional[float]:
    """Parse a value for a named metric, applying its percentage scaling."""
    return parse_numeric_value(value, percentage=get_definition(name).percentage)


_TIED_SUFFIX = re.compile(r"^(\d+)T$")


def parse_finish_position(value) -> Optional[int]:
    """
    Parse a finish like '1', 'T12', '12T'. CUT/WD/DQ and blanks give None
    (the caller applies the field fallback).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(value)
    raw = str(value).strip().upper()
    if not raw or raw in config.FINISH_MISSING_TOKENS:
        return None
    if raw.startswith("T"):
        raw = raw[1:]
    else:
        m = _TIED_SUFFIX.match(raw)
        if m:
            raw = m.group(1)
    try:
        return int(float(raw))
    except ValueError:
        return None
