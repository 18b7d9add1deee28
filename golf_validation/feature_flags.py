"""
Feature flags loaded from YAML.

Optional code paths (season calibration, stability analysis, the metric-name
heuristic, skip-if-fresh) check flags here so they can be toggled without
a code change.
"""

import os
import logging

import yaml

logger = logging.getLogger(__name__)

FLAGS_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "feature_flags.yaml")

# Used when feature_flags.yaml is absent or omits a flag
DEFAULT_FLAGS: dict[str, bool] = {
    "skip_fresh_analysis": True,
    "season_calibration": True,
    "metric_stability": True,
    "heuristic_metric_fallback": True,
}

_FLAGS: dict[str, bool] = {}
_LOADED = False


def _load_flags() -> dict[str, bool]:
    global _LOADED, _FLAGS
    if _LOADED:
        return _FLAGS
    flags = dict(DEFAULT_FLAGS)
    if os.path.exists(FLAGS_PATH):
        try:
            with open(FLAGS_PATH) as f:
                data = yaml.safe_load(f) or {}
            flags.update({k: bool(v) for k, v in data.items() if isinstance(v, (bool, int))})
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not load feature_flags.yaml: %s", e)
    _FLAGS = flags
    _LOADED = True
    return _FLAGS


def is_enabled(flag_name: str) -> bool:
    """Return True if the feature flag is enabled, False otherwise."""
    flags = _load_flags()
    return flags.get(flag_name, False)


def set_flag(flag_name: str, value: bool):
    """Override a flag for the current process (tests, CLI switches)."""
    _load_flags()[flag_name] = bool(value)


def reset():
    """Forget cached flags so the next lookup re-reads the YAML file."""
    global _LOADED, _FLAGS
    _FLAGS = {}
    _LOADED = False


def get_all() -> dict[str, bool]:
    """Return current flag state (for debugging)."""
    return _load_flags().copy()
