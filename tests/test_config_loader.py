"""Tests for profiles, settings overrides and tournaments.yaml."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from golf_validation import config, feature_flags
from golf_validation.config_loader import (
    ProfileNotFoundError,
    ValidationSettings,
    list_profiles,
    load_settings,
    load_tournament_config,
    serialize_overrides,
    tournament_settings,
)
from golf_validation.errors import ConfigurationError


def _write(text: str) -> Path:
    fd, path = tempfile.mkstemp(suffix=".yaml")
    with os.fdopen(fd, "w") as f:
        f.write(text)
    return Path(path)


def test_defaults_match_config():
    settings = load_settings()
    assert settings.min_metric_samples == config.MIN_METRIC_CORRELATION_SAMPLES
    assert settings.course_type_margin == config.COURSE_TYPE_MARGIN
    assert settings.bias_chronic_z == config.BIAS_CHRONIC_Z


def test_strict_profile():
    settings = load_settings("strict")
    assert settings.min_metric_samples == 10
    assert settings.course_type_margin == 1.5
    assert settings.top_n_success == config.TOP_N_SUCCESS


def test_overrides_beat_profile():
    settings = load_settings("strict", {"course_type_margin": 2.0, "bias_min_samples": None})
    assert settings.course_type_margin == 2.0
    assert settings.bias_min_samples == 40


def test_unknown_profile():
    with pytest.raises(ProfileNotFoundError):
        load_settings("no-such-profile")


def test_unknown_setting_rejected():
    with pytest.raises(ConfigurationError):
        ValidationSettings().merge({"not_a_setting": 1})


def test_list_profiles():
    assert {"default", "strict", "exploratory"} <= set(list_profiles())


def test_serialize_overrides_sorted():
    assert serialize_overrides({"b": 1, "a": 2}) == '{"a": 2, "b": 1}'


def test_tournament_config_lookup():
    path = _write(
        "tournaments:\n"
        "  \"2026/test-open\":\n"
        "    course_type: power\n"
        "    event_id: 12\n"
        "  \"test-open\":\n"
        "    course_type: BALANCED\n"
    )
    try:
        tournaments = load_tournament_config(path)
    finally:
        path.unlink()
    assert tournament_settings("2026", "test-open", tournaments) == {"course_type": "POWER", "event_id": "12"}
    assert tournament_settings("2025", "test-open", tournaments)["course_type"] == "BALANCED"
    assert tournament_settings("2025", "other", tournaments) == {}


def test_tournament_config_bad_course_type():
    path = _write("tournaments:\n  test-open:\n    course_type: LINKS\n")
    try:
        with pytest.raises(ConfigurationError):
            load_tournament_config(path)
    finally:
        path.unlink()


def test_tournament_config_missing_file():
    assert load_tournament_config(Path(tempfile.gettempdir()) / "no_tournaments.yaml") == {}


def test_feature_flag_override():
    try:
        assert feature_flags.is_enabled("season_calibration")
        feature_flags.set_flag("season_calibration", False)
        assert not feature_flags.is_enabled("season_calibration")
        assert feature_flags.get_all()["season_calibration"] is False
    finally:
        feature_flags.reset()
    assert not feature_flags.is_enabled("no_such_flag")
