"""Tests for weight templates and the recommendation engine."""

import math
import os
import sys
import tempfile

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from golf_validation.errors import TemplateNotFoundError
from golf_validation.models.metric_analysis import CorrelationSummaryEntry
from golf_validation.models.weights import (
    build_weight_guide,
    group_shares,
    group_totals,
    percent_change,
    recommend_from_summary,
    recommend_weights,
)
from golf_validation.templates import TemplateStore, build_template, normalize_weights

BODY = {
    "group_weights": {"Driving Performance": 2, "Putting": 1, "Around the Green": 1},
    "metric_weights": {
        "Driving Performance": {"Driving Distance": 0.5, "Driving Accuracy": 0.25, "SG OTT": 0.25},
        "Putting": {"SG Putting": 1.0},
        "Around the Green": {"SG Around Green": 0.0},
    },
}


# ── Templates ───────────────────────────────────────────────────────

def test_normalize_weights():
    assert normalize_weights({"a": 2, "b": 2}) == {"a": 0.5, "b": 0.5}
    assert normalize_weights({"a": 0, "b": 0}) == {"a": 0.0, "b": 0.0}


def test_template_normalised_on_load():
    template = build_template("POWER", BODY)
    assert math.isclose(sum(template.group_weights.values()), 1.0)
    assert template.group_weight("Driving Performance") == 0.5
    assert template.metric_weight("Driving Distance") == 0.5
    assert template.group_of("SG Putting") == "Putting"
    assert template.group_of("Unknown") is None


def test_template_is_read_only():
    template = build_template("POWER", BODY)
    with pytest.raises(TypeError):
        template.group_weights["Putting"] = 1.0


def test_negative_weight_read_as_inverted():
    body = {
        "group_weights": {"Course Management": 1},
        "metric_weights": {"Course Management": {"Scrambling": 0.5, "Poor Shots": -0.5}},
    }
    template = build_template("TECHNICAL", body)
    assert "Poor Shot Avoidance" in template.inverted
    assert template.metric_weight("Poor Shot Avoidance") == 0.5


def test_template_without_tables_rejected():
    with pytest.raises(TemplateNotFoundError):
        build_template("POWER", {"group_weights": {}})


def test_store_lookup():
    store = TemplateStore({"POWER": build_template("POWER", BODY)})
    assert store.has("power")
    assert not store.has("TECHNICAL")
    with pytest.raises(TemplateNotFoundError):
        store.get("TECHNICAL")


def test_store_missing_file():
    with pytest.raises(TemplateNotFoundError):
        TemplateStore.from_file(os.path.join(tempfile.gettempdir(), "no_such_templates.yaml"))


def test_shipped_templates_load():
    store = TemplateStore.from_file()
    for course_type in ("POWER", "TECHNICAL", "BALANCED"):
        template = store.get(course_type)
        for group, metrics in template.metric_weights.items():
            total = sum(metrics.values())
            assert total == 0 or math.isclose(total, 1.0), f"{course_type}/{group} sums to {total}"


# ── Recommendations ─────────────────────────────────────────────────

def test_group_shares_proportional_to_magnitude():
    shares = group_shares({"a": 0.5, "b": -0.25, "c": 0.0})
    assert math.isclose(shares["a"], 2 / 3)
    assert math.isclose(shares["b"], 1 / 3)
    assert shares["c"] == 0.0


def test_group_shares_no_signal_all_zero():
    assert group_shares({"a": 0.0, "b": 0.0}) == {"a": 0.0, "b": 0.0}


def test_percent_change_against_zero_template():
    assert percent_change(0.2, 0.0) == "N/A"
    assert math.isclose(percent_change(0.1, 0.5), 0.2)


def test_recommendations_sum_to_one_per_group():
    template = build_template("POWER", BODY)
    correlations = {"Driving Distance": 0.4, "Driving Accuracy": -0.1, "SG OTT": 0.3, "SG Putting": 0.2}
    recs = recommend_weights(correlations, template)
    assert [r.metric for r in recs] == [
        "Driving Distance", "Driving Accuracy", "SG OTT", "SG Putting", "SG Around Green",
    ]
    totals = group_totals(recs)
    assert math.isclose(totals["Driving Performance"], 1.0)
    assert math.isclose(totals["Putting"], 1.0)
    assert totals["Around the Green"] == 0.0, "No signal means no weight, not an equal split"


def test_recommendation_fields():
    template = build_template("POWER", BODY)
    recs = {r.metric: r for r in recommend_weights({"Driving Distance": 0.4, "SG OTT": 0.4}, template)}
    distance = recs["Driving Distance"]
    assert math.isclose(distance.recommended_weight, 0.5)
    assert math.isclose(distance.gap, 0.0, abs_tol=1e-12)
    assert distance.group_weight == 0.5
    assert recs["Driving Accuracy"].recommended_weight == 0.0
    assert math.isclose(recs["Driving Accuracy"].pct_change, -1.0)
    assert recs["SG Around Green"].pct_change == "N/A"
    assert recs["SG Around Green"].to_dict()["pct_change"] == "N/A"


def test_recommend_from_summary():
    template = build_template("POWER", BODY)
    summary = [
        CorrelationSummaryEntry("Driving Distance", avg_delta=5.0, avg_correlation=0.3, samples=4),
        CorrelationSummaryEntry("SG OTT", avg_delta=0.2, avg_correlation=0.1, samples=4),
    ]
    recs = {r.metric: r for r in recommend_from_summary(summary, template)}
    assert math.isclose(recs["Driving Distance"].recommended_weight, 0.75)
    assert math.isclose(recs["SG OTT"].recommended_weight, 0.25)


def test_weight_guide_covers_templated_types():
    store = TemplateStore({"POWER": build_template("POWER", BODY)})
    guide = build_weight_guide({"POWER": []}, store, {"POWER": 3})
    assert list(guide) == ["POWER"]
    assert guide["POWER"]["tournaments"] == 3
    assert all(r.recommended_weight == 0.0 for r in guide["POWER"]["recommendations"])
