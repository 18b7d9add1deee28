"""
Weight template store.

A template gives, per course type, a weight for each metric group and a
weight for each metric inside its group. Both levels are read as magnitudes
and renormalised: group weights over the template, metric weights within
their group. Legacy templates that marked "historically backwards" metrics
with a negative weight are accepted; the sign becomes an entry in
`inverted` and the magnitude is used as the weight.
"""

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

import yaml

from golf_validation import config
from golf_validation.errors import TemplateNotFoundError
from golf_validation.metrics import normalize_metric_name

logger = logging.getLogger("templates")


@dataclass(frozen=True)
class WeightTemplate:
    name: str
    group_weights: Mapping[str, float]
    # group -> metric -> weight (sums to 1 within each group with any weight)
    metric_weights: Mapping[str, Mapping[str, float]]
    inverted: frozenset = field(default_factory=frozenset)
    description: str = ""

    def group_weight(self, group: str) -> float:
        return self.group_weights.get(group, 0.0)

    def metric_weight(self, metric: str) -> float:
        for metrics in self.metric_weights.values():
            if metric in metrics:
                return metrics[metric]
        return 0.0

    def group_of(self, metric: str) -> Optional[str]:
        for group, metrics in self.metric_weights.items():
            if metric in metrics:
                return group
        return None


def _as_weight(value) -> float:
    if isinstance(value, dict):
        value = value.get("weight", 0)
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def normalize_weights(raw: Mapping[str, float]) -> dict[str, float]:
    """Scale magnitudes to sum to 1; all-zero input maps to all zeros."""
    total = sum(abs(v) for v in raw.values())
    return {k: (abs(v) / total if total > 0 else 0.0) for k, v in raw.items()}


def build_template(name: str, body: dict) -> WeightTemplate:
    """Build an immutable, normalised template from one YAML/JSON entry."""
    if not isinstance(body, dict):
        raise TemplateNotFoundError(f"Template {name} is not a mapping")
    raw_groups = {str(g): _as_weight(w) for g, w in (body.get("group_weights") or {}).items()}
    raw_metrics = body.get("metric_weights") or {}
    if not raw_groups or not raw_metrics:
        raise TemplateNotFoundError(f"Template {name} needs group_weights and metric_weights")

    inverted = {normalize_metric_name(m) for m in body.get("inverted") or []}
    per_group: dict[str, dict[str, float]] = {}
    for group, metrics in raw_metrics.items():
        if not isinstance(metrics, dict):
            raise TemplateNotFoundError(f"Template {name}: metrics for {group} must be a mapping")
        weights = {}
        for metric, value in metrics.items():
            metric_name = normalize_metric_name(metric)
            weight = _as_weight(value)
            if weight < 0:
                logger.warning(
                    "Template %s: negative weight for %s read as inverted metric",
                    name, metric_name, extra={"metric": metric_name, "course_type": name},
                )
                inverted.add(metric_name)
            weights[metric_name] = weight
        per_group[str(group)] = weights

    # Group sums first, then a single mapping pass
    metric_weights = {
        group: MappingProxyType(normalize_weights(weights))
        for group, weights in per_group.items()
    }
    return WeightTemplate(
        name=name,
        group_weights=MappingProxyType(normalize_weights(raw_groups)),
        metric_weights=MappingProxyType(metric_weights),
        inverted=frozenset(inverted),
        description=str(body.get("description") or ""),
    )


class TemplateStore:
    """Templates keyed by course type, loaded from weight_templates.yaml."""

    def __init__(self, templates: Mapping[str, WeightTemplate]):
        self._templates = dict(templates)

    @classmethod
    def from_file(cls, path: str = None) -> "TemplateStore":
        path = path or config.WEIGHT_TEMPLATES_PATH
        if not os.path.exists(path):
            raise TemplateNotFoundError(f"Weight template file not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise TemplateNotFoundError(f"Could not parse {path}: {e}") from e
        section = raw.get("templates", raw)
        if not isinstance(section, dict) or not section:
            raise TemplateNotFoundError(f"No templates defined in {path}")
        return cls({str(name).upper(): build_template(str(name).upper(), body)
                    for name, body in section.items()})

    def names(self) -> list[str]:
        return list(self._templates)

    def has(self, course_type: str) -> bool:
        return str(course_type or "").upper() in self._templates

    def get(self, course_type: str) -> WeightTemplate:
        key = str(course_type or "").upper()
        template = self._templates.get(key)
        if template is None:
            raise TemplateNotFoundError(
                f"No weight template for course type '{course_type}' "
                f"(available: {', '.join(self._templates) or 'none'})"
            )
        return template

    def group_weights(self, course_type: str) -> Mapping[str, float]:
        return self.get(course_type).group_weights


_STORE: Optional[TemplateStore] = None


def get_store() -> TemplateStore:
    """Process-wide store loaded from the configured template file."""
    global _STORE
    if _STORE is None:
        _STORE = TemplateStore.from_file()
    return _STORE


def reset():
    global _STORE
    _STORE = None
