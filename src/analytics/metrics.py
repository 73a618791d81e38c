from __future__ import annotations

from typing import Any, Dict, NamedTuple, Optional

from src.models.master_report import Activity
from src.shared.values import safe_parse_json

# Report-shaped payloads wrap the metric mapping one level down under these names.
NESTED_METRIC_KEYS = ("currentMetric", "metrics_data")
HISTORY_SCAN_ORDER = ("monthly", "quarterly", "annual")


class OverallMetrics(NamedTuple):
    target: Any
    previous: Any
    current: Any


def _first_key(payload: Any) -> Optional[str]:
    parsed = safe_parse_json(payload)
    if isinstance(parsed, dict) and parsed:
        return next(iter(parsed))
    return None


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (int, float, str)) and not isinstance(value, bool)


def pick_metric_key(activity: Activity) -> Optional[str]:
    """Metric name shared by the activity's target, current value and history.

    Precedence: first key of ``targetMetric``, then of ``currentMetric``, then of
    the first metrics object found in history (monthly, quarterly, annual).
    """
    for payload in (activity.target_metric, activity.current_metric):
        key = _first_key(payload)
        if key is not None:
            return key

    for granularity in HISTORY_SCAN_ORDER:
        for entries in activity.history.buckets(granularity).values():
            for entry in entries:
                key = _first_key(entry.metrics)
                if key is not None:
                    return key
    return None


def _nested_mappings(metrics: Dict[str, Any]) -> list[Dict[str, Any]]:
    nested = []
    for name in NESTED_METRIC_KEYS:
        if not metrics.get(name):
            continue
        parsed = safe_parse_json(metrics[name])
        if isinstance(parsed, dict):
            nested.append(parsed)
    return nested


def extract_metric_value(payload: Any, metric_key: Optional[str] = None) -> Any:
    """Pull one metric value out of a JSON string, mapping or bare number.

    Never raises; anything unparseable or missing yields None.
    """
    metrics = safe_parse_json(payload)
    if metrics is None:
        return None
    if not isinstance(metrics, dict):
        return metrics if _is_scalar(metrics) else None

    if metric_key is not None:
        if metric_key in metrics:
            return metrics[metric_key]
        for nested in _nested_mappings(metrics):
            if metric_key in nested:
                return nested[metric_key]
        return None

    for nested in _nested_mappings(metrics):
        if nested:
            return next(iter(nested.values()))
    if metrics:
        return next(iter(metrics.values()))
    return None


def _resolve_overall(payload: Any, metric_key: Optional[str]) -> Any:
    parsed = safe_parse_json(payload)
    if isinstance(parsed, dict):
        if metric_key is not None and metric_key in parsed:
            return parsed[metric_key]
        if parsed:
            return next(iter(parsed.values()))
        return None
    if _is_scalar(parsed):
        return parsed
    return None


def get_overall_metrics(activity: Activity, metric_key: Optional[str]) -> OverallMetrics:
    return OverallMetrics(
        target=_resolve_overall(activity.target_metric, metric_key),
        previous=_resolve_overall(activity.previous_metric, metric_key),
        current=_resolve_overall(activity.current_metric, metric_key),
    )
