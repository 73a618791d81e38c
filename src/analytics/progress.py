from __future__ import annotations

from typing import Any, Optional

from src.shared.values import to_number_or_null

METRIC_TYPES = frozenset({"Increase", "Plus", "Minus", "Decrease", "Maintain"})
DEFAULT_METRIC_TYPE = "Plus"


def resolve_metric_type(value: Any) -> str:
    # Unknown spellings fall back to "higher is better" rather than failing the row.
    if isinstance(value, str) and value in METRIC_TYPES:
        return value
    return DEFAULT_METRIC_TYPE


def calculate_progress(actual: Any, goal: Any, metric_type: Any = None) -> Optional[float]:
    """Percentage of ``goal`` achieved by ``actual`` for the metric's direction.

    Decrease: lower is better, so beating the goal exceeds 100.
    Maintain: capped at 100.
    Increase/Plus/Minus (and anything unrecognised): uncapped ratio.
    Returns None when either side is missing or non-numeric. No rounding.
    """
    actual_value = to_number_or_null(actual)
    goal_value = to_number_or_null(goal)
    if actual_value is None or goal_value is None:
        return None

    direction = resolve_metric_type(metric_type)
    if direction == "Decrease":
        if actual_value == 0:
            return 100.0
        if goal_value == 0:
            return 0.0
        return (goal_value / actual_value) * 100

    if direction == "Maintain":
        if goal_value == 0:
            return 100.0 if actual_value == 0 else 0.0
        return min(100.0, (actual_value / goal_value) * 100)

    if goal_value == 0:
        return 100.0
    return (actual_value / goal_value) * 100
