from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from src.analytics.metrics import extract_metric_value, get_overall_metrics
from src.analytics.periods import (
    DEFAULT_FISCAL_START_MONTH,
    is_period_past,
    normalize_period_key,
    parse_period_date,
    parse_quarter_key,
)
from src.analytics.progress import calculate_progress
from src.models.master_report import Activity, HistoryEntry
from src.schemas.master_report import QuarterlyStats
from src.shared.values import to_number_or_null


def _entry_timestamp(entry: HistoryEntry) -> Optional[datetime]:
    return parse_period_date(entry.date) or parse_period_date(entry.created_at)


def _entries_in_period(
    activity: Activity, period_key: str, granularity: str, fiscal_start_month: int
) -> List[HistoryEntry]:
    target = normalize_period_key(period_key, granularity, fiscal_start_month)
    if target is None:
        return []
    entries: List[HistoryEntry] = []
    for raw_key, bucket in activity.history.buckets(granularity).items():
        if normalize_period_key(raw_key, granularity, fiscal_start_month) == target:
            entries.extend(bucket)
    return entries


def get_latest_metric_value_in_period(
    activity: Activity,
    period_key: str,
    granularity: str,
    metric_key: Optional[str],
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> Any:
    """Most recent non-null metric value recorded for the canonical period.

    Every raw history key that normalizes to the same period contributes. Entries
    are ordered by ``date`` (or ``createdAt``); undated entries count as oldest
    and ties keep their input order.
    """
    candidates = _entries_in_period(activity, period_key, granularity, fiscal_start_month)
    if not candidates:
        return None

    keyed: List[Tuple[bool, datetime, int, HistoryEntry]] = []
    for index, entry in enumerate(candidates):
        timestamp = _entry_timestamp(entry)
        keyed.append((timestamp is not None, timestamp or datetime.min, index, entry))
    keyed.sort(key=lambda item: item[:3])

    for _, _, _, entry in reversed(keyed):
        if entry.metrics is None:
            continue
        value = extract_metric_value(entry.metrics, metric_key)
        if value is not None:
            return value
    return None


def get_quarterly_stats(
    activity: Activity,
    period_key: str,
    metric_key: Optional[str],
    metric_type: Optional[str] = None,
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> QuarterlyStats:
    quarter_key = parse_quarter_key(period_key)
    if quarter_key is None:
        return QuarterlyStats()

    goal = to_number_or_null(activity.quarterly_goals.get(f"q{quarter_key[1]}"))
    record = to_number_or_null(
        get_latest_metric_value_in_period(activity, period_key, "quarterly", metric_key, fiscal_start_month)
    )
    direction = metric_type if metric_type is not None else activity.metric_type
    return QuarterlyStats(goal=goal, record=record, progress=calculate_progress(record, goal, direction))


def quarterly_records_sum(
    activity: Activity,
    metric_key: Optional[str],
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> Optional[float]:
    quarters = {
        normalize_period_key(raw_key, "quarterly", fiscal_start_month)
        for raw_key in activity.history.quarterly
    }
    total = 0.0
    found = False
    for quarter in sorted(key for key in quarters if key):
        record = to_number_or_null(
            get_latest_metric_value_in_period(activity, quarter, "quarterly", metric_key, fiscal_start_month)
        )
        if record is None:
            continue
        total += record
        found = True
    return total if found else None


def resolve_quarterly_total(
    activity: Activity,
    metric_key: Optional[str],
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> Optional[float]:
    # Backend-supplied totals win over the locally computed sum.
    if activity.quarterly_total is not None:
        return activity.quarterly_total
    return quarterly_records_sum(activity, metric_key, fiscal_start_month)


def resolve_yearly_progress(
    activity: Activity,
    metric_key: Optional[str],
    metric_type: Optional[str] = None,
) -> Optional[float]:
    if activity.yearly_progress is not None:
        return activity.yearly_progress
    overall = get_overall_metrics(activity, metric_key)
    direction = metric_type if metric_type is not None else activity.metric_type
    return calculate_progress(overall.current, overall.target, direction)


def is_underperforming(
    stats: QuarterlyStats,
    period_key: str,
    reference_date: date,
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> bool:
    """A closed quarter with a goal and no record, or a record below the goal."""
    if stats.goal is None:
        return False
    if not is_period_past(period_key, "quarterly", reference_date, fiscal_start_month):
        return False
    return stats.record is None or stats.record < stats.goal
