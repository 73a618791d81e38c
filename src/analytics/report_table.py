from __future__ import annotations

import json
from datetime import date
from typing import Any, List

from src.analytics.metrics import get_overall_metrics, pick_metric_key
from src.analytics.periods import (
    DEFAULT_FISCAL_START_MONTH,
    flatten_periods,
    format_period_label,
)
from src.analytics.progress import resolve_metric_type
from src.analytics.quarterly_stats import (
    get_latest_metric_value_in_period,
    get_quarterly_stats,
    is_underperforming,
    resolve_quarterly_total,
    resolve_yearly_progress,
)
from src.models.master_report import Activity, Goal, MasterReport, Task
from src.schemas.master_report import (
    CellValue,
    MasterReportTable,
    ReportCell,
    ReportColumn,
    ReportRow,
)
from src.shared.values import to_number_or_null

QUARTERLY_COLUMN_KINDS = (("goal", "Goal"), ("record", "Record"), ("progress", "Progress %"))


def to_cell_value(value: Any) -> CellValue:
    """Flatten a raw metric value into something a table cell can show."""
    if value is None:
        return None
    if isinstance(value, dict):
        if not value:
            return json.dumps(value)
        return to_cell_value(next(iter(value.values())))
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return to_number_or_null(value)
    if isinstance(value, str):
        number = to_number_or_null(value)
        return number if number is not None else value
    return json.dumps(value, default=str)


def build_period_columns(periods: List[str], granularity: str) -> List[ReportColumn]:
    columns: List[ReportColumn] = []
    for period_key in periods:
        label = format_period_label(period_key, granularity)
        if granularity == "quarterly":
            for kind, title in QUARTERLY_COLUMN_KINDS:
                columns.append(
                    ReportColumn(
                        key=f"{period_key}:{kind}",
                        label=f"{title} ({label})",
                        period_key=period_key,
                        kind=kind,
                    )
                )
        else:
            columns.append(ReportColumn(key=period_key, label=label, period_key=period_key, kind="value"))
    return columns


def _summary_row(row_type: str, item: Goal | Task, number: str, periods: List[str]) -> ReportRow:
    prefix = "g" if row_type == "goal" else "t"
    return ReportRow(
        row_type=row_type,
        row_id=f"{prefix}-{item.id if item.id is not None else number}",
        number=number,
        title=item.title,
        weight=item.weight,
        status=item.status,
        progress=item.progress,
        cells=[ReportCell(period_key=period_key, placeholder=True) for period_key in periods],
    )


def build_activity_row(
    activity: Activity,
    number: str,
    periods: List[str],
    granularity: str,
    reference_date: date,
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> ReportRow:
    metric_key = pick_metric_key(activity)
    metric_type = resolve_metric_type(activity.metric_type)
    overall = get_overall_metrics(activity, metric_key)

    cells: List[ReportCell] = []
    for period_key in periods:
        if granularity == "quarterly":
            stats = get_quarterly_stats(activity, period_key, metric_key, metric_type, fiscal_start_month)
            underperforming = is_underperforming(stats, period_key, reference_date, fiscal_start_month)
            cells.append(
                ReportCell(
                    period_key=period_key,
                    goal=stats.goal,
                    record=stats.record,
                    progress=stats.progress,
                    underperforming=underperforming,
                )
            )
        else:
            raw_value = get_latest_metric_value_in_period(
                activity, period_key, granularity, metric_key, fiscal_start_month
            )
            cells.append(ReportCell(period_key=period_key, value=to_cell_value(raw_value)))

    return ReportRow(
        row_type="activity",
        row_id=f"a-{activity.id if activity.id is not None else number}",
        number=number,
        title=activity.title,
        weight=activity.weight,
        status=activity.status,
        metric_key=metric_key,
        metric_type=metric_type,
        target=to_cell_value(overall.target),
        previous=to_cell_value(overall.previous),
        current=to_cell_value(overall.current),
        yearly_total=resolve_quarterly_total(activity, metric_key, fiscal_start_month),
        yearly_progress=resolve_yearly_progress(activity, metric_key, metric_type),
        cells=cells,
    )


def build_report_table(
    report: MasterReport,
    granularity: str,
    reference_date: date,
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> MasterReportTable:
    """Flatten the goal/task/activity tree into numbered rows with one cell per period."""
    periods = flatten_periods(report, granularity, fiscal_start_month)
    rows: List[ReportRow] = []
    for goal_index, goal in enumerate(report.goals, start=1):
        goal_number = str(goal_index)
        rows.append(_summary_row("goal", goal, goal_number, periods))
        for task_index, task in enumerate(goal.tasks, start=1):
            task_number = f"{goal_number}.{task_index}"
            rows.append(_summary_row("task", task, task_number, periods))
            for activity_index, activity in enumerate(task.activities, start=1):
                rows.append(
                    build_activity_row(
                        activity,
                        f"{task_number}.{activity_index}",
                        periods,
                        granularity,
                        reference_date,
                        fiscal_start_month,
                    )
                )

    return MasterReportTable(
        granularity=granularity,
        reference_date=reference_date,
        fiscal_start_month=fiscal_start_month,
        periods=periods,
        columns=build_period_columns(periods, granularity),
        rows=rows,
    )
