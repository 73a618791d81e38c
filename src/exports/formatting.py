from __future__ import annotations

from typing import Any, List

from src.schemas.master_report import MasterReportTable, ReportCell, ReportRow

PLACEHOLDER = "—"
MISSING = "-"

FIXED_HEADERS = (
    "Goal #",
    "Goal",
    "Task #",
    "Task",
    "Activity #",
    "Activity",
    "Weight",
    "Metric",
    "Target",
    "Previous",
    "Yearly Total",
    "Yearly Progress %",
)


def format_number(value: Any, empty: str = MISSING) -> str:
    if value is None:
        return empty
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return str(value)


def format_percent(value: Any, empty: str = MISSING) -> str:
    if value is None:
        return empty
    return f"{value:.2f}%"


def table_headers(table: MasterReportTable) -> List[str]:
    return [*FIXED_HEADERS, *(column.label for column in table.columns)]


def fixed_cells(row: ReportRow, empty: str = "") -> List[str]:
    weight = format_number(row.weight, empty)
    title = row.title or ""
    if row.row_type == "goal":
        return [row.number, title, "", "", "", "", weight, "", "", "", "", ""]
    if row.row_type == "task":
        return ["", "", row.number, title, "", "", weight, "", "", "", "", ""]
    return [
        "",
        "",
        "",
        "",
        row.number,
        title,
        weight,
        row.metric_key or empty,
        format_number(row.target, empty),
        format_number(row.previous, empty),
        format_number(row.yearly_total, empty),
        format_percent(row.yearly_progress, empty),
    ]


def period_cells(cell: ReportCell, granularity: str, empty: str = MISSING, placeholder: str = PLACEHOLDER) -> List[str]:
    width = 3 if granularity == "quarterly" else 1
    if cell.placeholder:
        return [placeholder] * width
    if granularity == "quarterly":
        return [
            format_number(cell.goal, empty),
            format_number(cell.record, empty),
            format_percent(cell.progress, empty),
        ]
    return [format_number(cell.value, empty)]
