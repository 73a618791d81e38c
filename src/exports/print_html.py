from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from src.analytics.periods import parse_period_date
from src.exports.formatting import MISSING, fixed_cells, format_number, period_cells, table_headers
from src.models.master_report import MasterReport
from src.schemas.master_report import MasterReportTable

REPORT_TITLE = "Master Report"
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
PRINT_TEMPLATE = "master_report_print.html"


def metric_text(value: Any) -> str:
    if value is None or value == {}:
        return MISSING
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    return format_number(value)


def timestamp_text(value: Any) -> str:
    parsed = parse_period_date(value)
    if parsed is None:
        return value or ""
    return parsed.strftime("%Y-%m-%d %H:%M")


@lru_cache(maxsize=1)
def get_template_environment() -> Environment:
    environment = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    environment.filters["number"] = format_number
    environment.filters["metric"] = metric_text
    environment.filters["timestamp"] = timestamp_text
    return environment


def _table_rows(table: MasterReportTable) -> List[Dict[str, Any]]:
    rows = []
    for row in table.rows:
        cells = [(value, False) for value in fixed_cells(row, empty=MISSING)]
        for cell in row.cells:
            cells.extend((value, cell.underperforming) for value in period_cells(cell, table.granularity))
        rows.append({"row_type": row.row_type, "cells": cells})
    return rows


def render_print_html(
    table: MasterReportTable,
    report: Optional[MasterReport] = None,
    group_id: Optional[int] = None,
) -> str:
    """Standalone printable document: the report table, then contents and narrations."""
    template = get_template_environment().get_template(PRINT_TEMPLATE)
    return template.render(
        title=REPORT_TITLE,
        scope=f"Group {group_id}" if group_id is not None else "All groups",
        granularity=table.granularity,
        reference_date=table.reference_date.isoformat(),
        headers=table_headers(table),
        rows=_table_rows(table),
        report=report,
    )
