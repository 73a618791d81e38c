from __future__ import annotations

import csv
import io
from typing import Optional

from src.exports.formatting import fixed_cells, period_cells, table_headers
from src.schemas.master_report import MasterReportTable

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
UTF8_BOM = "\ufeff"


def csv_filename(granularity: str, group_id: Optional[int] = None) -> str:
    return f"master_report_{granularity}_{group_id if group_id is not None else 'all'}.csv"


def render_csv(table: MasterReportTable) -> bytes:
    """UTF-8 CSV with a leading BOM; every field quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(table_headers(table))
    for row in table.rows:
        values = fixed_cells(row, empty="")
        for cell in row.cells:
            values.extend(period_cells(cell, table.granularity, empty="", placeholder=""))
        writer.writerow(values)
    return (UTF8_BOM + buffer.getvalue()).encode("utf-8")
