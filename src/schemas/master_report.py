from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional, Union

from pydantic import Field

from src.analytics.periods import Granularity
from src.models.master_report import Activity
from src.shared.base import BaseSchema

CellValue = Optional[Union[float, str]]


class QuarterlyStats(BaseSchema):
    goal: Optional[float] = None
    record: Optional[float] = None
    progress: Optional[float] = None


class ReportColumn(BaseSchema):
    key: str
    label: str
    period_key: str
    kind: Literal["goal", "record", "progress", "value"]


class ReportCell(BaseSchema):
    period_key: str
    placeholder: bool = False
    goal: Optional[float] = None
    record: Optional[float] = None
    progress: Optional[float] = None
    value: CellValue = None
    underperforming: bool = False


class ReportRow(BaseSchema):
    row_type: Literal["goal", "task", "activity"]
    row_id: str
    number: str
    title: Optional[str] = None
    weight: Optional[float] = None
    status: Optional[str] = None
    progress: Optional[float] = None
    metric_key: Optional[str] = None
    metric_type: Optional[str] = None
    target: CellValue = None
    previous: CellValue = None
    current: CellValue = None
    yearly_total: Optional[float] = None
    yearly_progress: Optional[float] = None
    cells: List[ReportCell] = Field(default_factory=list)


class MasterReportTable(BaseSchema):
    granularity: Granularity
    reference_date: date
    fiscal_start_month: int
    periods: List[str]
    columns: List[ReportColumn]
    rows: List[ReportRow]


class MasterReportFilters(BaseSchema):
    granularity: Granularity = "quarterly"
    group_id: Optional[int] = None
    as_of: Optional[str] = None


class ActivityStatsRequest(BaseSchema):
    activity: Activity
    period_key: str
    metric_key: Optional[str] = None
    metric_type: Optional[str] = None


class ActivityStatsResponse(BaseSchema):
    period_key: str
    metric_key: Optional[str] = None
    metric_type: str
    stats: QuarterlyStats
    underperforming: bool = False
    quarterly_total: Optional[float] = None
    yearly_progress: Optional[float] = None
