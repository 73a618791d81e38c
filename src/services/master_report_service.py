from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Tuple

from src.analytics.metrics import pick_metric_key
from src.analytics.periods import DEFAULT_FISCAL_START_MONTH, normalize_period_key
from src.analytics.progress import resolve_metric_type
from src.analytics.quarterly_stats import (
    get_quarterly_stats,
    is_underperforming,
    resolve_quarterly_total,
    resolve_yearly_progress,
)
from src.analytics.report_table import build_report_table
from src.core.errors import BadRequestError
from src.exports.csv_export import csv_filename, render_csv
from src.exports.print_html import render_print_html
from src.models.master_report import MasterReport
from src.repositories.master_report_repository import MasterReportRepository
from src.schemas.master_report import (
    ActivityStatsRequest,
    ActivityStatsResponse,
    MasterReportTable,
)

logger = logging.getLogger(__name__)


class MasterReportService:
    def __init__(
        self,
        repository: MasterReportRepository,
        fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
    ) -> None:
        self.repository = repository
        self.fiscal_start_month = fiscal_start_month

    def get_report(self, group_id: Optional[int]) -> MasterReport:
        report = self.repository.get_master_report(group_id)
        logger.info(
            "fetched master report group=%s goals=%d activities=%d",
            group_id if group_id is not None else "all",
            len(report.goals),
            sum(1 for _ in report.iter_activities()),
        )
        return report

    def build_table(self, report: MasterReport, granularity: str, reference_date: date) -> MasterReportTable:
        return build_report_table(report, granularity, reference_date, self.fiscal_start_month)

    def get_table(self, granularity: str, group_id: Optional[int], reference_date: date) -> MasterReportTable:
        return self.build_table(self.get_report(group_id), granularity, reference_date)

    def export_csv(
        self, granularity: str, group_id: Optional[int], reference_date: date
    ) -> Tuple[str, bytes]:
        table = self.get_table(granularity, group_id, reference_date)
        content = render_csv(table)
        logger.info("exported master report csv rows=%d bytes=%d", len(table.rows), len(content))
        return csv_filename(granularity, group_id), content

    def export_print_html(self, granularity: str, group_id: Optional[int], reference_date: date) -> str:
        report = self.get_report(group_id)
        table = self.build_table(report, granularity, reference_date)
        return render_print_html(table, report, group_id)

    def get_activity_stats(self, request: ActivityStatsRequest, reference_date: date) -> ActivityStatsResponse:
        period_key = normalize_period_key(request.period_key, "quarterly", self.fiscal_start_month)
        if period_key is None:
            raise BadRequestError("period_key must be a date or a fiscal quarter like 2025-Q1")

        activity = request.activity
        metric_key = request.metric_key or pick_metric_key(activity)
        metric_type = resolve_metric_type(request.metric_type or activity.metric_type)
        stats = get_quarterly_stats(activity, period_key, metric_key, metric_type, self.fiscal_start_month)
        underperforming = is_underperforming(stats, period_key, reference_date, self.fiscal_start_month)
        return ActivityStatsResponse(
            period_key=period_key,
            metric_key=metric_key,
            metric_type=metric_type,
            stats=stats,
            underperforming=underperforming,
            quarterly_total=resolve_quarterly_total(activity, metric_key, self.fiscal_start_month),
            yearly_progress=resolve_yearly_progress(activity, metric_key, metric_type),
        )
