from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, Response

from src.api.dependencies import get_master_report_service
from src.exports.csv_export import CSV_MEDIA_TYPE
from src.models.master_report import MasterReport
from src.schemas.master_report import (
    ActivityStatsRequest,
    ActivityStatsResponse,
    MasterReportFilters,
    MasterReportTable,
)
from src.services.master_report_service import MasterReportService
from src.shared.response import Meta, ResponseEnvelope
from src.shared.time import parse_as_of


router = APIRouter(prefix="/master-report", tags=["master-report"])

MASTER_REPORT_CALCULATION_VERSION = "v1"


def get_master_report_filters(
    granularity: str = Query(default="quarterly", pattern="^(monthly|quarterly|annual)$"),
    group_id: Optional[int] = Query(default=None, alias="group_id", ge=1),
    as_of: Optional[str] = Query(default=None, alias="as_of"),
) -> MasterReportFilters:
    return MasterReportFilters(granularity=granularity, group_id=group_id, as_of=as_of)


def _build_meta(
    *,
    source: str,
    reference_date: date,
    time_window: str,
    service: MasterReportService,
    group_id: Optional[int] = None,
) -> Meta:
    return Meta(
        as_of_date=reference_date.isoformat(),
        source=source,
        time_window=time_window,
        calculation_version=MASTER_REPORT_CALCULATION_VERSION,
        group_id=group_id,
        fiscal_start_month=service.fiscal_start_month,
        generated_at=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/table")
def master_report_table(
    filters: MasterReportFilters = Depends(get_master_report_filters),
    service: MasterReportService = Depends(get_master_report_service),
) -> ResponseEnvelope[MasterReportTable]:
    reference_date = parse_as_of(filters.as_of)
    data = service.get_table(filters.granularity, filters.group_id, reference_date)
    meta = _build_meta(
        source="master_report_api",
        reference_date=reference_date,
        time_window=filters.granularity,
        service=service,
        group_id=filters.group_id,
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.post("/table")
def master_report_table_from_body(
    report: MasterReport,
    filters: MasterReportFilters = Depends(get_master_report_filters),
    service: MasterReportService = Depends(get_master_report_service),
) -> ResponseEnvelope[MasterReportTable]:
    reference_date = parse_as_of(filters.as_of)
    data = service.build_table(report, filters.granularity, reference_date)
    meta = _build_meta(
        source="request_body",
        reference_date=reference_date,
        time_window=filters.granularity,
        service=service,
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.get("/export.csv")
def master_report_csv(
    filters: MasterReportFilters = Depends(get_master_report_filters),
    service: MasterReportService = Depends(get_master_report_service),
) -> Response:
    reference_date = parse_as_of(filters.as_of)
    filename, content = service.export_csv(filters.granularity, filters.group_id, reference_date)
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/print", response_class=HTMLResponse)
def master_report_print(
    filters: MasterReportFilters = Depends(get_master_report_filters),
    service: MasterReportService = Depends(get_master_report_service),
) -> HTMLResponse:
    reference_date = parse_as_of(filters.as_of)
    html = service.export_print_html(filters.granularity, filters.group_id, reference_date)
    return HTMLResponse(content=html)


@router.post("/activity-stats")
def master_report_activity_stats(
    request: ActivityStatsRequest,
    as_of: Optional[str] = Query(default=None, alias="as_of"),
    service: MasterReportService = Depends(get_master_report_service),
) -> ResponseEnvelope[ActivityStatsResponse]:
    reference_date = parse_as_of(as_of)
    data = service.get_activity_stats(request, reference_date)
    meta = _build_meta(
        source="request_body",
        reference_date=reference_date,
        time_window="quarterly",
        service=service,
    )
    return ResponseEnvelope(data=data, meta=meta)
