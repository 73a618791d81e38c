from __future__ import annotations

from functools import lru_cache

from src.core.config import get_settings
from src.repositories.master_report_repository import MasterReportRepository
from src.services.master_report_service import MasterReportService


@lru_cache
def get_master_report_repository() -> MasterReportRepository:
    return MasterReportRepository()


def get_master_report_service() -> MasterReportService:
    return MasterReportService(
        repository=get_master_report_repository(),
        fiscal_start_month=get_settings().fiscal_year_start_month,
    )
