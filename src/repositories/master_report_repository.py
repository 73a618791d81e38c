from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from src.core.errors import UpstreamError
from src.core.master_report_client import MasterReportClient
from src.models.master_report import MasterReport


class MasterReportRepository:
    def __init__(self, client: Optional[MasterReportClient] = None) -> None:
        self.client = client or MasterReportClient()

    def get_master_report(self, group_id: Optional[int] = None) -> MasterReport:
        payload = self.client.fetch_master_report(group_id)
        try:
            return MasterReport.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamError("Master report API returned an unexpected shape") from exc
