from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_master_report_service
from src.main import create_app
from src.models.master_report import Activity, MasterReport
from src.services.master_report_service import MasterReportService


SAMPLE_MASTER_REPORT: Dict[str, Any] = {
    "goals": [
        {
            "id": 1,
            "title": "Improve service delivery",
            "weight": 60,
            "progress": 40,
            "status": "In Progress",
            "tasks": [
                {
                    "id": 10,
                    "title": "Expand clinics",
                    "weight": "50.00",
                    "progress": 30,
                    "activities": [
                        {
                            "id": 100,
                            "title": "Open new clinics",
                            "description": "New primary care clinics in rural districts",
                            "weight": 20,
                            "metricType": "Plus",
                            "targetMetric": '{"clinics": 400}',
                            "currentMetric": {"clinics": 160},
                            "previousMetric": {"clinics": 90},
                            "quarterlyGoals": {"q1": 100, "q2": 100},
                            "history": {
                                "monthly": {
                                    "2024-08": [{"date": "2024-08-20", "metrics": {"clinics": 40}}],
                                    "2024-09-25": [{"date": "2024-09-25", "metrics": {"clinics": 60}}],
                                    "2024-10": [{"date": "2024-10-15", "metrics": {"clinics": 80}}],
                                },
                                "quarterly": {
                                    "2025-Q1": [
                                        {"date": "2024-09-25", "metrics": {"clinics": 60}},
                                        {"date": "2024-08-20", "metrics": {"clinics": 40}},
                                    ],
                                    "2024-10-15": [
                                        {"createdAt": "2024-10-15T09:00:00Z", "metrics": '{"clinics": 80}'}
                                    ],
                                },
                                "annual": {
                                    "2024": [{"date": "2024-12-31", "metrics": {"clinics": 160}}],
                                },
                            },
                            "reports": [
                                {"id": 7, "narrative": "Two clinics opened in Adama", "status": "Approved"}
                            ],
                        },
                        {
                            "id": 101,
                            "title": "Reduce wait time",
                            "weight": 10,
                            "metricType": "Decrease",
                            "targetMetric": {"minutes": 30},
                            "currentMetric": {"minutes": 45},
                            "quarterlyGoals": '{"q1": 40}',
                            "history": {
                                "quarterly": {
                                    "2025-Q1": [{"date": "2024-09-01", "metrics": {"minutes": 50}}],
                                }
                            },
                        },
                    ],
                }
            ],
        },
        {
            "id": 2,
            "title": "Strengthen governance",
            "weight": 40,
            "progress": 10,
            "status": "Not Started",
            "tasks": [],
        },
    ]
}


def build_activity(**overrides: Any) -> Activity:
    payload: Dict[str, Any] = {"id": 1, "title": "Activity", "metricType": "Plus"}
    payload.update(overrides)
    return Activity.model_validate(payload)


class FakeMasterReportRepository:
    def __init__(self, payload: Optional[Dict[str, Any]] = None) -> None:
        self.payload = copy.deepcopy(payload if payload is not None else SAMPLE_MASTER_REPORT)
        self.requested_group_ids: List[Optional[int]] = []

    def get_master_report(self, group_id: Optional[int] = None) -> MasterReport:
        self.requested_group_ids.append(group_id)
        return MasterReport.model_validate(self.payload)


@pytest.fixture()
def sample_payload() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_MASTER_REPORT)


@pytest.fixture()
def sample_report() -> MasterReport:
    return MasterReport.model_validate(copy.deepcopy(SAMPLE_MASTER_REPORT))


@pytest.fixture()
def repository() -> FakeMasterReportRepository:
    return FakeMasterReportRepository()


@pytest.fixture()
def client(repository: FakeMasterReportRepository) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_master_report_service] = lambda: MasterReportService(repository=repository)
    return TestClient(app)


@pytest.fixture()
def make_activity():
    return build_activity
