from __future__ import annotations

from datetime import date

import pytest

from src.analytics.report_table import build_period_columns, build_report_table, to_cell_value
from src.models.master_report import MasterReport


def test_rows_are_numbered_by_position(sample_report):
    table = build_report_table(sample_report, "quarterly", date(2025, 2, 10))
    assert [row.number for row in table.rows] == ["1", "1.1", "1.1.1", "1.1.2", "2"]
    assert [row.row_type for row in table.rows] == ["goal", "task", "activity", "activity", "goal"]
    assert [row.row_id for row in table.rows] == ["g-1", "t-10", "a-100", "a-101", "g-2"]


def test_quarterly_columns(sample_report):
    table = build_report_table(sample_report, "quarterly", date(2025, 2, 10))
    assert table.periods == ["2025-Q1", "2025-Q2"]
    assert [column.label for column in table.columns] == [
        "Goal (Q1 2025)",
        "Record (Q1 2025)",
        "Progress % (Q1 2025)",
        "Goal (Q2 2025)",
        "Record (Q2 2025)",
        "Progress % (Q2 2025)",
    ]
    assert table.columns[0].key == "2025-Q1:goal"


def test_summary_rows_carry_placeholders(sample_report):
    table = build_report_table(sample_report, "quarterly", date(2025, 2, 10))
    goal_row, task_row = table.rows[0], table.rows[1]
    assert goal_row.weight == 60
    assert task_row.weight == 50
    assert all(cell.placeholder for cell in goal_row.cells + task_row.cells)
    assert len(goal_row.cells) == 2


def test_activity_row_quarterly_cells(sample_report):
    table = build_report_table(sample_report, "quarterly", date(2025, 2, 10))
    clinics, wait_time = table.rows[2], table.rows[3]

    assert clinics.metric_key == "clinics"
    assert clinics.metric_type == "Plus"
    assert (clinics.target, clinics.previous, clinics.current) == (400, 90, 160)
    assert clinics.yearly_total == 140
    assert clinics.yearly_progress == pytest.approx(40.0)
    q1, q2 = clinics.cells
    assert (q1.goal, q1.record) == (100, 60)
    assert q1.progress == pytest.approx(60.0)
    assert q1.underperforming is True
    assert (q2.goal, q2.record) == (100, 80)
    assert q2.underperforming is True

    assert wait_time.metric_type == "Decrease"
    q1, q2 = wait_time.cells
    assert (q1.goal, q1.record) == (40, 50)
    assert q1.progress == pytest.approx(80.0)
    assert q1.underperforming is False
    assert (q2.goal, q2.record, q2.progress) == (None, None, None)
    assert q2.underperforming is False


def test_open_quarters_are_never_underperforming(sample_report):
    table = build_report_table(sample_report, "quarterly", date(2024, 8, 1))
    assert not any(cell.underperforming for row in table.rows for cell in row.cells)


def test_monthly_table(sample_report):
    table = build_report_table(sample_report, "monthly", date(2025, 2, 10))
    assert [column.label for column in table.columns] == ["Aug 2024", "Sep 2024", "Oct 2024"]
    clinics, wait_time = table.rows[2], table.rows[3]
    assert [cell.value for cell in clinics.cells] == [40, 60, 80]
    assert [cell.value for cell in wait_time.cells] == [None, None, None]


def test_empty_report():
    table = build_report_table(MasterReport(), "quarterly", date(2025, 2, 10))
    assert table.periods == []
    assert table.columns == []
    assert table.rows == []


def test_backend_yearly_progress_wins(sample_payload):
    activity = sample_payload["goals"][0]["tasks"][0]["activities"][0]
    activity["yearlyProgress"] = 72.5
    activity["quarterlyTotal"] = "1,000"
    table = build_report_table(MasterReport.model_validate(sample_payload), "quarterly", date(2025, 2, 10))
    assert table.rows[2].yearly_progress == 72.5
    assert table.rows[2].yearly_total == 1000


def test_build_period_columns_non_quarterly():
    columns = build_period_columns(["2023", "2024"], "annual")
    assert [(column.key, column.label, column.kind) for column in columns] == [
        ("2023", "2023", "value"),
        ("2024", "2024", "value"),
    ]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        (5, 5.0),
        ("12", 12.0),
        ("on track", "on track"),
        ({"units": 3}, 3.0),
        ({}, "{}"),
        (True, "true"),
        ([1, 2], "[1, 2]"),
    ],
)
def test_to_cell_value(value, expected):
    assert to_cell_value(value) == expected


def test_table_payload_uses_camel_case(sample_report):
    payload = build_report_table(sample_report, "quarterly", date(2025, 2, 10)).to_payload()
    assert payload["referenceDate"] == "2025-02-10"
    assert payload["fiscalStartMonth"] == 7
    assert payload["rows"][2]["yearlyProgress"] == pytest.approx(40.0)
    assert payload["rows"][0]["cells"][0] == {
        "periodKey": "2025-Q1",
        "placeholder": True,
        "goal": None,
        "record": None,
        "progress": None,
        "value": None,
        "underperforming": False,
    }


def test_row_ids_fall_back_to_row_numbers():
    report = MasterReport.model_validate(
        {
            "goals": [
                {
                    "title": "Unnumbered goal",
                    "tasks": [
                        {
                            "id": None,
                            "title": "Unnumbered task",
                            "activities": [
                                {"id": 1.5, "title": "Fractional id"},
                                {"title": "Missing id"},
                            ],
                        }
                    ],
                }
            ]
        }
    )
    table = build_report_table(report, "quarterly", date(2025, 2, 10))
    assert [row.row_id for row in table.rows] == ["g-1", "t-1.1", "a-1.1.1", "a-1.1.2"]
