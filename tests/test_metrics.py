from __future__ import annotations

import math

import pytest

from src.analytics.metrics import extract_metric_value, get_overall_metrics, pick_metric_key
from src.shared.values import safe_parse_json, to_number_or_null


def test_extract_from_json_string_and_mapping():
    assert extract_metric_value('{"units": 42}', "units") == 42
    assert extract_metric_value({"units": 42}, "units") == 42


def test_extract_malformed_json_yields_none():
    assert extract_metric_value("{not json", "units") is None
    assert extract_metric_value("", "units") is None
    assert extract_metric_value(None, "units") is None


def test_extract_bare_number():
    assert extract_metric_value(12.5, "units") == 12.5
    assert extract_metric_value("7", None) == 7


def test_extract_nested_metric_mappings():
    assert extract_metric_value({"currentMetric": {"units": 5}}, "units") == 5
    assert extract_metric_value({"metrics_data": '{"units": 9}'}, "units") == 9
    assert extract_metric_value({"currentMetric": {"units": 5}}, None) == 5


def test_extract_top_level_key_wins_over_nested():
    payload = {"units": 1, "currentMetric": {"units": 5}}
    assert extract_metric_value(payload, "units") == 1


def test_extract_without_key_takes_first_value():
    assert extract_metric_value({"a": 3, "b": 4}) == 3
    assert extract_metric_value({}) is None


def test_extract_missing_key_yields_none():
    assert extract_metric_value({"other": 3}, "units") is None


def test_pick_metric_key_prefers_target(make_activity):
    activity = make_activity(targetMetric='{"clinics": 400}', currentMetric={"visits": 3})
    assert pick_metric_key(activity) == "clinics"


def test_pick_metric_key_falls_back_to_current_then_history(make_activity):
    assert pick_metric_key(make_activity(targetMetric={}, currentMetric={"visits": 3})) == "visits"

    activity = make_activity(
        history={"quarterly": {"2025-Q1": [{"metrics": {}}, {"metrics": '{"sessions": 2}'}]}}
    )
    assert pick_metric_key(activity) == "sessions"


def test_pick_metric_key_scans_monthly_before_quarterly(make_activity):
    activity = make_activity(
        history={
            "quarterly": {"2025-Q1": [{"metrics": {"quarterly_units": 2}}]},
            "monthly": {"2024-08": [{"metrics": {"monthly_units": 1}}]},
        }
    )
    assert pick_metric_key(activity) == "monthly_units"


def test_pick_metric_key_none_when_nothing_recorded(make_activity):
    assert pick_metric_key(make_activity()) is None


def test_overall_metrics_resolution(make_activity):
    activity = make_activity(
        targetMetric=250,
        previousMetric={"other": 10},
        currentMetric='{"units": 120}',
    )
    overall = get_overall_metrics(activity, "units")
    assert overall.target == 250
    assert overall.previous == 10
    assert overall.current == 120


def test_activity_payloads_parsed_at_the_boundary(make_activity):
    activity = make_activity(
        targetMetric="{not json",
        quarterlyGoals='{"q1": 10, "q2": "20"}',
        history='{"quarterly": {"2025-Q1": [{"metrics": "{\\"units\\": 4}"}]}}',
    )
    assert activity.target_metric is None
    assert activity.quarterly_goals == {"q1": 10, "q2": "20"}
    assert activity.history.quarterly["2025-Q1"][0].metrics == {"units": 4}


def test_activity_tolerates_wrong_shapes(make_activity):
    activity = make_activity(weight="heavy", quarterlyGoals=[1, 2], history=None, reports="nope")
    assert activity.weight is None
    assert activity.quarterly_goals == {}
    assert activity.history.quarterly == {}
    assert activity.reports == []


def test_safe_parse_json():
    assert safe_parse_json('{"a": 1}') == {"a": 1}
    assert safe_parse_json("[1, 2]") == [1, 2]
    assert safe_parse_json("{bad") is None
    assert safe_parse_json({"a": 1}) == {"a": 1}
    assert safe_parse_json(object()) is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (5, 5.0),
        ("1,200", 1200.0),
        (" 3.5 ", 3.5),
        ("abc", None),
        ("", None),
        (True, None),
        (None, None),
        (math.inf, None),
        ("nan", None),
        ({"a": 1}, None),
    ],
)
def test_to_number_or_null(value, expected):
    assert to_number_or_null(value) == expected
