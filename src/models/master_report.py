from __future__ import annotations

from typing import Annotated, Any, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import BeforeValidator, Field

from src.shared.base import BaseSchema
from src.shared.values import safe_parse_json, to_number_or_null


def parse_metric_payload(value: Any) -> Union[float, Dict[str, Any], None]:
    # Payloads arrive as JSON strings, mappings or bare numbers; resolve them once here.
    parsed = safe_parse_json(value)
    if isinstance(parsed, dict):
        return {str(key): item for key, item in parsed.items()}
    return to_number_or_null(parsed)


def _as_mapping(value: Any) -> Dict[str, Any]:
    parsed = safe_parse_json(value)
    if isinstance(parsed, dict):
        return {str(key): item for key, item in parsed.items()}
    return {}


def _as_record_list(value: Any) -> List[Any]:
    parsed = safe_parse_json(value)
    if isinstance(parsed, dict):
        parsed = [parsed]
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, (dict, BaseSchema))]


def _as_history_buckets(value: Any) -> Dict[str, List[Any]]:
    return {key: _as_record_list(entries) for key, entries in _as_mapping(value).items()}


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    return str(value)


def _as_identifier(value: Any) -> Optional[Union[int, str]]:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, (int, str)) else None


def _as_history(value: Any) -> Any:
    if isinstance(value, BaseSchema):
        return value
    return _as_mapping(value)


MetricPayload = Annotated[Union[float, Dict[str, Any], None], BeforeValidator(parse_metric_payload)]
OptionalNumber = Annotated[Optional[float], BeforeValidator(to_number_or_null)]
OptionalText = Annotated[Optional[str], BeforeValidator(_as_text)]
HistoryBuckets = Annotated[Dict[str, List["HistoryEntry"]], BeforeValidator(_as_history_buckets)]
EntityId = Annotated[Optional[Union[int, str]], BeforeValidator(_as_identifier)]


class HistoryEntry(BaseSchema):
    metrics: MetricPayload = None
    date: OptionalText = None
    created_at: OptionalText = None
    progress: OptionalNumber = None
    source: OptionalText = None


class ActivityHistory(BaseSchema):
    monthly: HistoryBuckets = Field(default_factory=dict)
    quarterly: HistoryBuckets = Field(default_factory=dict)
    annual: HistoryBuckets = Field(default_factory=dict)

    def buckets(self, granularity: str) -> Dict[str, List[HistoryEntry]]:
        return getattr(self, granularity, None) or {}


class ActivityReport(BaseSchema):
    id: EntityId = None
    narrative: OptionalText = None
    status: OptionalText = None
    created_at: OptionalText = None


class Activity(BaseSchema):
    id: EntityId = None
    title: OptionalText = None
    description: OptionalText = None
    status: OptionalText = None
    weight: OptionalNumber = None
    metric_type: OptionalText = None
    target_metric: MetricPayload = None
    current_metric: MetricPayload = None
    previous_metric: MetricPayload = None
    quarterly_goals: Annotated[Dict[str, Any], BeforeValidator(_as_mapping)] = Field(default_factory=dict)
    history: Annotated[ActivityHistory, BeforeValidator(_as_history)] = Field(default_factory=ActivityHistory)
    quarterly_total: OptionalNumber = None
    yearly_progress: OptionalNumber = None
    reports: Annotated[List[ActivityReport], BeforeValidator(_as_record_list)] = Field(default_factory=list)


class Task(BaseSchema):
    id: EntityId = None
    title: OptionalText = None
    status: OptionalText = None
    weight: OptionalNumber = None
    progress: OptionalNumber = None
    activities: Annotated[List[Activity], BeforeValidator(_as_record_list)] = Field(default_factory=list)


class Goal(BaseSchema):
    id: EntityId = None
    title: OptionalText = None
    status: OptionalText = None
    weight: OptionalNumber = None
    progress: OptionalNumber = None
    tasks: Annotated[List[Task], BeforeValidator(_as_record_list)] = Field(default_factory=list)


class MasterReport(BaseSchema):
    goals: Annotated[List[Goal], BeforeValidator(_as_record_list)] = Field(default_factory=list)

    def iter_activities(self) -> Iterator[Tuple[Goal, Task, Activity]]:
        for goal in self.goals:
            for task in goal.tasks:
                for activity in task.activities:
                    yield goal, task, activity
