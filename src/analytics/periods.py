from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any, List, Literal, Optional, Tuple

from src.models.master_report import MasterReport

Granularity = Literal["monthly", "quarterly", "annual"]
DEFAULT_FISCAL_START_MONTH = 7

_QUARTER_KEY = re.compile(r"^(\d{4})-Q(\d+)$", re.IGNORECASE)
_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")
_YEAR = re.compile(r"^\d{4}$")
_FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%a, %d %b %Y %H:%M:%S",
    "%a %b %d %Y %H:%M:%S",
    "%a %b %d %Y",
    "%d %b %Y",
    "%b %d, %Y",
)


def fiscal_quarter(year: int, month: int, start_month: int = DEFAULT_FISCAL_START_MONTH) -> Tuple[int, int]:
    """Map a calendar (year, month) to (fiscal_year, fiscal_quarter).

    The fiscal year is named after the calendar year it ends in, so with a July
    start, July 2024 falls in fiscal 2025 Q1 and January 2025 in fiscal 2025 Q3.
    """
    quarter = (month - start_month) % 12 // 3 + 1
    fiscal_year = year + 1 if start_month != 1 and month >= start_month else year
    return fiscal_year, quarter


def fiscal_quarter_start(
    fiscal_year: int, quarter: int, start_month: int = DEFAULT_FISCAL_START_MONTH
) -> Tuple[int, int]:
    """Calendar (year, month) of the first month of a fiscal quarter."""
    first_calendar_year = fiscal_year - 1 if start_month != 1 else fiscal_year
    month_index = start_month - 1 + (quarter - 1) * 3
    return first_calendar_year + month_index // 12, month_index % 12 + 1


def parse_quarter_key(value: Any) -> Optional[Tuple[int, int]]:
    if not isinstance(value, str):
        return None
    match = _QUARTER_KEY.match(value.strip())
    if not match:
        return None
    year, quarter = int(match.group(1)), int(match.group(2))
    if not 1 <= quarter <= 4:
        return None
    return year, quarter


def parse_period_date(value: Any) -> Optional[datetime]:
    """Best-effort parse of the date spellings found in report history keys and entries.

    Aware values are converted to UTC and returned naive so they sort together
    with naive ones.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = _parse_date_text(value.strip())
        if parsed is None:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_date_text(text: str) -> Optional[datetime]:
    if not text:
        return None
    if _YEAR.match(text):
        return datetime(int(text), 1, 1)
    match = _YEAR_MONTH.match(text)
    if match:
        month = int(match.group(2))
        if 1 <= month <= 12:
            return datetime(int(match.group(1)), month, 1)
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    # JS Date.toString() appends " GMT+0300 (East Africa Time)"; the offset part is dropped.
    head = text.split(" GMT")[0].strip()
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(head, fmt)
        except ValueError:
            continue
    return None


def _format_key(year: int, month: int, granularity: str, start_month: int) -> Optional[str]:
    if granularity == "monthly":
        return f"{year:04d}-{month:02d}"
    if granularity == "annual":
        return f"{year:04d}"
    if granularity == "quarterly":
        fiscal_year, quarter = fiscal_quarter(year, month, start_month)
        return f"{fiscal_year:04d}-Q{quarter}"
    return None


@lru_cache(maxsize=8192)
def _normalize_cached(raw_key: str, granularity: str, start_month: int) -> Optional[str]:
    text = raw_key.strip()
    if "-Q" in text.upper():
        quarter_key = parse_quarter_key(text)
        if quarter_key is None:
            return None
        # Already a fiscal key: anchor on the middle of its first month and re-derive.
        year, month = fiscal_quarter_start(quarter_key[0], quarter_key[1], start_month)
        return _format_key(year, month, granularity, start_month)

    parsed = parse_period_date(text)
    if parsed is None:
        return None
    return _format_key(parsed.year, parsed.month, granularity, start_month)


def normalize_period_key(
    raw_key: Any,
    granularity: str,
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> Optional[str]:
    """Canonical period key (``YYYY-MM``, fiscal ``YYYY-Qn`` or ``YYYY``) or None."""
    if raw_key is None or isinstance(raw_key, bool):
        return None
    if isinstance(raw_key, (date, datetime)):
        parsed = parse_period_date(raw_key)
        return _format_key(parsed.year, parsed.month, granularity, fiscal_start_month)
    if not isinstance(raw_key, (str, int)):
        return None
    return _normalize_cached(str(raw_key), granularity, fiscal_start_month)


def flatten_periods(
    report: MasterReport,
    granularity: str,
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> List[str]:
    periods = set()
    for _, _, activity in report.iter_activities():
        for raw_key in activity.history.buckets(granularity):
            normalized = normalize_period_key(raw_key, granularity, fiscal_start_month)
            if normalized:
                periods.add(normalized)
    # Keys are zero-padded and year-first, so string order is chronological.
    return sorted(periods)


def format_period_label(period_key: str, granularity: str) -> str:
    if granularity == "quarterly":
        quarter_key = parse_quarter_key(period_key)
        if quarter_key is None:
            return period_key
        return f"Q{quarter_key[1]} {quarter_key[0]}"
    if granularity == "monthly":
        match = _YEAR_MONTH.match(period_key or "")
        if not match or not 1 <= int(match.group(2)) <= 12:
            return period_key
        return f"{calendar.month_abbr[int(match.group(2))]} {match.group(1)}"
    return period_key


def is_period_past(
    period_key: str,
    granularity: str,
    reference_date: date,
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
) -> bool:
    """True when the period ends before the period containing ``reference_date``."""
    if granularity == "quarterly":
        quarter_key = parse_quarter_key(period_key)
        if quarter_key is None:
            return False
        return quarter_key < fiscal_quarter(reference_date.year, reference_date.month, fiscal_start_month)
    if granularity == "monthly":
        match = _YEAR_MONTH.match(period_key or "")
        if not match:
            return False
        return (int(match.group(1)), int(match.group(2))) < (reference_date.year, reference_date.month)
    if granularity == "annual":
        if not _YEAR.match(period_key or ""):
            return False
        return int(period_key) < reference_date.year
    return False
