from __future__ import annotations

from datetime import date
from typing import Optional

from src.core.errors import BadRequestError


def parse_as_of(value: Optional[str]) -> date:
    """Reference date for "is this period past" checks; defaults to today."""
    if value is None or not value.strip():
        return date.today()
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise BadRequestError("as_of must be an ISO date (YYYY-MM-DD)") from exc
