from __future__ import annotations

import json
import math
from typing import Any, Optional


def safe_parse_json(value: Any) -> Any:
    """Return ``value`` decoded if it is a JSON string, as-is if already decoded, else None."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None
    if isinstance(value, (dict, list, int, float)):
        return value
    return None


def to_number_or_null(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.replace(",", "").strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None
