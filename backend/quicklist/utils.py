from __future__ import annotations

import datetime as dt
from typing import Any, Iterable, List, Optional


def normalize_name(value: Any) -> Optional[str]:
    """Return a trimmed display name, or None for blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_name_selection(values: Iterable[Any]) -> List[str]:
    if isinstance(values, str):
        values = [values]
    seen: set[str] = set()
    normalized: List[str] = []
    for value in values:
        candidate = normalize_name(value)
        if not candidate or candidate in seen:
            continue
        normalized.append(candidate)
        seen.add(candidate)
    return normalized


def ensure_aware(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value
