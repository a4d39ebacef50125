from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Tuple

from .schemas import SortBy, Visit
from .titles import geo_code_of
from .utils import ensure_aware


def _text_key(value: str) -> Tuple[str, str]:
    # case-insensitive first, exact text as the tie-break
    return value.casefold(), value


def _value(visit: Visit) -> Decimal:
    return visit.job.total or Decimal(0)


def _by_date(visit: Visit) -> Any:
    return ensure_aware(visit.start_at)


def _by_title(visit: Visit) -> Any:
    return _text_key(visit.title)


def _by_value(visit: Visit) -> Any:
    return -_value(visit)


def _by_geo_code(visit: Visit) -> Any:
    return _text_key(geo_code_of(visit.title))


def _by_geo_code_then_value(visit: Visit) -> Any:
    return _text_key(geo_code_of(visit.title)), -_value(visit)


def _by_salesperson(visit: Visit) -> Any:
    return _text_key(visit.salesperson_first_name or "")


SORT_KEYS: Dict[SortBy, Callable[[Visit], Any]] = {
    SortBy.DATE: _by_date,
    SortBy.ALPHABETICAL: _by_title,
    SortBy.VALUE: _by_value,
    SortBy.GEO_CODE: _by_geo_code,
    SortBy.GEO_CODE_THEN_VALUE: _by_geo_code_then_value,
    SortBy.SALESPERSON: _by_salesperson,
}


def sort_visits(visits: Iterable[Visit], sort_by: SortBy) -> List[Visit]:
    """Return a new, stably sorted list; the input is left untouched."""
    key = SORT_KEYS.get(sort_by, _by_date)
    return sorted(visits, key=key)
