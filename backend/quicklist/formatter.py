"""Turns a Jobber visits payload into a shareable itinerary.

The pipeline sorts the full visit list first, then walks it once: every
visit is tokenized, normalized and filter-tested, survivors are rendered and
counted, and finally the optional range header is prepended.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from .filters import include_visit
from .normalizer import DEFAULT_MAPS_BASE_URL, DEFAULT_MAPS_LOCALITY, DEFAULT_TIMEZONE, normalize_visit
from .rendering import format_range_bound, renderer_for
from .schemas import Dialect, FilterSettings, Visit, VisitEdge
from .sorting import sort_visits
from .titles import MalformedTitleError, tokenize_title
from .utils import normalize_name

logger = logging.getLogger(__name__)

VisitsPayload = Optional[Mapping[str, Any] | Sequence[Mapping[str, Any]]]


@dataclass
class JobTotals:
    count: int = 0
    total: Decimal = Decimal(0)

    def add(self, visit: Visit) -> None:
        self.count += 1
        self.total += visit.job.total or Decimal(0)


@dataclass
class FormatResult:
    text: str
    job_count: int
    total: Decimal
    skipped: List[str] = field(default_factory=list)


def _edges(data: VisitsPayload) -> Iterable[Any]:
    if not data:
        return []
    if isinstance(data, Mapping):
        visits = (data.get("data") or {}).get("visits") or {}
        return visits.get("edges") or []
    return data


def load_visits(data: VisitsPayload) -> List[Visit]:
    """Accept a full GraphQL response, a bare edge list, or nothing."""
    visits: List[Visit] = []
    for edge in _edges(data):
        if isinstance(edge, VisitEdge):
            visits.append(edge.node)
        elif isinstance(edge, Visit):
            visits.append(edge)
        else:
            visits.append(VisitEdge.model_validate(edge).node)
    return visits


def build_itinerary(
    data: VisitsPayload,
    settings: Optional[FilterSettings] = None,
    range_start: Optional[dt.date | dt.datetime] = None,
    range_end: Optional[dt.date | dt.datetime] = None,
    dialect: Dialect = Dialect.MARKDOWN,
    free_text: str = "",
    *,
    tz: Optional[ZoneInfo] = None,
    maps_base_url: str = DEFAULT_MAPS_BASE_URL,
    maps_locality: str = DEFAULT_MAPS_LOCALITY,
) -> FormatResult:
    settings = settings or FilterSettings()
    zone = tz or ZoneInfo(DEFAULT_TIMEZONE)
    renderer = renderer_for(dialect)
    totals = JobTotals()
    lines: List[str] = []
    skipped: List[str] = []

    for visit in sort_visits(load_visits(data), settings.sort_by):
        try:
            parsed = tokenize_title(visit.title)
        except MalformedTitleError as exc:
            logger.warning("Skipping visit %s: %s", visit.id, exc)
            skipped.append(visit.id)
            continue
        fields = normalize_visit(visit, parsed, zone, maps_base_url, maps_locality)
        if not include_visit(visit, parsed, fields, settings, free_text):
            continue
        totals.add(visit)
        lines.append(renderer.line(visit, parsed, fields, settings) + "\n\n")

    header = ""
    if settings.show_range_info and range_start is not None and range_end is not None:
        header = renderer.header(
            format_range_bound(range_start, zone),
            format_range_bound(range_end, zone),
            totals.count,
            totals.total,
            settings,
        )
    return FormatResult(
        text=header + "".join(lines),
        job_count=totals.count,
        total=totals.total,
        skipped=skipped,
    )


def format_visits(
    data: VisitsPayload,
    settings: Optional[FilterSettings] = None,
    range_start: Optional[dt.date | dt.datetime] = None,
    range_end: Optional[dt.date | dt.datetime] = None,
    dialect: Dialect = Dialect.MARKDOWN,
    free_text: str = "",
    **options: Any,
) -> str:
    return build_itinerary(data, settings, range_start, range_end, dialect, free_text, **options).text


def extract_salespeople(data: VisitsPayload) -> List[str]:
    names = set()
    for visit in load_visits(data):
        name = normalize_name(visit.salesperson_first_name)
        if name:
            names.add(name)
    return sorted(names)
