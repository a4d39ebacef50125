from __future__ import annotations

import base64
import binascii
import datetime as dt
import re
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo

from .schemas import Visit
from .titles import ParsedTitle
from .utils import ensure_aware, normalize_name

VISIT_GID_PREFIX = "gid://Jobber/Visit/"
UNKNOWN_SALESPERSON = "Unknown"
DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_MAPS_BASE_URL = "https://www.google.com/maps/place/"
DEFAULT_MAPS_LOCALITY = "Spokane,WA"

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
WEEKEND_DAYS = frozenset({"Saturday", "Sunday"})

# Jobber stores "no time set" as 00:00 for the start and 23:59 for the end.
UNSET_START = dt.time(0, 0)
UNSET_END = dt.time(23, 59)

_SLASH_SEPARATOR = re.compile(r"\s/\s")
_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True, slots=True)
class DisplayFields:
    date: str
    weekday: str
    time_range: str
    salesperson: str
    visit_url: str
    maps_url: str

    @property
    def is_weekend(self) -> bool:
        return self.weekday in WEEKEND_DAYS


def local_datetime(value: dt.datetime, tz: ZoneInfo) -> dt.datetime:
    return ensure_aware(value).astimezone(tz)


def format_day(day: dt.date) -> str:
    """``Tue 3/5`` style label."""
    return f"{weekday_name(day)[:3]} {day.month}/{day.day}"


def weekday_name(day: dt.date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def format_clock(value: dt.datetime) -> str:
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d}"


def format_time_range(start: dt.datetime, end: dt.datetime) -> str:
    """Time span without AM/PM, dropping boundaries that carry no time."""
    start_clock = None
    end_clock = None
    if start.time().replace(second=0, microsecond=0) != UNSET_START:
        start_clock = format_clock(start)
    if end.time().replace(second=0, microsecond=0) != UNSET_END:
        end_clock = format_clock(end)
    if start_clock and end_clock:
        return f"{start_clock}-{end_clock}"
    return start_clock or end_clock or ""


def visit_number(visit_id: str) -> str:
    try:
        decoded = base64.b64decode(visit_id, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return visit_id
    return decoded.replace(VISIT_GID_PREFIX, "")


def visit_url(visit: Visit) -> str:
    return f"{visit.job.jobber_web_uri}?appointment_id={visit_number(visit.id)}"


def maps_url(address: str, base_url: str = DEFAULT_MAPS_BASE_URL, locality: str = DEFAULT_MAPS_LOCALITY) -> str:
    query = _WHITESPACE.sub("+", _SLASH_SEPARATOR.sub("+", address))
    if locality:
        query = f"{query}+{locality}"
    return f"{base_url}{query}"


def salesperson_name(visit: Visit) -> str:
    return normalize_name(visit.salesperson_first_name) or UNKNOWN_SALESPERSON


def normalize_visit(
    visit: Visit,
    parsed: ParsedTitle,
    tz: Optional[ZoneInfo] = None,
    maps_base_url: str = DEFAULT_MAPS_BASE_URL,
    maps_locality: str = DEFAULT_MAPS_LOCALITY,
) -> DisplayFields:
    zone = tz or ZoneInfo(DEFAULT_TIMEZONE)
    start = local_datetime(visit.start_at, zone)
    end = local_datetime(visit.end_at, zone)
    return DisplayFields(
        date=format_day(start.date()),
        weekday=weekday_name(start.date()),
        time_range=format_time_range(start, end),
        salesperson=salesperson_name(visit),
        visit_url=visit_url(visit),
        maps_url=maps_url(parsed.address_display, maps_base_url, maps_locality),
    )
