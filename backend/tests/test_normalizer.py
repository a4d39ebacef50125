from __future__ import annotations

import datetime as dt
from zoneinfo import ZoneInfo

from conftest import encode_visit_id, make_edge
from quicklist.normalizer import (
    format_day,
    format_time_range,
    maps_url,
    normalize_visit,
    salesperson_name,
    visit_number,
    visit_url,
)
from quicklist.schemas import Visit
from quicklist.titles import tokenize_title


def _visit(title: str = "12345 -NE- 123 Main St - WIN", **kwargs) -> Visit:
    return Visit.model_validate(make_edge(title, **kwargs)["node"])


def _at(hour: int, minute: int, second: int = 0) -> dt.datetime:
    return dt.datetime(2024, 3, 5, hour, minute, second)


def test_format_day_uses_weekday_and_month_day() -> None:
    assert format_day(dt.date(2024, 3, 5)) == "Tue 3/5"
    assert format_day(dt.date(2024, 12, 29)) == "Sun 12/29"


def test_time_range_with_both_boundaries() -> None:
    assert format_time_range(_at(9, 0), _at(11, 30)) == "9:00-11:30"
    assert format_time_range(_at(13, 5), _at(15, 0)) == "1:05-3:00"


def test_time_range_drops_unset_boundaries() -> None:
    assert format_time_range(_at(0, 0), _at(23, 59, 59)) == ""
    assert format_time_range(_at(0, 0), _at(14, 0)) == "2:00"
    assert format_time_range(_at(13, 15), _at(23, 59, 59)) == "1:15"


def test_visit_number_strips_resource_prefix() -> None:
    assert visit_number(encode_visit_id(98765)) == "98765"
    assert visit_number("not base64!") == "not base64!"


def test_visit_url_appends_appointment_id() -> None:
    visit = _visit(number=77)
    assert visit_url(visit) == "https://secure.getjobber.com/work_orders/42?appointment_id=77"


def test_maps_url_joins_address_parts() -> None:
    assert (
        maps_url("123 Main St / Unit 2")
        == "https://www.google.com/maps/place/123+Main+St+Unit+2+Spokane,WA"
    )
    assert maps_url("9 Oak Rd", "https://maps.example/?q=", "Boise,ID") == "https://maps.example/?q=9+Oak+Rd+Boise,ID"


def test_salesperson_defaults_to_unknown() -> None:
    assert salesperson_name(_visit(salesperson=None)) == "Unknown"
    assert salesperson_name(_visit(salesperson="   ")) == "Unknown"
    assert salesperson_name(_visit(salesperson="  Dana ")) == "Dana"


def test_normalize_visit_reads_calendar_fields_in_given_timezone() -> None:
    visit = _visit(start="2024-03-09T07:00:00Z", end="2024-03-09T08:00:00Z")
    parsed = tokenize_title(visit.title)

    pacific = normalize_visit(visit, parsed, ZoneInfo("America/Los_Angeles"))
    utc = normalize_visit(visit, parsed, ZoneInfo("UTC"))

    assert (pacific.date, pacific.weekday, pacific.time_range) == ("Fri 3/8", "Friday", "11:00-12:00")
    assert (utc.date, utc.weekday, utc.time_range) == ("Sat 3/9", "Saturday", "7:00-8:00")
    assert utc.is_weekend and not pacific.is_weekend


def test_normalize_visit_uses_fallback_address_for_maps() -> None:
    visit = _visit("Quarterly check")
    fields = normalize_visit(visit, tokenize_title(visit.title), ZoneInfo("America/Los_Angeles"))
    assert fields.maps_url == "https://www.google.com/maps/place/?+Spokane,WA"
