"""Line and header formatting for the two output dialects."""

from __future__ import annotations

import datetime as dt
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional
from zoneinfo import ZoneInfo

from .normalizer import DisplayFields, format_day, local_datetime
from .schemas import DateDisplayType, Dialect, FilterSettings, Visit
from .titles import MISSING_TOKEN, ParsedTitle

SEPARATOR_RULE = "-" * 30


def format_amount(value: Optional[Decimal]) -> str:
    if value is None:
        return MISSING_TOKEN
    amount = Decimal(value)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")


def format_range_bound(value: dt.date | dt.datetime, tz: ZoneInfo) -> str:
    if isinstance(value, dt.datetime):
        return format_day(local_datetime(value, tz).date())
    return format_day(value)


def show_date(fields: DisplayFields, settings: FilterSettings) -> bool:
    if not settings.show_dates:
        return False
    if settings.date_display_type == DateDisplayType.WEEKDAY_ONLY:
        return not fields.is_weekend
    if settings.date_display_type == DateDisplayType.WEEKEND_ONLY:
        return fields.is_weekend
    return True


class Renderer(ABC):
    dialect: Dialect

    @abstractmethod
    def line(self, visit: Visit, parsed: ParsedTitle, fields: DisplayFields, settings: FilterSettings) -> str:
        raise NotImplementedError

    @abstractmethod
    def header(self, start: str, end: str, job_count: int, total: Decimal, settings: FilterSettings) -> str:
        raise NotImplementedError


class MarkdownRenderer(Renderer):
    dialect = Dialect.MARKDOWN

    def line(self, visit: Visit, parsed: ParsedTitle, fields: DisplayFields, settings: FilterSettings) -> str:
        parts: List[str] = []
        if show_date(fields, settings):
            parts.append(f" **`{fields.date}`** ")
        parts.append(
            f"[**{parsed.job_identifier}**]({fields.visit_url}) {parsed.geo_code_display} "
            f"[{parsed.address_display}]({fields.maps_url}) - {parsed.work_code_display}"
        )
        if settings.show_time and fields.time_range:
            parts.append(f" **`{fields.time_range}`**")
        if settings.show_value:
            parts.append(f" `${format_amount(visit.job.total)}`")
        if settings.show_salesperson:
            parts.append(f" `{fields.salesperson}`")
        return "".join(parts)

    def header(self, start: str, end: str, job_count: int, total: Decimal, settings: FilterSettings) -> str:
        text = f"# **{start} - {end}** **`{job_count} Jobs`**"
        if settings.show_value:
            text += f" **`${format_amount(total)}`**"
        return text + "\n\n"


class PlaintextRenderer(Renderer):
    dialect = Dialect.PLAINTEXT

    def line(self, visit: Visit, parsed: ParsedTitle, fields: DisplayFields, settings: FilterSettings) -> str:
        text = (
            f"{parsed.job_identifier} {parsed.geo_code_display} "
            f"{parsed.address_display} - {parsed.work_code_display}"
        )
        if show_date(fields, settings):
            text += f" {fields.date}"
        if settings.show_time and fields.time_range:
            text += f" {fields.time_range}"
        if settings.show_value:
            text += f" - ${format_amount(visit.job.total)}"
        if settings.show_salesperson:
            text += f" - {fields.salesperson}"
        return text

    def header(self, start: str, end: str, job_count: int, total: Decimal, settings: FilterSettings) -> str:
        text = f"{start} - {end}, {job_count} Jobs"
        if settings.show_value:
            text += f", ${format_amount(total)}"
        return f"{text}\n\n{SEPARATOR_RULE}\n\n"


_RENDERERS = {
    Dialect.MARKDOWN: MarkdownRenderer(),
    Dialect.PLAINTEXT: PlaintextRenderer(),
}


def renderer_for(dialect: Dialect) -> Renderer:
    return _RENDERERS.get(dialect, _RENDERERS[Dialect.MARKDOWN])
