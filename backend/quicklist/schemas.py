from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from .utils import normalize_name_selection


class SortBy(str, Enum):
    DATE = "date"
    ALPHABETICAL = "alphabetical"
    VALUE = "value"
    GEO_CODE = "geoCode"
    GEO_CODE_THEN_VALUE = "geoCodeThenValue"
    SALESPERSON = "salesperson"


class AnnualFilter(str, Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    EXCLUDE_UNCONFIRMED = "excludeUnconfirmed"
    ANNUAL_ONLY = "annualOnly"
    ANNUAL_ONLY_CONFIRMED = "annualOnlyConfirmed"
    ANNUAL_ONLY_UNCONFIRMED = "annualOnlyUnconfirmed"


class SelectionMode(str, Enum):
    ALL = "all"
    SHOW_SELECTED = "showSelected"


class DateDisplayType(str, Enum):
    ALL = "all"
    WEEKDAY_ONLY = "weekdayOnly"
    WEEKEND_ONLY = "weekendOnly"


class Dialect(str, Enum):
    MARKDOWN = "markdown"
    PLAINTEXT = "plaintext"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonName(_CamelModel):
    first: Optional[str] = None
    last: Optional[str] = None


class Salesperson(_CamelModel):
    name: PersonName = Field(default_factory=PersonName)


class Job(_CamelModel):
    jobber_web_uri: str = ""
    total: Optional[Decimal] = None
    job_type: Optional[str] = None
    salesperson: Optional[Salesperson] = None


class Visit(_CamelModel):
    """One scheduled visit as returned by the Jobber GraphQL API."""

    id: str
    title: str = ""
    start_at: dt.datetime
    end_at: dt.datetime
    job: Job = Field(default_factory=Job)

    @field_validator("title", mode="before")
    @classmethod
    def _null_title(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def salesperson_first_name(self) -> Optional[str]:
        if self.job.salesperson is None:
            return None
        return self.job.salesperson.name.first


class VisitEdge(_CamelModel):
    node: Visit


class FilterSettings(_CamelModel):
    """Display, filter and sort options chosen in the UI."""

    sort_by: SortBy = SortBy.DATE
    annual: AnnualFilter = AnnualFilter.INCLUDE
    show_dates: bool = False
    date_display_type: DateDisplayType = DateDisplayType.ALL
    show_value: bool = False
    show_salesperson: bool = True
    show_range_info: bool = True
    show_time: bool = False
    salesperson_filter: SelectionMode = SelectionMode.ALL
    selected_salespeople: List[str] = Field(default_factory=list)
    day_filter: SelectionMode = SelectionMode.ALL
    selected_days: List[str] = Field(default_factory=list)

    @field_validator("selected_salespeople", "selected_days", mode="before")
    @classmethod
    def _normalize_selection(cls, value: Any) -> List[str]:
        if value is None:
            return []
        return normalize_name_selection(value)


class FormatRequest(_CamelModel):
    data: Optional[Dict[str, Any] | List[Dict[str, Any]]] = None
    settings: FilterSettings = Field(default_factory=FilterSettings)
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    dialect: Dialect = Dialect.MARKDOWN
    filter_text: str = ""


class ItineraryRequest(_CamelModel):
    start_date: dt.date
    end_date: dt.date
    settings: FilterSettings = Field(default_factory=FilterSettings)
    dialect: Dialect = Dialect.MARKDOWN
    filter_text: str = ""


class SalespeopleRequest(_CamelModel):
    data: Optional[Dict[str, Any] | List[Dict[str, Any]]] = None


class FormatResponse(_CamelModel):
    text: str
    job_count: int
    total: Decimal
    skipped: List[str] = Field(default_factory=list)
    salespeople: List[str] = Field(default_factory=list)

    @field_serializer("total")
    def _total_as_number(self, total: Decimal) -> int | float:
        if total == total.to_integral_value():
            return int(total)
        return float(total)


class SalespeopleResponse(_CamelModel):
    salespeople: List[str]


class AuthStatusResponse(BaseModel):
    authenticated: bool
