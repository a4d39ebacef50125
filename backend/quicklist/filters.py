from __future__ import annotations

from typing import Callable, Dict

from .normalizer import DisplayFields
from .schemas import AnnualFilter, FilterSettings, SelectionMode, Visit
from .titles import ParsedTitle

_ANNUAL_RULES: Dict[AnnualFilter, Callable[[ParsedTitle], bool]] = {
    AnnualFilter.INCLUDE: lambda parsed: True,
    AnnualFilter.EXCLUDE: lambda parsed: not parsed.is_annual,
    AnnualFilter.EXCLUDE_UNCONFIRMED: lambda parsed: not parsed.is_unconfirmed_annual,
    AnnualFilter.ANNUAL_ONLY: lambda parsed: parsed.is_annual,
    AnnualFilter.ANNUAL_ONLY_CONFIRMED: lambda parsed: parsed.is_confirmed_annual,
    AnnualFilter.ANNUAL_ONLY_UNCONFIRMED: lambda parsed: parsed.is_unconfirmed_annual,
}


def passes_annual(parsed: ParsedTitle, annual: AnnualFilter) -> bool:
    """Annual-status predicate.

    ``=`` anywhere in the identifier makes a job annual; a *leading* ``=``
    marks it unconfirmed, so ``12345=ABC`` counts as confirmed and
    ``=12345`` does not.
    """
    rule = _ANNUAL_RULES.get(annual, _ANNUAL_RULES[AnnualFilter.INCLUDE])
    return rule(parsed)


def passes_salesperson(fields: DisplayFields, settings: FilterSettings) -> bool:
    if settings.salesperson_filter != SelectionMode.SHOW_SELECTED:
        return True
    return fields.salesperson in settings.selected_salespeople


def passes_day(fields: DisplayFields, settings: FilterSettings) -> bool:
    if settings.day_filter != SelectionMode.SHOW_SELECTED:
        return True
    return fields.weekday in settings.selected_days


def passes_text(visit: Visit, free_text: str) -> bool:
    if not free_text:
        return True
    return free_text.lower() in visit.title.lower()


def include_visit(
    visit: Visit,
    parsed: ParsedTitle,
    fields: DisplayFields,
    settings: FilterSettings,
    free_text: str = "",
) -> bool:
    return (
        passes_annual(parsed, settings.annual)
        and passes_salesperson(fields, settings)
        and passes_day(fields, settings)
        and passes_text(visit, free_text)
    )
