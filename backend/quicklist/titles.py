"""Positional tokenizer for visit titles.

Titles are entered by hand in Jobber and carry four tokens, for example
``12345 -NE- 123 Main St - WIN``::

    12345       job identifier ("=" marks an annual job, a leading "="
                one that is not yet confirmed)
    -NE-        geo code
    123 Main St address
    WIN         work code

The grammar is applied as a global match and the first four matches are
assigned to the tokens in that order, whichever alternative produced them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

ANNUAL_MARKER = "="

TITLE_PATTERN = re.compile(r"(^[^-]+)|(-[A-Z]+-)|([^-\s][^-\n]*[^-\s])|(-[^-\s][^-\n]*[^-\s])")

MISSING_TOKEN = "?"


class MalformedTitleError(ValueError):
    """Raised when a title yields no usable job identifier."""

    def __init__(self, title: str) -> None:
        super().__init__(f"Title has no usable tokens: {title!r}")
        self.title = title


@dataclass(frozen=True, slots=True)
class ParsedTitle:
    job_identifier: str
    geo_code: Optional[str] = None
    address: Optional[str] = None
    work_code: Optional[str] = None

    @property
    def is_annual(self) -> bool:
        return ANNUAL_MARKER in self.job_identifier

    @property
    def is_unconfirmed_annual(self) -> bool:
        return self.is_annual and self.job_identifier.startswith(ANNUAL_MARKER)

    @property
    def is_confirmed_annual(self) -> bool:
        return self.is_annual and not self.job_identifier.startswith(ANNUAL_MARKER)

    @property
    def geo_code_display(self) -> str:
        return self.geo_code or MISSING_TOKEN

    @property
    def address_display(self) -> str:
        return self.address or MISSING_TOKEN

    @property
    def work_code_display(self) -> str:
        return self.work_code or MISSING_TOKEN


def _token(parts: list[str], index: int) -> Optional[str]:
    if index >= len(parts):
        return None
    return parts[index].strip() or None


def tokenize_title(title: Optional[str]) -> ParsedTitle:
    if title is None or not title.strip():
        raise MalformedTitleError(title or "")
    parts = [match.group(0) for match in TITLE_PATTERN.finditer(title)]
    identifier = _token(parts, 0)
    if identifier is None:
        raise MalformedTitleError(title)
    return ParsedTitle(
        job_identifier=identifier,
        geo_code=_token(parts, 1),
        address=_token(parts, 2),
        work_code=_token(parts, 3),
    )


def geo_code_of(title: Optional[str]) -> str:
    """Geo code used as a sort key; empty when the title has none."""
    try:
        parsed = tokenize_title(title)
    except MalformedTitleError:
        return ""
    return parsed.geo_code or ""
