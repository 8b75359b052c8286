"""Identity keys and loose date parsing for scraped records."""

from __future__ import annotations

import re
from datetime import date

from models import Record

# Fixed English month table; strptime("%B") would depend on the process locale.
_MONTHS: dict[str, int] = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}
_MONTH_ALT = "|".join(sorted(_MONTHS, key=len, reverse=True))

_FOOTNOTE_RE = re.compile(r"\[[^\]]*\]")
_SEGMENT_SPLIT_RE = re.compile(r";")

_ISO_RE = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")
_US_RE = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4})(?!\d)")
_MONTH_DAY_YEAR_RE = re.compile(
    rf"\b({_MONTH_ALT})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}})(?!\d)",
    re.IGNORECASE,
)
_DAY_MONTH_YEAR_RE = re.compile(
    rf"(?<!\d)(\d{{1,2}})\s+({_MONTH_ALT})\.?,?\s+(\d{{4}})(?!\d)",
    re.IGNORECASE,
)
_MONTH_YEAR_RE = re.compile(rf"\b({_MONTH_ALT})\.?,?\s+(\d{{4}})(?!\d)", re.IGNORECASE)
_YEAR_RE = re.compile(r"(?<!\d)(1[89]\d{2}|2[01]\d{2})(?!\d)")


def _from_iso(m: re.Match[str]) -> date:
    return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def _from_us(m: re.Match[str]) -> date:
    return date(int(m.group(3)), int(m.group(1)), int(m.group(2)))


def _from_month_day_year(m: re.Match[str]) -> date:
    return date(int(m.group(3)), _MONTHS[m.group(1).lower()], int(m.group(2)))


def _from_day_month_year(m: re.Match[str]) -> date:
    return date(int(m.group(3)), _MONTHS[m.group(2).lower()], int(m.group(1)))


def _from_month_year(m: re.Match[str]) -> date:
    return date(int(m.group(2)), _MONTHS[m.group(1).lower()], 1)


def _from_year(m: re.Match[str]) -> date:
    return date(int(m.group(1)), 1, 1)


# Ordered by specificity: on a tie in match position the earlier pattern wins.
_PATTERNS = (
    (_ISO_RE, _from_iso),
    (_US_RE, _from_us),
    (_MONTH_DAY_YEAR_RE, _from_month_day_year),
    (_DAY_MONTH_YEAR_RE, _from_day_month_year),
    (_MONTH_YEAR_RE, _from_month_year),
    (_YEAR_RE, _from_year),
)


def normalize_text(value: str | None) -> str:
    """Trim and lower-case; None becomes the empty string."""
    if value is None:
        return ""
    return str(value).strip().lower()


def parse_loose_date(text: str | None) -> date | None:
    """Parse the first calendar date found in free text, or return None.

    Handles ``2024-01-31``, ``1/31/2024``, ``January 31, 2024``,
    ``31 January 2024``, ``January 2024`` and a bare ``2024``. When the text
    holds several dates (``;``-separated, or a range joined by a dash) the
    earliest-positioned date in the first parseable segment wins.
    """
    if not text:
        return None

    cleaned = _FOOTNOTE_RE.sub(" ", str(text))
    for segment in _SEGMENT_SPLIT_RE.split(cleaned):
        parsed = _first_date_in(segment)
        if parsed is not None:
            return parsed
    return None


def _first_date_in(segment: str) -> date | None:
    candidates: list[tuple[int, int, date]] = []
    for priority, (pattern, build) in enumerate(_PATTERNS):
        for match in pattern.finditer(segment):
            try:
                value = build(match)
            except ValueError:
                continue  # e.g. February 30
            candidates.append((match.start(), priority, value))
            break
    if not candidates:
        return None
    return min(candidates)[2]


def temporal_component(text: str | None) -> str:
    """Key fragment for a premiere/publication field."""
    parsed = parse_loose_date(text)
    if parsed is not None:
        return parsed.isoformat()
    return normalize_text(text)


def identity_key(record: Record) -> str:
    """Stable key recognising the same title across runs."""
    return "|".join((
        normalize_text(record.title),
        normalize_text(record.group),
        temporal_component(record.temporal),
    ))


def is_keyable(record: Record) -> bool:
    return bool(normalize_text(record.title))
