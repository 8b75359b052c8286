"""Threshold filters applied to freshly scraped records before merging."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from identity import parse_loose_date
from models import Record

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Numeric and categorical thresholds. None / empty means "no limit"."""

    min_rating: float | None = None
    min_votes: int | None = None
    genres: tuple[str, ...] = field(default_factory=tuple)
    exclude_genres: tuple[str, ...] = field(default_factory=tuple)
    since: date | None = None
    until: date | None = None
    # Records without a numeric rating/votes (including failed lookups)
    # survive the numeric thresholds when this is set.
    keep_unrated: bool = True


def passes_filters(record: Record, criteria: FilterCriteria) -> bool:
    """Return True if the record clears every configured threshold."""
    if criteria.min_rating is not None:
        rating = record.quality_score
        if rating is None:
            if not criteria.keep_unrated:
                return False
        elif rating < criteria.min_rating:
            return False

    if criteria.min_votes is not None:
        votes = record.volume_score
        if votes is None:
            if not criteria.keep_unrated:
                return False
        elif votes < criteria.min_votes:
            return False

    genre = (record.genre or "").lower()
    if criteria.genres and not any(g.lower() in genre for g in criteria.genres):
        return False
    if any(g.lower() in genre for g in criteria.exclude_genres):
        return False

    if criteria.since is not None or criteria.until is not None:
        parsed = parse_loose_date(record.temporal)
        if parsed is None:
            return False  # cannot place it inside the window
        if criteria.since is not None and parsed < criteria.since:
            return False
        if criteria.until is not None and parsed > criteria.until:
            return False

    return True


def apply_filters(records: Iterable[Record], criteria: FilterCriteria) -> list[Record]:
    records = list(records)
    kept = [r for r in records if passes_filters(r, criteria)]
    LOGGER.info(
        "Filters: total=%s kept=%s dropped=%s",
        len(records),
        len(kept),
        len(records) - len(kept),
    )
    return kept
