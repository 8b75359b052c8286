"""Deterministic output order for the persisted record set."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date

from identity import parse_loose_date
from models import Record

# Missing or sentinel scores rank below any real score.
MISSING_SCORE = -1.0


def sort_key(record: Record) -> tuple[float, float, date, str]:
    """Quality desc, volume desc, date asc (unparseable last), title asc."""
    parsed = parse_loose_date(record.temporal)
    return (
        -_score(record.quality_score),
        -_score(record.volume_score),
        parsed if parsed is not None else date.max,
        record.title,
    )


def sort_records(records: Iterable[Record]) -> list[Record]:
    return sorted(records, key=sort_key)


def _score(value: float | int | None) -> float:
    if value is None:
        return MISSING_SCORE
    number = float(value)
    return number if math.isfinite(number) else MISSING_SCORE
