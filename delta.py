"""Added/updated/removed report between two generations of the output set."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from models import Delta, FieldChange, Record, RecordChange
from reconcile import index_records

LOGGER = logging.getLogger(__name__)


def record_fields(record: Record) -> dict[str, Any]:
    """Tracked fields of a record, as they appear in the output file."""
    enrichment = record.enrichment
    return {
        "title": record.title,
        "genre": record.genre,
        "date": record.temporal,
        "group": record.group,
        "rating": enrichment.rating_cell() if enrichment is not None else None,
        "votes": record.volume_score,
        "id": record.external_id,
    }


def diff_records(old_records: Iterable[Record], new_records: Iterable[Record]) -> Delta:
    """Classify keys as added, updated (with per-field changes) or removed.

    Removed keys are informational only; the merge still retains them.
    """
    old_by_key = index_records(old_records)
    new_by_key = index_records(new_records)
    delta = Delta()

    for key, new in new_by_key.items():
        old = old_by_key.get(key)
        if old is None:
            delta.added.append(key)
            continue
        changes = field_changes(old, new)
        if changes:
            delta.updated.append(RecordChange(key=key, old=old, new=new, diff=changes))

    delta.removed = [key for key in old_by_key if key not in new_by_key]

    LOGGER.info(
        "Delta: added=%s updated=%s removed=%s",
        len(delta.added),
        len(delta.updated),
        len(delta.removed),
    )
    return delta


def field_changes(old: Record, new: Record) -> dict[str, FieldChange]:
    old_fields = record_fields(old)
    new_fields = record_fields(new)
    return {
        name: FieldChange(old=old_fields[name], new=new_fields[name])
        for name in old_fields
        if not values_equal(old_fields[name], new_fields[name])
    }


def values_equal(a: Any, b: Any) -> bool:
    """Numeric comparison when both sides are numbers, text comparison otherwise."""
    a_num = _as_number(a)
    b_num = _as_number(b)
    if a_num is not None and b_num is not None:
        return a_num == b_num
    return _as_text(a) == _as_text(b)


def delta_to_json(delta: Delta) -> dict[str, Any]:
    return {
        "Added": list(delta.added),
        "Updated": [
            {
                "Key": change.key,
                "Old": record_fields(change.old),
                "New": record_fields(change.new),
                "Diff": {
                    name: {"Old": fc.old, "New": fc.new}
                    for name, fc in change.diff.items()
                },
            }
            for change in delta.updated
        ],
        "Removed": list(delta.removed),
    }


def write_changelog(delta: Delta, path: str | Path) -> bool:
    """Write the delta as JSON. Failures are logged, not raised."""
    out = Path(path)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("w", encoding="utf-8") as fh:
            json.dump(delta_to_json(delta), fh, indent=2)
    except OSError as exc:
        LOGGER.warning("Failed to write changelog to %s: %s", out, exc)
        return False
    LOGGER.info("Wrote changelog to %s", out)
    return True


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_text(value: Any) -> str:
    return "" if value is None else str(value).strip()
