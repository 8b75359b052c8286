"""Dedup and merge of scraped records against the persisted output set."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from identity import identity_key, is_keyable
from models import Record

LOGGER = logging.getLogger(__name__)


def dedup_records(records: Iterable[Record]) -> list[Record]:
    """Keep the first record per identity key, preserving input order.

    Records with a blank title cannot be keyed and are dropped.
    """
    seen: set[str] = set()
    kept: list[Record] = []
    duplicates = 0
    unkeyable = 0

    for record in records:
        if not is_keyable(record):
            unkeyable += 1
            continue
        key = identity_key(record)
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        kept.append(record)

    if duplicates or unkeyable:
        LOGGER.info(
            "Dedup: kept=%s duplicates=%s unkeyable=%s",
            len(kept),
            duplicates,
            unkeyable,
        )
    return kept


def index_records(records: Iterable[Record]) -> dict[str, Record]:
    """Map identity key -> record; later records replace earlier ones."""
    indexed: dict[str, Record] = {}
    for record in records:
        if is_keyable(record):
            indexed[identity_key(record)] = record
    return indexed


def merge_records(old_records: Iterable[Record], new_records: Iterable[Record]) -> dict[str, Record]:
    """Overlay new records onto the previous set by identity key.

    A new record replaces the old one for its key wholesale (no field-level
    union). Keys only present in the old set are kept, so the store only
    grows across runs.
    """
    merged = index_records(old_records)
    for record in new_records:
        if not is_keyable(record):
            continue
        merged[identity_key(record)] = record
    return merged
