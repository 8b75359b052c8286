"""Incremental merge of a fresh scrape into the persisted output file."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path

from csv_sink import load_records, write_records
from delta import diff_records, write_changelog
from identity import identity_key
from models import Delta, OutputSchema, Record
from ordering import sort_records
from reconcile import dedup_records, index_records, merge_records

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunSummary:
    scraped: int
    deduped: int
    added: int
    updated: int
    removed: int
    total: int


def update_store(
    new_records: Iterable[Record],
    schema: OutputSchema,
    output_path: str | Path,
    changelog_path: str | Path | None = None,
    dry_run: bool = False,
    carry_enrichment: bool = False,
) -> tuple[RunSummary, Delta]:
    """Dedup, merge, diff, sort and rewrite the output file in full.

    Rows already in the file but absent from this scrape are kept.
    Nothing is written when dry_run is set. With carry_enrichment, scraped
    rows that have no lookup result take the stored row's result, so a
    preview does not report every rated row as changed.

    Raises csv_sink.StoreReadError when the existing file is not a readable
    store; the file is left untouched in that case.
    """
    scraped = list(new_records)
    old_records = load_records(output_path, schema)

    deduped = dedup_records(scraped)
    if carry_enrichment:
        deduped = _carry_stored_enrichment(deduped, index_records(old_records))
    merged = merge_records(old_records, deduped)
    delta = diff_records(old_records, deduped)
    ordered = sort_records(merged.values())

    summary = RunSummary(
        scraped=len(scraped),
        deduped=len(deduped),
        added=len(delta.added),
        updated=len(delta.updated),
        removed=len(delta.removed),
        total=len(ordered),
    )

    if dry_run:
        LOGGER.info("[dry-run] Would write %s records to %s", len(ordered), output_path)
    else:
        write_records(output_path, schema, ordered)
        if changelog_path:
            write_changelog(delta, changelog_path)

    LOGGER.info(
        "Store update: scraped=%s deduped=%s added=%s updated=%s removed(retained)=%s total=%s",
        summary.scraped,
        summary.deduped,
        summary.added,
        summary.updated,
        summary.removed,
        summary.total,
    )
    return summary, delta


def _carry_stored_enrichment(records: list[Record], stored: dict[str, Record]) -> list[Record]:
    carried: list[Record] = []
    for record in records:
        previous = stored.get(identity_key(record))
        if record.enrichment is None and previous is not None and previous.enrichment is not None:
            record = replace(record, enrichment=previous.enrichment)
        carried.append(record)
    return carried
