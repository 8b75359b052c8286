"""CSV store for the catalog pipeline: full read at start, full rewrite at end."""

from __future__ import annotations

import csv
import logging
import math
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from models import (
    LOOKUP_ERROR_TEXT,
    NOT_FOUND_TEXT,
    EnrichmentResult,
    OutputSchema,
    Record,
)

TV_OUTPUT_PATH = os.getenv("TV_OUTPUT_PATH", "output/tv_shows.csv")
BOOKS_OUTPUT_PATH = os.getenv("BOOKS_OUTPUT_PATH", "output/books.csv")

LOGGER = logging.getLogger(__name__)


class StoreReadError(RuntimeError):
    """Raised when an existing output file cannot be read as a store."""


def load_records(path: str | Path, schema: OutputSchema) -> list[Record]:
    """Read every row of a previously written output file.

    A missing file is an empty store. Missing columns read as empty cells;
    rows without a title are skipped. A file without a title column raises
    StoreReadError so it is never overwritten with a partial store.
    """
    csv_path = Path(path)
    if not csv_path.exists() or csv_path.stat().st_size == 0:
        LOGGER.info("No existing output at %s, starting from an empty store", csv_path)
        return []

    with csv_path.open(newline="", encoding="utf-8-sig") as fh:
        reader = csv.DictReader(fh)
        fieldnames = [name.strip() for name in reader.fieldnames or []]
        if schema.title not in fieldnames:
            LOGGER.error("Output %s has no %s column (header=%s)", csv_path, schema.title, fieldnames)
            raise StoreReadError(f"{csv_path} has no {schema.title} column")
        reader.fieldnames = fieldnames
        missing = [c for c in schema.columns if c not in fieldnames]
        if missing:
            LOGGER.warning("Output %s is missing columns %s; treating them as empty", csv_path, missing)
        rows = list(reader)

    records: list[Record] = []
    for row in rows:
        record = _row_to_record(row, schema)
        if record is None:
            continue
        records.append(record)

    LOGGER.info("Loaded %s records from %s (skipped=%s)", len(records), csv_path, len(rows) - len(records))
    return records


def write_records(path: str | Path, schema: OutputSchema, records: Iterable[Record]) -> int:
    """Rewrite the output file with a header and all records, in the given order."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with csv_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=schema.columns)
        writer.writeheader()
        for record in records:
            writer.writerow(record_to_row(record, schema))
            count += 1

    LOGGER.info("Wrote %s records to %s", count, csv_path)
    return count


def record_to_row(record: Record, schema: OutputSchema) -> dict[str, Any]:
    enrichment = record.enrichment
    rating = enrichment.rating_cell() if enrichment is not None else None
    return {
        schema.title: record.title,
        schema.genre: record.genre or "",
        schema.temporal: record.temporal or "",
        schema.group: record.group or "",
        schema.quality: "" if rating is None else rating,
        schema.volume: "" if record.volume_score is None else record.volume_score,
        schema.external_id: record.external_id or "",
    }


def _row_to_record(row: dict[str, Any], schema: OutputSchema) -> Record | None:
    title = _as_text(row.get(schema.title))
    if not title:
        return None
    return Record(
        title=title,
        group=_as_text(row.get(schema.group)) or None,
        temporal=_as_text(row.get(schema.temporal)) or None,
        genre=_as_text(row.get(schema.genre)) or None,
        enrichment=_parse_enrichment(
            _as_text(row.get(schema.quality)),
            _as_text(row.get(schema.volume)),
            _as_text(row.get(schema.external_id)),
        ),
    )


def _parse_enrichment(rating_text: str, votes_text: str, id_text: str) -> EnrichmentResult | None:
    lowered = rating_text.lower()
    if lowered == NOT_FOUND_TEXT:
        return EnrichmentResult.not_found()
    if lowered == LOOKUP_ERROR_TEXT:
        return EnrichmentResult.error()

    rating = parse_float(rating_text)
    votes = parse_int(votes_text)
    if rating is None and votes is None and not id_text:
        return None
    return EnrichmentResult.ok(rating=rating, votes=votes, external_id=id_text or None)


def parse_float(text: str | None) -> float | None:
    if not text:
        return None
    try:
        value = float(text.replace(",", "").strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_int(text: str | None) -> int | None:
    """Parse counts such as ``1,234`` or ``1234.0``."""
    value = parse_float(text)
    return int(value) if value is not None else None


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
