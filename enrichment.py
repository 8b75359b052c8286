"""Cache-aware rating enrichment of scraped records."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace

from http_client import polite_sleep
from identity import parse_loose_date
from lookup_cache import CACHE_MAX_AGE_DAYS, cache_key, get_fresh, put
from models import EnrichmentResult, LookupCache, Record

# (title, year, hints) -> result; see imdb_client.lookup_imdb.
LookupFn = Callable[..., EnrichmentResult]

LOGGER = logging.getLogger(__name__)


def enrich_records(
    records: Iterable[Record],
    cache: LookupCache,
    lookup: LookupFn,
    max_age_days: float = CACHE_MAX_AGE_DAYS,
    delay: float | None = None,
    hints: Iterable[str] | None = None,
) -> list[Record]:
    """Attach a rating lookup result to every record.

    Fresh cache entries are reused; stale or missing ones trigger a lookup
    whose result (including not_found / error) is written back to the cache.
    """
    enriched: list[Record] = []
    hits = 0
    lookups = 0
    hint_list = tuple(hints) if hints is not None else None

    for record in records:
        key = cache_key(record.title, record.group)
        result = get_fresh(cache, key, max_age_days)
        if result is not None:
            hits += 1
        else:
            if lookups:
                polite_sleep(delay)
            parsed = parse_loose_date(record.temporal)
            result = lookup(record.title, parsed.year if parsed else None, hint_list)
            put(cache, key, result)
            lookups += 1
        enriched.append(replace(record, enrichment=result))

    LOGGER.info("Enrichment: records=%s cache_hits=%s lookups=%s", len(enriched), hits, lookups)
    return enriched


def attach_cached_results(
    records: Iterable[Record],
    cache: LookupCache,
    max_age_days: float = CACHE_MAX_AGE_DAYS,
) -> list[Record]:
    """Attach fresh cached results only; no lookups and no cache writes."""
    attached: list[Record] = []
    misses = 0
    for record in records:
        result = get_fresh(cache, cache_key(record.title, record.group), max_age_days)
        if result is None:
            misses += 1
        else:
            record = replace(record, enrichment=result)
        attached.append(record)

    LOGGER.info("Cached results: records=%s hits=%s would_look_up=%s", len(attached), len(attached) - misses, misses)
    return attached
