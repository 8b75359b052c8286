"""Disk-backed cache of external rating lookups with a max-age policy."""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime, timedelta
from json import JSONDecodeError
from pathlib import Path
from typing import Any

from identity import normalize_text
from models import STATUS_ERROR, STATUS_NOT_FOUND, STATUS_OK, CacheEntry, EnrichmentResult, LookupCache

LOOKUP_CACHE_PATH = os.getenv("LOOKUP_CACHE_PATH", "cache/lookup_cache.json")
CACHE_MAX_AGE_DAYS = int(os.getenv("CACHE_MAX_AGE_DAYS", "21"))

LOGGER = logging.getLogger(__name__)

_VALID_STATUSES = frozenset({STATUS_OK, STATUS_NOT_FOUND, STATUS_ERROR})


def cache_key(title: str, group: str | None) -> str:
    """Lookup key for a title within its network/author (no date component)."""
    return f"{normalize_text(group)}|{normalize_text(title)}"


def load_cache(path: str | Path | None = None) -> LookupCache:
    """Read the cache file; a missing or unreadable file yields an empty cache."""
    cache_path = Path(path or LOOKUP_CACHE_PATH)
    if not cache_path.exists():
        LOGGER.info("Lookup cache not found at %s, starting empty", cache_path)
        return LookupCache()

    try:
        with cache_path.open(encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, JSONDecodeError, UnicodeDecodeError) as exc:
        LOGGER.warning("Lookup cache at %s is unreadable, starting empty: %s", cache_path, exc)
        return LookupCache()

    if not isinstance(payload, list):
        LOGGER.warning("Lookup cache at %s is not a JSON array, starting empty", cache_path)
        return LookupCache()

    entries: dict[str, CacheEntry] = {}
    skipped = 0
    for item in payload:
        entry = _entry_from_json(item)
        if entry is None:
            skipped += 1
            continue
        entries[entry.key] = entry

    LOGGER.info("Loaded %s lookup cache entries from %s (skipped=%s)", len(entries), cache_path, skipped)
    return LookupCache(entries=entries)


def is_fresh(entry: CacheEntry, max_age_days: float, now: datetime | None = None) -> bool:
    """True when the entry is younger than max_age_days; bad timestamps are stale."""
    cached_at = _parse_timestamp(entry.cached_at)
    if cached_at is None:
        return False
    current = now or datetime.now(UTC)
    return current - cached_at < timedelta(days=max_age_days)


def get_fresh(
    cache: LookupCache,
    key: str,
    max_age_days: float,
    now: datetime | None = None,
) -> EnrichmentResult | None:
    """Return the cached result for key if present and fresh, else None."""
    entry = cache.entries.get(key)
    if entry is None or not is_fresh(entry, max_age_days, now=now):
        return None
    return entry.result


def put(
    cache: LookupCache,
    key: str,
    result: EnrichmentResult,
    now: datetime | None = None,
) -> None:
    """Insert or overwrite an entry stamped with the current UTC time."""
    stamp = (now or datetime.now(UTC)).astimezone(UTC).isoformat()
    cache.entries[key] = CacheEntry(key=key, result=result, cached_at=stamp)
    cache.dirty = True


def save_cache(cache: LookupCache, path: str | Path | None = None) -> bool:
    """Write the whole cache if it changed since load. Returns True on write."""
    if not cache.dirty:
        LOGGER.info("Lookup cache unchanged, not saving")
        return False

    cache_path = Path(path or LOOKUP_CACHE_PATH)
    payload = [_entry_to_json(entry) for entry in cache.entries.values()]
    tmp_path = cache_path.with_name(cache_path.name + ".tmp")

    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
        os.replace(tmp_path, cache_path)
    except OSError as exc:
        LOGGER.warning("Failed to save lookup cache to %s: %s", cache_path, exc)
        tmp_path.unlink(missing_ok=True)
        return False

    cache.dirty = False
    LOGGER.info("Saved %s lookup cache entries to %s", len(payload), cache_path)
    return True


def _entry_to_json(entry: CacheEntry) -> dict[str, Any]:
    result = entry.result
    return {
        "Key": entry.key,
        "Status": result.status,
        "Id": result.external_id,
        "Rating": result.rating,
        "Votes": result.votes,
        "CachedAt": entry.cached_at,
    }


def _entry_from_json(item: Any) -> CacheEntry | None:
    if not isinstance(item, dict):
        return None
    key = item.get("Key")
    status = item.get("Status")
    if not isinstance(key, str) or not key or status not in _VALID_STATUSES:
        return None

    if status == STATUS_OK:
        result = EnrichmentResult.ok(
            rating=_as_float(item.get("Rating")),
            votes=_as_int(item.get("Votes")),
            external_id=item.get("Id") if isinstance(item.get("Id"), str) else None,
        )
    else:
        result = EnrichmentResult(status)

    cached_at = item.get("CachedAt")
    return CacheEntry(key=key, result=result, cached_at=cached_at if isinstance(cached_at, str) else "")


def _parse_timestamp(raw: str) -> datetime | None:
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _as_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
