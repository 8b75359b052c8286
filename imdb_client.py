"""IMDb rating lookup: title -> (id, rating, votes) as an EnrichmentResult."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from json import JSONDecodeError
from typing import Any
from urllib.parse import quote

from bs4 import BeautifulSoup

from http_client import FetchError, fetch_json, fetch_text
from models import EnrichmentResult

IMDB_SUGGESTION_URL = "https://v3.sg.media-imdb.com/suggestion/x/{query}.json"
IMDB_TITLE_URL = "https://www.imdb.com/title/{imdb_id}/"
TV_TITLE_TYPES: tuple[str, ...] = ("tvSeries", "tvMiniSeries")

LOGGER = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^0-9a-z]+")


def lookup_imdb(
    title: str,
    year: int | None = None,
    hints: Iterable[str] | None = None,
) -> EnrichmentResult:
    """Resolve a title on IMDb and read its rating. Never raises.

    ``hints`` lists preferred IMDb title types (``tvSeries`` etc.).
    Returns ``not_found`` when no candidate matches and ``error`` when a
    request or payload could not be processed.
    """
    title_types = tuple(hints) if hints is not None else TV_TITLE_TYPES
    try:
        candidates = _suggestions(title)
    except (FetchError, ValueError) as exc:
        LOGGER.warning("IMDb suggestion lookup failed for %r: %s", title, exc)
        return EnrichmentResult.error()

    imdb_id = pick_candidate(candidates, title, year, title_types)
    if imdb_id is None:
        LOGGER.info("IMDb: no candidate for %r (year=%s)", title, year)
        return EnrichmentResult.not_found()

    try:
        html = fetch_text(IMDB_TITLE_URL.format(imdb_id=imdb_id))
    except FetchError as exc:
        LOGGER.warning("IMDb title page failed for %s (%r): %s", imdb_id, title, exc)
        return EnrichmentResult.error()

    rating, votes = parse_aggregate_rating(html)
    LOGGER.info("IMDb: %r -> %s rating=%s votes=%s", title, imdb_id, rating, votes)
    return EnrichmentResult.ok(rating=rating, votes=votes, external_id=imdb_id)


def _suggestions(title: str) -> list[dict[str, Any]]:
    query = quote(title.strip().lower(), safe="")
    if not query:
        return []
    payload = fetch_json(IMDB_SUGGESTION_URL.format(query=query))
    if not isinstance(payload, dict):
        raise ValueError("Unexpected IMDb suggestion payload shape: expected an object")
    items = payload.get("d") or []
    return [item for item in items if isinstance(item, dict)]


def pick_candidate(
    candidates: list[dict[str, Any]],
    title: str,
    year: int | None,
    title_types: tuple[str, ...],
) -> str | None:
    """Best IMDb id: exact title match, then preferred type, then closest year."""
    wanted = _title_token(title)
    best: tuple[tuple[int, int, int, int], str] | None = None

    for position, item in enumerate(candidates):
        imdb_id = item.get("id")
        if not isinstance(imdb_id, str) or not imdb_id.startswith("tt"):
            continue
        exact = _title_token(str(item.get("l", ""))) == wanted
        typed = item.get("qid") in title_types
        if not exact and not typed:
            continue

        candidate_year = item.get("y")
        year_gap = abs(candidate_year - year) if isinstance(candidate_year, int) and year else 0
        rank = (int(exact), int(typed), -year_gap, -position)
        if best is None or rank > best[0]:
            best = (rank, imdb_id)

    return best[1] if best is not None else None


def parse_aggregate_rating(html: str) -> tuple[float | None, int | None]:
    """Read ratingValue/ratingCount from a title page's JSON-LD block."""
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except JSONDecodeError:
            continue
        if not isinstance(data, dict):
            continue
        aggregate = data.get("aggregateRating")
        if not isinstance(aggregate, dict):
            continue
        return _as_float(aggregate.get("ratingValue")), _as_int(aggregate.get("ratingCount"))
    return None, None


def _title_token(value: str) -> str:
    return _NON_ALNUM_RE.sub("", value.lower())


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> int | None:
    try:
        return int(str(value).replace(",", ""))
    except (TypeError, ValueError):
        return None
