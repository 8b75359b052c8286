"""Goodreads list ingestion: paginated list pages -> Records."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag

from csv_sink import parse_float, parse_int
from http_client import FetchError, fetch_text, polite_sleep
from models import EnrichmentResult, Record

GOODREADS_LIST_URL = "https://www.goodreads.com/list/show/{list_id}"

LOGGER = logging.getLogger(__name__)

# "4.28 avg rating — 9,512,114 ratings" (older layouts prefix "really liked it").
_MINIRATING_RE = re.compile(r"([\d.]+)\s+avg rating\s*\W+\s*([\d,]+)\s+ratings?")
_BOOK_ID_RE = re.compile(r"/book/show/(\d+)")
_PUBLISHED_RE = re.compile(r"\bpublished\s+(\d{4})\b")
_WS_RE = re.compile(r"\s+")


def scrape_goodreads_list(
    list_id: str,
    max_pages: int | None = None,
    delay: float | None = None,
) -> list[Record]:
    """Walk a Goodreads list page by page until there is no next link.

    A failed page fetch ends pagination; rows from earlier pages are kept.
    """
    url = GOODREADS_LIST_URL.format(list_id=list_id)
    records: list[Record] = []
    page = 1

    while True:
        try:
            html = fetch_text(url, params={"page": page})
        except FetchError as exc:
            LOGGER.warning("Goodreads list %s: page %s failed, stopping: %s", list_id, page, exc)
            break

        page_records, has_next = parse_list_page(html)
        records.extend(page_records)
        LOGGER.info("Goodreads list %s: page=%s rows=%s has_next=%s", list_id, page, len(page_records), has_next)

        if not has_next or (max_pages is not None and page >= max_pages):
            break
        page += 1
        polite_sleep(delay)

    LOGGER.info("Goodreads list %s: %s rows across %s pages", list_id, len(records), page)
    return records


def parse_list_page(html: str) -> tuple[list[Record], bool]:
    """Return the book rows on one list page and whether a next page exists."""
    soup = BeautifulSoup(html, "html.parser")
    records: list[Record] = []
    for row in soup.select("tr[itemtype*='schema.org/Book']"):
        record = _parse_book_row(row)
        if record is not None:
            records.append(record)
    next_link = soup.select_one("a.next_page")
    return records, next_link is not None and bool(next_link.get("href"))


def _parse_book_row(row: Tag) -> Record | None:
    title_link = row.select_one("a.bookTitle")
    if title_link is None:
        return None
    title = _clean(title_link.get_text(" ", strip=True))
    if not title:
        return None

    author_link = row.select_one("a.authorName")
    author = _clean(author_link.get_text(" ", strip=True)) if author_link is not None else ""

    rating: float | None = None
    votes: int | None = None
    minirating = row.select_one("span.minirating")
    if minirating is not None:
        match = _MINIRATING_RE.search(_clean(minirating.get_text(" ", strip=True)))
        if match:
            rating = parse_float(match.group(1))
            votes = parse_int(match.group(2))

    published = _PUBLISHED_RE.search(_clean(row.get_text(" ", strip=True)))

    id_match = _BOOK_ID_RE.search(str(title_link.get("href", "")))
    book_id = id_match.group(1) if id_match else None

    return Record(
        title=title,
        group=author or None,
        temporal=published.group(1) if published else None,
        enrichment=EnrichmentResult.ok(rating=rating, votes=votes, external_id=book_id),
    )


def _clean(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()
