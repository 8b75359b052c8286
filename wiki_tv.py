"""Wikipedia TV list ingestion: wikitable rows -> Records."""

from __future__ import annotations

import logging
import re
from urllib.parse import quote

from bs4 import BeautifulSoup, Tag

from http_client import fetch_text
from models import Record

WIKIPEDIA_BASE_URL = "https://en.wikipedia.org/wiki/"

LOGGER = logging.getLogger(__name__)

# First matching pattern per column role wins; checked against lower-cased header text.
_HEADER_PATTERNS: dict[str, re.Pattern[str]] = {
    "title": re.compile(r"^(title|series|show|programme|program|name)\b"),
    "genre": re.compile(r"\bgenres?\b"),
    "premiere": re.compile(r"premiere|release|first aired|original run|air date|debut"),
    "network": re.compile(r"network|channel|broadcaster|platform"),
}

_FOOTNOTE_RE = re.compile(r"\[(?:\d+|[a-z]|note \d+|citation needed)\]", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


def scrape_wikipedia_shows(page: str, default_network: str | None = None) -> list[Record]:
    """Fetch a Wikipedia list page and extract one Record per show row."""
    url = WIKIPEDIA_BASE_URL + quote(page.replace(" ", "_"), safe="_()',")
    LOGGER.info("Fetching Wikipedia page: %s", url)
    html = fetch_text(url)
    records = parse_wikitable(html, default_network=default_network)
    LOGGER.info("Wikipedia page %s: extracted %s rows", page, len(records))
    return records


def parse_wikitable(html: str, default_network: str | None = None) -> list[Record]:
    """Extract show rows from every recognisable ``table.wikitable`` in the page."""
    soup = BeautifulSoup(html, "html.parser")
    records: list[Record] = []

    for table in soup.select("table.wikitable"):
        rows = table.find_all("tr")
        if not rows:
            continue

        columns = _match_columns(rows[0])
        if "title" not in columns:
            LOGGER.debug("Skipping wikitable without a title column")
            continue

        for values in _expand_rows(rows[1:]):
            title = _value_at(values, columns.get("title"))
            if not title:
                continue
            records.append(
                Record(
                    title=title,
                    group=_value_at(values, columns.get("network")) or default_network,
                    temporal=_value_at(values, columns.get("premiere")),
                    genre=_value_at(values, columns.get("genre")),
                )
            )

    return records


def _match_columns(header_row: Tag) -> dict[str, int]:
    columns: dict[str, int] = {}
    for index, cell in enumerate(_cells(header_row)):
        text = cell_text(cell).lower()
        for role, pattern in _HEADER_PATTERNS.items():
            if role not in columns and pattern.search(text):
                columns[role] = index
                break
    return columns


def _expand_rows(rows: list[Tag]) -> list[list[str]]:
    """Turn table rows into value grids, carrying rowspan/colspan cells."""
    pending: dict[int, tuple[int, str]] = {}
    grid: list[list[str]] = []

    for row in rows:
        cells = _cells(row)
        if not cells or not row.find("td"):
            continue

        values: list[str] = []
        col = 0
        queue = list(cells)
        while queue or (pending and col <= max(pending)):
            if col in pending:
                remaining, text = pending.pop(col)
                values.append(text)
                if remaining > 1:
                    pending[col] = (remaining - 1, text)
                col += 1
                continue
            if not queue:
                # Short row: pad up to the next carried column.
                values.append("")
                col += 1
                continue

            cell = queue.pop(0)
            text = cell_text(cell)
            rowspan = _span(cell, "rowspan")
            for _ in range(_span(cell, "colspan")):
                values.append(text)
                if rowspan > 1:
                    pending[col] = (rowspan - 1, text)
                col += 1

        grid.append(values)

    return grid


def _cells(row: Tag) -> list[Tag]:
    return row.find_all(["th", "td"], recursive=False)


def _span(cell: Tag, attr: str) -> int:
    raw = str(cell.get(attr, "1"))
    digits = re.match(r"\d+", raw.strip())
    return max(1, int(digits.group(0))) if digits else 1


def _value_at(values: list[str], index: int | None) -> str | None:
    if index is None or index >= len(values):
        return None
    return values[index] or None


def cell_text(cell: Tag) -> str:
    """Visible cell text without footnote markers or hidden sort keys."""
    for hidden in cell.select("sup.reference, style, span[style*='display:none']"):
        hidden.decompose()
    text = cell.get_text(" ", strip=True)
    text = _FOOTNOTE_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip().strip('"').strip()
