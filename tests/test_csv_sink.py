from __future__ import annotations

import csv
from pathlib import Path

import pytest

import csv_sink
from models import BOOK_SCHEMA, TV_SCHEMA, EnrichmentResult, Record

SAMPLE_SHOW = Record(
    title="Stranger Things",
    group="Netflix",
    temporal="July 15, 2016",
    genre="Science fiction horror",
    enrichment=EnrichmentResult.ok(rating=8.7, votes=1_400_000, external_id="tt4574334"),
)


@pytest.fixture
def output(tmp_path: Path) -> Path:
    return tmp_path / "out" / "tv_shows.csv"


def _read_rows(path: Path) -> list[dict[str, str]]:
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.DictReader(fh))


def test_load_records_missing_file_is_empty(output: Path) -> None:
    assert csv_sink.load_records(output, TV_SCHEMA) == []


def test_write_records_creates_file_with_header(output: Path) -> None:
    csv_sink.write_records(output, TV_SCHEMA, [SAMPLE_SHOW])

    with output.open(newline="", encoding="utf-8") as fh:
        header = next(csv.reader(fh))
    assert header == ["Title", "Genre", "Premiere", "Network", "IMDbRating", "IMDbVotes", "IMDbId"]

    row = _read_rows(output)[0]
    assert row["Title"] == "Stranger Things"
    assert row["IMDbRating"] == "8.7"
    assert row["IMDbVotes"] == "1400000"
    assert row["IMDbId"] == "tt4574334"


def test_write_records_rewrites_instead_of_appending(output: Path) -> None:
    csv_sink.write_records(output, TV_SCHEMA, [SAMPLE_SHOW, Record(title="Other")])
    csv_sink.write_records(output, TV_SCHEMA, [Record(title="Only")])

    rows = _read_rows(output)
    assert [r["Title"] for r in rows] == ["Only"]


def test_sentinels_written_and_read_back(output: Path) -> None:
    records = [
        Record(title="Missing", group="X", enrichment=EnrichmentResult.not_found()),
        Record(title="Broken", group="X", enrichment=EnrichmentResult.error()),
    ]
    csv_sink.write_records(output, TV_SCHEMA, records)

    rows = _read_rows(output)
    assert rows[0]["IMDbRating"] == "not found"
    assert rows[1]["IMDbRating"] == "lookup error"
    assert rows[0]["IMDbVotes"] == ""

    loaded = csv_sink.load_records(output, TV_SCHEMA)
    assert loaded[0].enrichment == EnrichmentResult.not_found()
    assert loaded[1].enrichment == EnrichmentResult.error()


def test_load_records_round_trips_typed_fields(output: Path) -> None:
    csv_sink.write_records(output, TV_SCHEMA, [SAMPLE_SHOW, Record(title="Bare")])

    loaded = csv_sink.load_records(output, TV_SCHEMA)

    assert loaded[0] == SAMPLE_SHOW
    assert loaded[1] == Record(title="Bare")


def test_load_records_coerces_missing_columns_and_skips_blank_titles(tmp_path: Path) -> None:
    path = tmp_path / "books.csv"
    path.write_text(
        "Title,Author,AvgRating\n"
        "Dune,Frank Herbert,4.27\n"
        ",Nobody,3.0\n",
        encoding="utf-8",
    )

    loaded = csv_sink.load_records(path, BOOK_SCHEMA)

    assert len(loaded) == 1
    assert loaded[0].title == "Dune"
    assert loaded[0].group == "Frank Herbert"
    assert loaded[0].temporal is None
    assert loaded[0].quality_score == 4.27
    assert loaded[0].volume_score is None


@pytest.mark.parametrize("text, expected", [
    ("1,234", 1234),
    ("1234.0", 1234),
    ("", None),
    ("n/a", None),
    ("nan", None),
])
def test_parse_int(text: str, expected: int | None) -> None:
    assert csv_sink.parse_int(text) == expected


def test_load_records_reads_store_with_byte_order_mark(output: Path) -> None:
    csv_sink.write_records(output, TV_SCHEMA, [SAMPLE_SHOW])
    output.write_text("\ufeff" + output.read_text(encoding="utf-8"), encoding="utf-8")

    assert csv_sink.load_records(output, TV_SCHEMA) == [SAMPLE_SHOW]


def test_load_records_without_title_column_raises(output: Path) -> None:
    output.parent.mkdir(parents=True)
    output.write_text("Name,Network\nShow A,X\n", encoding="utf-8")

    with pytest.raises(csv_sink.StoreReadError, match="no Title column"):
        csv_sink.load_records(output, TV_SCHEMA)
