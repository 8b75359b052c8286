from __future__ import annotations

from models import EnrichmentResult, Record
from ordering import sort_records


def _rec(title: str, rating=None, votes=None, premiere: str | None = None, status: str = "ok") -> Record:
    if status != "ok":
        enrichment = EnrichmentResult(status)
    elif rating is None and votes is None:
        enrichment = None
    else:
        enrichment = EnrichmentResult.ok(rating, votes)
    return Record(title=title, temporal=premiere, enrichment=enrichment)


def _titles(records: list[Record]) -> list[str]:
    return [r.title for r in records]


def test_numeric_rating_sorts_before_sentinel() -> None:
    records = [_rec("Lost", status="not_found"), _rec("Found", rating=7.9)]
    assert _titles(sort_records(records)) == ["Found", "Lost"]


def test_lookup_error_and_missing_rating_sort_after_zero() -> None:
    records = [_rec("Err", status="error"), _rec("None"), _rec("Zero", rating=0.0)]
    assert _titles(sort_records(records))[0] == "Zero"


def test_rating_descending_then_votes_descending() -> None:
    records = [
        _rec("A", rating=8.0, votes=10),
        _rec("B", rating=9.0, votes=5),
        _rec("C", rating=8.0, votes=500),
    ]
    assert _titles(sort_records(records)) == ["B", "C", "A"]


def test_date_ascending_with_unparseable_last() -> None:
    records = [
        _rec("Later", 8.0, 100, "March 2022"),
        _rec("Unknown", 8.0, 100, "TBA"),
        _rec("Earlier", 8.0, 100, "2021-06-01"),
        _rec("Blank", 8.0, 100, None),
    ]
    assert _titles(sort_records(records)) == ["Earlier", "Later", "Blank", "Unknown"]


def test_title_ordinal_breaks_final_ties() -> None:
    records = [_rec("beta", 7.0, 1, "2020"), _rec("Beta", 7.0, 1, "2020"), _rec("Alpha", 7.0, 1, "2020")]
    assert _titles(sort_records(records)) == ["Alpha", "Beta", "beta"]


def test_sort_is_idempotent() -> None:
    records = [
        _rec("Z", status="not_found", premiere="2001"),
        _rec("Y", rating=6.5, votes=10, premiere="1999"),
        _rec("X", rating=6.5, votes=None, premiere="1998"),
        _rec("W"),
    ]
    once = sort_records(records)
    assert sort_records(once) == once
    assert sort_records(list(reversed(records))) == once
