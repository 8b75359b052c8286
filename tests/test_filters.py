from datetime import date

import pytest

from filters import FilterCriteria, apply_filters, passes_filters
from models import EnrichmentResult, Record


def _show(rating=None, votes=None, genre: str | None = "Drama", premiere: str | None = "2020-05-01",
          status: str = "ok") -> Record:
    if status != "ok":
        enrichment = EnrichmentResult(status)
    else:
        enrichment = EnrichmentResult.ok(rating, votes)
    return Record(title="Show", group="X", temporal=premiere, genre=genre, enrichment=enrichment)


def test_no_criteria_keeps_everything() -> None:
    assert passes_filters(_show(), FilterCriteria()) is True


@pytest.mark.parametrize("rating, expected", [(7.9, False), (8.0, True), (9.1, True)])
def test_min_rating(rating: float, expected: bool) -> None:
    assert passes_filters(_show(rating=rating), FilterCriteria(min_rating=8.0)) is expected


def test_min_votes() -> None:
    criteria = FilterCriteria(min_votes=1000)
    assert passes_filters(_show(votes=999), criteria) is False
    assert passes_filters(_show(votes=1000), criteria) is True


def test_unrated_rows_kept_by_default() -> None:
    criteria = FilterCriteria(min_rating=7.0, min_votes=100)
    assert passes_filters(_show(status="not_found"), criteria) is True
    assert passes_filters(_show(status="error"), criteria) is True


def test_unrated_rows_dropped_when_requested() -> None:
    criteria = FilterCriteria(min_rating=7.0, keep_unrated=False)
    assert passes_filters(_show(status="not_found"), criteria) is False


def test_genre_include_is_case_insensitive_substring() -> None:
    criteria = FilterCriteria(genres=("comedy",))
    assert passes_filters(_show(genre="Sitcom / Comedy-drama"), criteria) is True
    assert passes_filters(_show(genre="Thriller"), criteria) is False
    assert passes_filters(_show(genre=None), criteria) is False


def test_genre_exclude() -> None:
    criteria = FilterCriteria(exclude_genres=("Reality",))
    assert passes_filters(_show(genre="Reality competition"), criteria) is False
    assert passes_filters(_show(genre="Drama"), criteria) is True


def test_date_window() -> None:
    criteria = FilterCriteria(since=date(2020, 1, 1), until=date(2020, 12, 31))
    assert passes_filters(_show(premiere="May 1, 2020"), criteria) is True
    assert passes_filters(_show(premiere="2019-12-31"), criteria) is False
    assert passes_filters(_show(premiere="January 2021"), criteria) is False
    assert passes_filters(_show(premiere="TBA"), criteria) is False


def test_apply_filters_preserves_order() -> None:
    records = [
        Record(title="A", enrichment=EnrichmentResult.ok(9.0)),
        Record(title="B", enrichment=EnrichmentResult.ok(5.0)),
        Record(title="C", enrichment=EnrichmentResult.ok(8.5)),
    ]
    kept = apply_filters(records, FilterCriteria(min_rating=8.0))
    assert [r.title for r in kept] == ["A", "C"]
