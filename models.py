"""Shared typed models for the catalog pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

STATUS_OK = "ok"
STATUS_NOT_FOUND = "not_found"
STATUS_ERROR = "error"

# Sentinel cell values written in place of a rating when enrichment failed.
NOT_FOUND_TEXT = "not found"
LOOKUP_ERROR_TEXT = "lookup error"


@dataclass(frozen=True, slots=True)
class EnrichmentResult:
    """Outcome of one external rating/id lookup."""

    status: str
    rating: float | None = None
    votes: int | None = None
    external_id: str | None = None

    @classmethod
    def ok(
        cls,
        rating: float | None = None,
        votes: int | None = None,
        external_id: str | None = None,
    ) -> EnrichmentResult:
        return cls(STATUS_OK, rating=rating, votes=votes, external_id=external_id)

    @classmethod
    def not_found(cls) -> EnrichmentResult:
        return cls(STATUS_NOT_FOUND)

    @classmethod
    def error(cls) -> EnrichmentResult:
        return cls(STATUS_ERROR)

    @property
    def is_ok(self) -> bool:
        return self.status == STATUS_OK

    def rating_cell(self) -> float | str | None:
        """Rating as written to the store: a number, a sentinel, or None."""
        if self.status == STATUS_NOT_FOUND:
            return NOT_FOUND_TEXT
        if self.status == STATUS_ERROR:
            return LOOKUP_ERROR_TEXT
        return self.rating


@dataclass(frozen=True, slots=True)
class Record:
    """One output row: a TV show or a book."""

    title: str
    group: str | None = None
    temporal: str | None = None
    genre: str | None = None
    enrichment: EnrichmentResult | None = None

    @property
    def quality_score(self) -> float | None:
        if self.enrichment is None or not self.enrichment.is_ok:
            return None
        return self.enrichment.rating

    @property
    def volume_score(self) -> int | None:
        if self.enrichment is None or not self.enrichment.is_ok:
            return None
        return self.enrichment.votes

    @property
    def external_id(self) -> str | None:
        if self.enrichment is None or not self.enrichment.is_ok:
            return None
        return self.enrichment.external_id


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    result: EnrichmentResult
    cached_at: str


@dataclass(slots=True)
class LookupCache:
    """In-memory view of the lookup cache file, owned by one pipeline run."""

    entries: dict[str, CacheEntry] = field(default_factory=dict)
    dirty: bool = False


@dataclass(frozen=True, slots=True)
class FieldChange:
    old: Any
    new: Any


@dataclass(frozen=True, slots=True)
class RecordChange:
    key: str
    old: Record
    new: Record
    diff: dict[str, FieldChange]


@dataclass(slots=True)
class Delta:
    added: list[str] = field(default_factory=list)
    updated: list[RecordChange] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class OutputSchema:
    """Column names for one flavour of persisted output file."""

    title: str
    genre: str
    temporal: str
    group: str
    quality: str
    volume: str
    external_id: str

    @property
    def columns(self) -> list[str]:
        return [
            self.title,
            self.genre,
            self.temporal,
            self.group,
            self.quality,
            self.volume,
            self.external_id,
        ]


TV_SCHEMA = OutputSchema(
    title="Title",
    genre="Genre",
    temporal="Premiere",
    group="Network",
    quality="IMDbRating",
    volume="IMDbVotes",
    external_id="IMDbId",
)

BOOK_SCHEMA = OutputSchema(
    title="Title",
    genre="Genre",
    temporal="PubYear",
    group="Author",
    quality="AvgRating",
    volume="Ratings",
    external_id="GoodreadsId",
)
