"""CLI entrypoint for the TV and book catalog pipelines."""

from __future__ import annotations

import argparse
import logging
import os
from datetime import date

from dotenv import load_dotenv

from csv_sink import BOOKS_OUTPUT_PATH, TV_OUTPUT_PATH, StoreReadError
from enrichment import attach_cached_results, enrich_records
from filters import FilterCriteria, apply_filters
from goodreads import scrape_goodreads_list
from http_client import FetchError
from identity import parse_loose_date
from imdb_client import lookup_imdb
from lookup_cache import CACHE_MAX_AGE_DAYS, LOOKUP_CACHE_PATH, load_cache, save_cache
from models import BOOK_SCHEMA, TV_SCHEMA, OutputSchema, Record
from pipeline import RunSummary, update_store
from wiki_tv import scrape_wikipedia_shows


def _date_arg(value: str) -> date:
    parsed = parse_loose_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not a recognisable date: {value!r}")
    return parsed


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(
        description="Scrape TV shows (Wikipedia + IMDb) or books (Goodreads) into a merged, sorted CSV"
    )
    parser.add_argument("--mode", choices=["tv", "books"], default="tv", help="Which catalog to update")
    parser.add_argument("--output", default=None, help="CSV output path (defaults per mode from the environment)")
    parser.add_argument("--changelog", default=None, help="Optional JSON file for the added/updated/removed report")
    parser.add_argument("--dry-run", action="store_true", help="Scrape and report using cached lookups only, without new lookups or writes")

    tv = parser.add_argument_group("TV")
    tv.add_argument("--page", action="append", default=[], help="Wikipedia page title; repeatable")
    tv.add_argument("--network", default=None, help="Network to use when a table has no network column")
    tv.add_argument("--cache", default=LOOKUP_CACHE_PATH, help="Lookup cache JSON path")
    tv.add_argument("--max-age-days", type=float, default=CACHE_MAX_AGE_DAYS, help="Reuse cached lookups younger than this")
    tv.add_argument(
        "--no-enrich",
        action="store_true",
        help="Skip IMDb rating lookups; re-scraped rows replace their stored ratings with blanks",
    )

    books = parser.add_argument_group("Books")
    books.add_argument("--list-id", default=None, help="Goodreads list id, e.g. 1.Best_Books_Ever")
    books.add_argument("--max-pages", type=int, default=None, help="Stop after this many list pages")

    filters = parser.add_argument_group("Filters")
    filters.add_argument("--min-rating", type=float, default=None)
    filters.add_argument("--min-votes", type=int, default=None)
    filters.add_argument("--genre", action="append", default=[], help="Keep rows whose genre contains this; repeatable")
    filters.add_argument("--exclude-genre", action="append", default=[], help="Drop rows whose genre contains this; repeatable")
    filters.add_argument("--since", type=_date_arg, default=None, help="Earliest premiere/publication date")
    filters.add_argument("--until", type=_date_arg, default=None, help="Latest premiere/publication date")
    filters.add_argument("--drop-unrated", action="store_true", help="Rating/vote thresholds also drop unrated rows")

    args = parser.parse_args(argv)
    if args.since and args.until and args.since > args.until:
        parser.error("--since must not be later than --until")
    if args.mode == "tv" and not args.page:
        parser.error("--mode tv requires at least one --page")
    if args.mode == "books" and not args.list_id:
        parser.error("--mode books requires --list-id")
    if args.mode == "books" and (args.genre or args.exclude_genre or args.since or args.until):
        # Goodreads list rows carry neither genre nor a reliable publication date.
        parser.error("--genre, --exclude-genre, --since and --until are not supported with --mode books")
    return args


def criteria_from_args(args: argparse.Namespace) -> FilterCriteria:
    return FilterCriteria(
        min_rating=args.min_rating,
        min_votes=args.min_votes,
        genres=tuple(args.genre),
        exclude_genres=tuple(args.exclude_genre),
        since=args.since,
        until=args.until,
        keep_unrated=not args.drop_unrated,
    )


def run_tv(
    pages: list[str],
    output_path: str,
    criteria: FilterCriteria,
    network: str | None = None,
    cache_path: str = LOOKUP_CACHE_PATH,
    max_age_days: float = CACHE_MAX_AGE_DAYS,
    enrich: bool = True,
    changelog_path: str | None = None,
    dry_run: bool = False,
) -> RunSummary | None:
    """Scrape Wikipedia pages, enrich with IMDb, filter and merge into the store."""
    scraped: list[Record] = []
    failed_pages = 0
    for page in pages:
        try:
            scraped.extend(scrape_wikipedia_shows(page, default_network=network))
        except FetchError as exc:
            failed_pages += 1
            logging.error("Failed to scrape Wikipedia page %s: %s", page, exc)

    if failed_pages == len(pages):
        logging.error("All %s Wikipedia pages failed; leaving %s untouched", len(pages), output_path)
        return None
    logging.info("Scraped %s rows from %s pages (failed=%s)", len(scraped), len(pages), failed_pages)

    if enrich:
        cache = load_cache(cache_path)
        if dry_run:
            scraped = attach_cached_results(scraped, cache, max_age_days=max_age_days)
        else:
            scraped = enrich_records(scraped, cache, lookup_imdb, max_age_days=max_age_days)
            save_cache(cache, cache_path)

    kept = apply_filters(scraped, criteria)
    return _update(kept, TV_SCHEMA, output_path, changelog_path, dry_run, carry_enrichment=dry_run and enrich)


def run_books(
    list_id: str,
    output_path: str,
    criteria: FilterCriteria,
    max_pages: int | None = None,
    changelog_path: str | None = None,
    dry_run: bool = False,
) -> RunSummary | None:
    """Scrape a Goodreads list, filter and merge into the store."""
    scraped = scrape_goodreads_list(list_id, max_pages=max_pages)
    if not scraped:
        logging.error("Goodreads list %s yielded no rows; leaving %s untouched", list_id, output_path)
        return None

    kept = apply_filters(scraped, criteria)
    return _update(kept, BOOK_SCHEMA, output_path, changelog_path, dry_run)


def _update(
    records: list[Record],
    schema: OutputSchema,
    output_path: str,
    changelog_path: str | None,
    dry_run: bool,
    carry_enrichment: bool = False,
) -> RunSummary | None:
    try:
        summary, _ = update_store(
            records,
            schema,
            output_path,
            changelog_path=changelog_path,
            dry_run=dry_run,
            carry_enrichment=carry_enrichment,
        )
    except StoreReadError as exc:
        logging.error("Refusing to rewrite %s: %s", output_path, exc)
        return None
    return summary


def main(argv: list[str] | None = None) -> None:
    """Initialize config and execute the selected pipeline."""
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    args = parse_args(argv)
    criteria = criteria_from_args(args)

    if args.mode == "books":
        summary = run_books(
            list_id=args.list_id,
            output_path=args.output or BOOKS_OUTPUT_PATH,
            criteria=criteria,
            max_pages=args.max_pages,
            changelog_path=args.changelog,
            dry_run=args.dry_run,
        )
    else:
        summary = run_tv(
            pages=args.page,
            output_path=args.output or TV_OUTPUT_PATH,
            criteria=criteria,
            network=args.network,
            cache_path=args.cache,
            max_age_days=args.max_age_days,
            enrich=not args.no_enrich,
            changelog_path=args.changelog,
            dry_run=args.dry_run,
        )

    if summary is None:
        raise SystemExit(1)
    logging.info("Run complete. added=%s updated=%s total=%s", summary.added, summary.updated, summary.total)


if __name__ == "__main__":
    main()
