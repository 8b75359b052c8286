"""HTTP fetch helpers with retry and exponential backoff."""

from __future__ import annotations

import logging
import os
import time
from typing import Any

import requests

REQUEST_TIMEOUT_SECONDS = 30
MAX_RETRIES = int(os.getenv("HTTP_MAX_RETRIES", "3"))
REQUEST_DELAY_SECONDS = float(os.getenv("REQUEST_DELAY_SECONDS", "1.5"))

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})

LOGGER = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Raised when a URL could not be fetched after all retries."""


def fetch_response(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    session: requests.Session | None = None,
) -> requests.Response:
    """GET a URL, retrying rate limits, server errors and transport failures."""
    getter = session.get if session is not None else requests.get
    delay_seconds = 1.0
    last_error: Exception | None = None

    for attempt in range(1, MAX_RETRIES + 1):
        try:
            response = getter(url, params=params, headers=HEADERS, timeout=REQUEST_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            last_error = exc
            if attempt >= MAX_RETRIES:
                break
            LOGGER.warning("GET %s failed on attempt %s/%s: %s", url, attempt, MAX_RETRIES, exc)
            time.sleep(delay_seconds)
            delay_seconds *= 2
            continue

        if response.status_code in _RETRY_STATUSES and attempt < MAX_RETRIES:
            LOGGER.warning(
                "GET %s returned %s on attempt %s/%s, retrying in %.1fs",
                url,
                response.status_code,
                attempt,
                MAX_RETRIES,
                delay_seconds,
            )
            time.sleep(delay_seconds)
            delay_seconds *= 2
            continue

        # Other 4xx responses will not change on retry.
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise FetchError(f"GET {url} failed on attempt {attempt}: {exc}") from exc
        return response

    raise FetchError(f"GET {url} failed after {MAX_RETRIES} attempts: {last_error}")


def fetch_text(url: str, **kwargs: Any) -> str:
    return fetch_response(url, **kwargs).text


def fetch_json(url: str, **kwargs: Any) -> Any:
    response = fetch_response(url, **kwargs)
    try:
        return response.json()
    except ValueError as exc:
        raise FetchError(f"GET {url} did not return JSON: {exc}") from exc


def polite_sleep(seconds: float | None = None) -> None:
    """Pause between sequential requests to the same site."""
    delay = REQUEST_DELAY_SECONDS if seconds is None else seconds
    if delay > 0:
        time.sleep(delay)
