from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

import http_client
from http_client import FetchError, fetch_json, fetch_text


def _resp(status: int = 200, text: str = "", payload=None) -> MagicMock:
    mock = MagicMock()
    mock.status_code = status
    mock.text = text
    if payload is None:
        mock.json.side_effect = ValueError("no json")
    else:
        mock.json.return_value = payload
    if status >= 400:
        mock.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return mock


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("http_client.time.sleep") as mock_sleep:
        yield mock_sleep


def test_fetch_text_returns_body() -> None:
    with patch("http_client.requests.get", return_value=_resp(text="<html/>")) as mock_get:
        assert fetch_text("https://example.org", params={"page": 2}) == "<html/>"

    _, kwargs = mock_get.call_args
    assert kwargs["params"] == {"page": 2}
    assert "User-Agent" in kwargs["headers"]


def test_fetch_retries_rate_limit_then_succeeds(no_sleep: MagicMock) -> None:
    with patch("http_client.requests.get", side_effect=[_resp(429), _resp(text="ok")]) as mock_get:
        assert fetch_text("https://example.org") == "ok"

    assert mock_get.call_count == 2
    no_sleep.assert_called_once_with(1.0)


def test_fetch_retries_transport_errors_with_backoff(no_sleep: MagicMock) -> None:
    errors = [requests.ConnectionError("reset")] * (http_client.MAX_RETRIES - 1)
    with patch("http_client.requests.get", side_effect=[*errors, _resp(text="ok")]):
        assert fetch_text("https://example.org") == "ok"

    delays = [c.args[0] for c in no_sleep.call_args_list]
    assert delays == [1.0 * 2**i for i in range(http_client.MAX_RETRIES - 1)]


def test_fetch_raises_fetch_error_after_server_errors() -> None:
    with patch("http_client.requests.get", return_value=_resp(503)) as mock_get:
        with pytest.raises(FetchError, match="503"):
            fetch_text("https://example.org")

    assert mock_get.call_count == http_client.MAX_RETRIES


def test_fetch_raises_fetch_error_after_transport_errors() -> None:
    with patch("http_client.requests.get", side_effect=requests.Timeout("slow")) as mock_get:
        with pytest.raises(FetchError, match="failed after"):
            fetch_text("https://example.org")

    assert mock_get.call_count == http_client.MAX_RETRIES


def test_fetch_does_not_retry_client_errors() -> None:
    with patch("http_client.requests.get", return_value=_resp(404)) as mock_get:
        with pytest.raises(FetchError, match="404"):
            fetch_text("https://example.org")

    assert mock_get.call_count == 1


def test_fetch_json_rejects_non_json() -> None:
    with patch("http_client.requests.get", return_value=_resp(text="<html>")):
        with pytest.raises(FetchError, match="did not return JSON"):
            fetch_json("https://example.org")


def test_fetch_uses_session_when_given() -> None:
    session = MagicMock()
    session.get.return_value = _resp(payload={"d": []})
    assert fetch_json("https://example.org", session=session) == {"d": []}
    session.get.assert_called_once()
