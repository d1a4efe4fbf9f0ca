"""
Tests for the HTTP fetch layer. requests.get is patched; nothing hits the network.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from apiparity.fetch import DEFAULT_TIMEOUT, HttpFetcher

URL = "https://staging.example.com/api/i/home"


def _response(status, payload=None, text=None):
    resp = MagicMock()
    resp.status_code = status
    if payload is not None:
        resp.json.return_value = payload
    else:
        resp.json.side_effect = ValueError("not json")
    resp.text = text if text is not None else ""
    return resp


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fetcher(sleeps):
    return HttpFetcher(sleep=sleeps.append)


class TestFetch:

    def test_success_returns_parsed_json(self, fetcher):
        with patch("apiparity.fetch.requests.get", return_value=_response(200, {"runs": 100})) as get:
            result = fetcher.fetch(URL, {"cb-loc": "IN"}, max_retries=3, delay_ms=100)

        assert result.success
        assert result.data == {"runs": 100}
        assert result.status == 200
        assert result.error is None
        assert get.call_count == 1

    def test_passes_headers_timeout_and_verify(self):
        fetcher = HttpFetcher(verify=False, sleep=lambda s: None)
        with patch("apiparity.fetch.requests.get", return_value=_response(200, {})) as get:
            fetcher.fetch(URL, {"cb-loc": "IN", "x-num": 5, "x-none": None}, max_retries=0, delay_ms=0)

        _, kwargs = get.call_args
        assert kwargs["headers"] == {"cb-loc": "IN", "x-num": "5"}
        assert kwargs["timeout"] == DEFAULT_TIMEOUT == 5.0
        assert kwargs["verify"] is False

    def test_verify_defaults_on(self, fetcher):
        with patch("apiparity.fetch.requests.get", return_value=_response(200, {})) as get:
            fetcher.fetch(URL, {}, max_retries=0, delay_ms=0)
        assert get.call_args.kwargs["verify"] is True

    def test_persistent_500_exhausts_retries(self, fetcher, sleeps):
        with patch("apiparity.fetch.requests.get", return_value=_response(500)) as get:
            result = fetcher.fetch(URL, {}, max_retries=3, delay_ms=200)

        assert not result.success
        assert result.status == 500
        assert result.data is None
        assert "500" in result.error
        assert get.call_count == 4
        assert sleeps == [0.2, 0.2, 0.2]

    def test_recovers_after_transient_failure(self, fetcher):
        responses = [_response(503), _response(502), _response(200, {"ok": True})]
        with patch("apiparity.fetch.requests.get", side_effect=responses) as get:
            result = fetcher.fetch(URL, {}, max_retries=3, delay_ms=0)

        assert result.success
        assert result.data == {"ok": True}
        assert get.call_count == 3

    def test_non_2xx_like_404_is_retried(self, fetcher):
        with patch("apiparity.fetch.requests.get", return_value=_response(404)) as get:
            result = fetcher.fetch(URL, {}, max_retries=1, delay_ms=0)
        assert get.call_count == 2
        assert result.status == 404

    def test_transport_error_has_no_status(self, fetcher):
        err = requests.exceptions.ConnectionError("connection refused")
        with patch("apiparity.fetch.requests.get", side_effect=err) as get:
            result = fetcher.fetch(URL, {}, max_retries=2, delay_ms=0)

        assert not result.success
        assert result.status is None
        assert "connection refused" in result.error
        assert get.call_count == 3

    def test_timeout_counts_as_failure(self, fetcher):
        with patch("apiparity.fetch.requests.get", side_effect=requests.exceptions.Timeout("read timed out")):
            result = fetcher.fetch(URL, {}, max_retries=0, delay_ms=0)
        assert not result.success
        assert "timed out" in result.error

    def test_last_status_is_reported(self, fetcher):
        responses = [_response(500), _response(502)]
        with patch("apiparity.fetch.requests.get", side_effect=responses):
            result = fetcher.fetch(URL, {}, max_retries=1, delay_ms=0)
        assert result.status == 502

    def test_non_json_body_kept_as_text(self, fetcher):
        with patch("apiparity.fetch.requests.get", return_value=_response(200, text="<html>ok</html>")):
            result = fetcher.fetch(URL, {}, max_retries=0, delay_ms=0)
        assert result.success
        assert result.data == "<html>ok</html>"
