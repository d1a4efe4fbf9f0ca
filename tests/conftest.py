"""
Pytest configuration and shared fixtures.
"""

import threading
import time
from typing import Any, Dict, List

import pytest

from apiparity.models import FetchResult

BASE_A = "https://prod.example.com/api"
BASE_B = "https://staging.example.com/api"


class FakeFetcher:
    """
    In-memory stand-in for HttpFetcher.

    routes maps URL -> payload (success) or an int status (failure).
    Unknown URLs fail with status 404. Tracks calls and peak concurrency.
    """

    def __init__(self, routes: Dict[str, Any] | None = None, latency: float = 0.0):
        self.routes = routes or {}
        self.latency = latency
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def fetch(self, url, headers, max_retries, delay_ms) -> FetchResult:
        with self._lock:
            self.calls.append((url, dict(headers)))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                time.sleep(self.latency)
            value = self.routes.get(url, 404)
            if isinstance(value, int) and not isinstance(value, bool):
                return FetchResult(success=False, status=value, error=f"Status {value}", elapsed_ms=1.0)
            return FetchResult(success=True, data=value, status=200, elapsed_ms=1.0)
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher


@pytest.fixture
def header_templates() -> Dict[str, Any]:
    return {
        "i": {"accept": "application/json", "cb-loc": ["IN", "US", "GB"]},
        "w": {"accept": "application/json", "cb-loc": "IN"},
    }


@pytest.fixture
def id_catalog() -> Dict[str, List[Any]]:
    return {
        "teamId": [42, 7, 13],
        "matchId": ["m-1", "m-2"],
    }


@pytest.fixture
def endpoint_catalog() -> List[Dict[str, Any]]:
    return [
        {"platform": "i", "key": "score", "path": "teams/{teamId}/score", "idCategory": "teamId"},
        {"platform": "i", "key": "home", "path": "home"},
        {"platform": "i", "key": "match", "path": "matches/{matchId}", "idCategory": "matchId"},
        {"platform": "i", "key": "matchV2", "path": "v2/matches/{matchId}", "idCategory": "matchId"},
        {"platform": "w", "key": "home", "path": "home"},
    ]


@pytest.fixture
def job_dict() -> Dict[str, Any]:
    return {
        "name": "ios-smoke",
        "platform": "i",
        "baseA": BASE_A,
        "baseB": BASE_B,
        "endpointsToRun": ["score"],
        "retryPolicy": {"retries": 3, "delayMs": 0},
        "ignorePaths": [],
    }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep environment overrides from leaking into tests."""
    for name in ("CONCURRENCY_LIMIT", "QUICK_MODE", "APIPARITY_VERIFY_TLS"):
        monkeypatch.delenv(name, raising=False)
