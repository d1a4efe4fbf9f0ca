"""
Per-job response cache in front of the retrying fetcher.

Correctness precondition: GET is assumed idempotent within one job run,
so identical (URL, headers) requests return identical data. Two workers
missing on the same key at the same time may both fetch; the first
stored result wins and the second is discarded. Only successful results
are stored. A cache lives for exactly one job and is never shared.
"""

import json
import threading
from typing import Any, Dict, Tuple

from .fetch import HttpFetcher
from .logger import get_logger
from .models import FetchResult

logger = get_logger()


def cache_key(url: str, headers: Dict[str, Any]) -> str:
    """URL joined with a canonical (sorted-key) serialization of the headers."""
    return f"{url}|{json.dumps(headers, sort_keys=True, default=str)}"


class ResponseCache:
    def __init__(self, fetcher: HttpFetcher, max_retries: int, delay_ms: float):
        self.fetcher = fetcher
        self.max_retries = max_retries
        self.delay_ms = delay_ms
        self._entries: Dict[str, Tuple[Any, int]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def fetch(self, url: str, headers: Dict[str, Any]) -> FetchResult:
        key = cache_key(url, headers)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self.hits += 1
            else:
                self.misses += 1

        if entry is not None:
            logger.record_cache_hit()
            logger.debug("Cache hit", url=url)
            data, status = entry
            return FetchResult(success=True, data=data, status=status, error=None, elapsed_ms=0.0)

        logger.record_cache_miss()
        # The network call happens outside the lock.
        result = self.fetcher.fetch(url, headers, self.max_retries, self.delay_ms)
        if result.success:
            with self._lock:
                self._entries.setdefault(key, (result.data, result.status))
        return result

    def clear(self):
        with self._lock:
            self._entries.clear()
