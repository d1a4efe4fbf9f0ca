"""HTTP GET with bounded fixed-delay retries, returning a FetchResult."""

import time
from typing import Any, Callable, Dict, Optional

import requests

from .logger import get_logger
from .models import FetchResult
from .retry import RetryError, is_success_status, retry_call

logger = get_logger()

DEFAULT_TIMEOUT = 5.0


class HttpStatusError(Exception):
    """A response arrived but its status is outside [200, 300)."""

    def __init__(self, status: int):
        super().__init__(f"Status {status}")
        self.status = status


def _parse_body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        # Non-JSON bodies are kept as text and compared as strings.
        return resp.text


def _error_status(exc: Exception) -> Optional[int]:
    if isinstance(exc, HttpStatusError):
        return exc.status
    if isinstance(exc, requests.exceptions.RequestException) and exc.response is not None:
        return exc.response.status_code
    return None


class HttpFetcher:
    """
    Stateless GET client for one side of a comparison.

    Args:
        timeout: Seconds per attempt, independent of the retry count
        verify: Certificate validation for the compared hosts only. Set to
            False for staging hosts with self-signed certificates.
        sleep: Sleep function used between attempts (injectable for tests)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.timeout = timeout
        self.verify = verify
        self.sleep = sleep

    def _attempt(self, url: str, headers: Dict[str, Any]) -> requests.Response:
        logger.record_http_request()
        resp = requests.get(
            url,
            headers={k: str(v) for k, v in headers.items() if v is not None},
            timeout=self.timeout,
            verify=self.verify,
        )
        if not is_success_status(resp.status_code):
            raise HttpStatusError(resp.status_code)
        return resp

    def fetch(
        self,
        url: str,
        headers: Dict[str, Any],
        max_retries: int,
        delay_ms: float,
    ) -> FetchResult:
        """GET url; retry non-2xx and transport errors up to max_retries times."""

        def _on_retry(attempt: int, exc: Exception, delay: float):
            logger.record_http_retry()
            logger.debug("Retrying request", url=url, attempt=attempt, error=str(exc))

        start = time.monotonic()
        try:
            resp = retry_call(
                lambda: self._attempt(url, headers),
                max_retries=max_retries,
                delay=delay_ms / 1000.0,
                exceptions=(HttpStatusError, requests.exceptions.RequestException),
                on_retry=_on_retry,
                sleep=self.sleep,
            )
        except RetryError as e:
            elapsed = (time.monotonic() - start) * 1000.0
            last = e.last_exception
            logger.record_http_failure(type(last).__name__)
            logger.warning(
                "Request failed after retries",
                url=url,
                attempts=e.attempts,
                error=str(last),
            )
            return FetchResult(
                success=False,
                data=None,
                status=_error_status(last),
                error=str(last),
                elapsed_ms=elapsed,
            )

        elapsed = (time.monotonic() - start) * 1000.0
        return FetchResult(
            success=True,
            data=_parse_body(resp),
            status=resp.status_code,
            error=None,
            elapsed_ms=elapsed,
        )
