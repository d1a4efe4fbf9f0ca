"""
Fixed-delay retry logic for transient HTTP failures.

Every failed attempt waits the same delay before the next one; there is no
exponential growth. The retry budget is chosen per call because each job
carries its own retry policy.
"""

import time
from typing import Any, Callable, Optional, Tuple, Type


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""

    def __init__(self, message: str, attempts: int, last_exception: Exception):
        super().__init__(message)
        self.attempts = attempts
        self.last_exception = last_exception


def retry_call(
    func: Callable[[], Any],
    max_retries: int,
    delay: float,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Call func until it succeeds or max_retries retries have failed.

    Args:
        func: Zero-argument callable for one attempt
        max_retries: Retries after the first attempt (0 = single attempt)
        delay: Seconds to wait between attempts
        exceptions: Exception types that count as a failed attempt
        on_retry: Optional callback(attempt, exception, delay) before each wait
        sleep: Sleep function, injectable for tests

    Raises:
        RetryError: after max_retries + 1 failed attempts
    """
    if max_retries < 0:
        raise ValueError("max_retries must be >= 0")

    for attempt in range(max_retries + 1):
        try:
            return func()
        except exceptions as e:
            # Don't sleep after the last attempt
            if attempt < max_retries:
                if on_retry:
                    on_retry(attempt + 1, e, delay)
                sleep(delay)
            else:
                raise RetryError(
                    f"Failed after {max_retries + 1} attempts: {e}",
                    attempts=max_retries + 1,
                    last_exception=e,
                ) from e


def is_success_status(status_code: Optional[int]) -> bool:
    """True for 2xx statuses."""
    return status_code is not None and 200 <= status_code < 300
