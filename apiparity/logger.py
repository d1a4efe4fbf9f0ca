"""
Structured logging for comparison runs.

Wraps stdlib logging with console and file outputs and keeps run metrics
(HTTP calls, retries, cache usage, comparison outcomes). Metric updates
come from worker threads, so they are serialized with a lock.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring comparison runs.
    """

    def __init__(
        self,
        name: str = "apiparity",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self._lock = threading.Lock()
        self.metrics = self._empty_metrics()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"apiparity_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(threadName)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "http_requests": 0,
            "http_retries": 0,
            "http_failures": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "comparisons": 0,
            "comparisons_failed": 0,
            "diffs_found": 0,
            "unresolved_endpoints": 0,
            "errors_by_type": {},
        }

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def _incr(self, metric: str, amount: int = 1):
        with self._lock:
            self.metrics[metric] += amount

    def record_http_request(self):
        self._incr("http_requests")

    def record_http_retry(self):
        self._incr("http_retries")

    def record_http_failure(self, error_type: str):
        """Record a fetch that exhausted its retries."""
        with self._lock:
            self.metrics["http_failures"] += 1
            errors = self.metrics["errors_by_type"]
            errors[error_type] = errors.get(error_type, 0) + 1

    def record_cache_hit(self):
        self._incr("cache_hits")

    def record_cache_miss(self):
        self._incr("cache_misses")

    def record_comparison(self, failed: bool, diff_count: int = 0):
        with self._lock:
            self.metrics["comparisons"] += 1
            if failed:
                self.metrics["comparisons_failed"] += 1
            self.metrics["diffs_found"] += diff_count

    def record_unresolved_endpoint(self):
        self._incr("unresolved_endpoints")

    def get_metrics(self) -> dict:
        """Return a snapshot of current metrics."""
        with self._lock:
            snapshot = dict(self.metrics)
            snapshot["errors_by_type"] = dict(self.metrics["errors_by_type"])

        lookups = snapshot["cache_hits"] + snapshot["cache_misses"]
        snapshot["cache_hit_rate"] = (
            round(snapshot["cache_hits"] / lookups, 3) if lookups else 0.0
        )
        return snapshot

    def reset_metrics(self):
        with self._lock:
            self.metrics = self._empty_metrics()

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total = metrics["comparisons"]
        failed = metrics["comparisons_failed"]
        ok_rate = 0
        if total > 0:
            ok_rate = round((total - failed) / total * 100, 1)

        self.info("=== Comparison Run Metrics ===")
        self.info(f"HTTP Requests: {metrics['http_requests']} ({metrics['http_retries']} retries)")
        self.info(
            f"Cache: {metrics['cache_hits']} hits / {metrics['cache_misses']} misses"
        )
        self.info(f"Comparisons: {total - failed}/{total} ({ok_rate}% success)")
        self.info(f"Diffs Found: {metrics['diffs_found']}")

        if metrics["unresolved_endpoints"]:
            self.info(f"Unresolved Endpoints: {metrics['unresolved_endpoints']}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "apiparity",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
