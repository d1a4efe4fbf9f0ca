"""Fetch-and-diff body for one ComparisonTask."""

from datetime import datetime, timezone
from typing import Sequence

from .cache import ResponseCache
from .classifier import classify_all
from .diffing import compute_diff, filter_ignored
from .logger import get_logger
from .models import ComparisonRecord, ComparisonTask, FetchResult

logger = get_logger()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def failure_message(side: str, geo, result: FetchResult) -> str:
    return f"{side} failed (loc={geo}): {result.error}"


def run_task(
    task: ComparisonTask,
    cache: ResponseCache,
    ignore_paths: Sequence[str] = (),
) -> ComparisonRecord:
    """
    Fetch both sides through the job cache and diff them.

    If either side fails the record carries the error and no diffs.
    Raw payloads are always attached for downstream rendering.
    """
    headers = task.headers

    resp_a = cache.fetch(task.url_a, headers)
    timestamp_a = _now()
    resp_b = cache.fetch(task.url_b, headers)
    timestamp_b = _now()

    record = ComparisonRecord(
        key=task.key,
        params=dict(task.params),
        geo=task.geo,
        url_a=task.url_a,
        url_b=task.url_b,
        headers_used=headers,
        status_a=resp_a.status,
        status_b=resp_b.status,
        response_time_a=round(resp_a.elapsed_ms, 1),
        response_time_b=round(resp_b.elapsed_ms, 1),
        timestamp_a=timestamp_a,
        timestamp_b=timestamp_b,
        raw_json_a=resp_a.data if resp_a.success else None,
        raw_json_b=resp_b.data if resp_b.success else None,
    )

    if not resp_a.success:
        record.error = failure_message("A", task.geo, resp_a)
    elif not resp_b.success:
        record.error = failure_message("B", task.geo, resp_b)

    if record.error:
        logger.record_comparison(failed=True)
        logger.warning("Comparison failed", key=task.key, params=task.params, error=record.error)
        return record

    raw = filter_ignored(compute_diff(resp_a.data, resp_b.data), ignore_paths)
    record.diffs = classify_all(raw)
    logger.record_comparison(failed=False, diff_count=len(record.diffs))
    if record.diffs:
        logger.debug("Differences found", key=task.key, params=task.params, geo=task.geo, count=len(record.diffs))
    return record
