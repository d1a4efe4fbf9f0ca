"""
Job-level entry points: run one job or many, and summarize the records.

Each job gets its own bounded pool and its own response cache; nothing is
shared between jobs.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .cache import ResponseCache
from .env import concurrency_limit as env_concurrency_limit
from .env import verify_tls
from .expander import expand_job
from .fetch import HttpFetcher
from .logger import get_logger
from .models import ComparisonRecord, ComparisonTask, JobMeta, JobResult, JobSpec, JobSummary
from .scheduler import BoundedScheduler, ProgressCallback
from .schema import ConfigError, parse_endpoints, parse_job
from .worker import run_task

logger = get_logger()

JobInput = Union[JobSpec, Dict[str, Any]]


def _distinct(values: Iterable[Any]) -> tuple:
    seen = []
    for v in values:
        if v not in seen:
            seen.append(v)
    return tuple(seen)


def summarize(
    job: JobSpec,
    records: Sequence[ComparisonRecord],
    total_tasks: Optional[int] = None,
) -> JobResult:
    """Aggregate records into a JobResult. Order of records does not matter."""
    failures = sum(1 for r in records if r.failed)
    summary = JobSummary(
        total_comparisons=len(records),
        failures=failures,
        endpoints_with_diffs=sum(1 for r in records if r.diffs),
        total_diffs=sum(len(r.diffs) for r in records),
    )
    meta = JobMeta(
        endpoints_run=_distinct(r.key for r in records),
        ids_used=_distinct(str(v) for r in records for v in r.params.values()),
        geo_used=_distinct(r.geo for r in records),
    )
    return JobResult(
        job_name=job.name,
        platform=job.platform,
        records=list(records),
        summary=summary,
        meta=meta,
        total_tasks=len(records) if total_tasks is None else total_tasks,
        timestamp=datetime.now(timezone.utc).isoformat(),
        test_engineer=job.test_engineer,
    )


def _task_error_record(task: ComparisonTask, exc: Exception) -> ComparisonRecord:
    logger.error("Task raised unexpectedly", key=task.key, params=task.params, error=str(exc))
    logger.record_comparison(failed=True)
    return ComparisonRecord(
        key=task.key,
        params=dict(task.params),
        geo=task.geo,
        url_a=task.url_a,
        url_b=task.url_b,
        headers_used=task.headers,
        error=f"Task error (loc={task.geo}): {exc}",
    )


def run_job(
    job_spec: JobInput,
    header_templates: Mapping[str, Mapping[str, Any]],
    id_catalog: Mapping[str, Sequence[Any]],
    endpoint_catalog: Iterable[Any],
    fetcher: Optional[HttpFetcher] = None,
    concurrency_limit: Optional[int] = None,
    quick_mode: Optional[bool] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> JobResult:
    """
    Run every comparison task for one job.

    Args:
        job_spec: JobSpec or the raw job mapping from configuration
        header_templates: Header template per platform
        id_catalog: ID values per ID category
        endpoint_catalog: EndpointDefs or raw endpoint mappings
        fetcher: HTTP fetcher; defaults to HttpFetcher honoring APIPARITY_VERIFY_TLS
        concurrency_limit: Max in-flight tasks; defaults to CONCURRENCY_LIMIT or 5; must be positive
        quick_mode: Global quick-mode override; defaults to QUICK_MODE
        on_progress: Optional callback(completed, total) per finished task

    Returns:
        JobResult. Task failures are recorded on their ComparisonRecord.

    Raises:
        ConfigError: if the job or catalogs are misconfigured
    """
    job = job_spec if isinstance(job_spec, JobSpec) else parse_job(job_spec)
    endpoints = parse_endpoints(endpoint_catalog)
    if concurrency_limit is None:
        limit = env_concurrency_limit()
    elif concurrency_limit < 1:
        raise ConfigError(f"concurrency_limit must be a positive integer, got {concurrency_limit!r}")
    else:
        limit = concurrency_limit

    tasks = expand_job(job, header_templates, id_catalog, endpoints, quick=quick_mode)
    logger.info(
        f"Running job '{job.name}'",
        platform=job.platform,
        tasks=len(tasks),
        concurrency=limit,
    )

    if fetcher is None:
        fetcher = HttpFetcher(verify=verify_tls())
    cache = ResponseCache(fetcher, job.retry_policy.retries, job.retry_policy.delay_ms)

    scheduler = BoundedScheduler(limit)
    try:
        records = scheduler.run(
            tasks,
            lambda task: run_task(task, cache, job.ignore_paths),
            on_progress=on_progress,
            on_error=_task_error_record,
        )
    finally:
        cache.clear()

    result = summarize(job, records, total_tasks=len(tasks))
    logger.info(
        f"Job '{job.name}' complete",
        comparisons=result.summary.total_comparisons,
        failures=result.summary.failures,
        diffs=result.summary.total_diffs,
        cache_hits=cache.hits,
    )
    return result


def _failed_job(job_spec: JobInput, exc: Exception) -> JobResult:
    if isinstance(job_spec, JobSpec):
        name, platform = job_spec.name, job_spec.platform
    elif isinstance(job_spec, dict):
        name, platform = job_spec.get("name") or "?", job_spec.get("platform")
    else:
        name, platform = "?", None
    logger.error(f"Job '{name}' failed", error=str(exc))
    return JobResult(
        job_name=name,
        platform=platform,
        timestamp=datetime.now(timezone.utc).isoformat(),
        error=str(exc),
    )


def run_all_jobs(
    job_specs: Sequence[JobInput],
    header_templates: Mapping[str, Mapping[str, Any]],
    id_catalog: Mapping[str, Sequence[Any]],
    endpoint_catalog: Iterable[Any],
    **kwargs,
) -> List[JobResult]:
    """
    Run jobs in parallel and return their results in input order.

    A job that raises is returned as a JobResult with `error` set; it does
    not stop the others. kwargs are passed through to run_job.
    """
    if not job_specs:
        return []
    endpoint_catalog = list(endpoint_catalog)

    def _one(spec: JobInput) -> JobResult:
        try:
            return run_job(spec, header_templates, id_catalog, endpoint_catalog, **kwargs)
        except Exception as e:
            return _failed_job(spec, e)

    with ThreadPoolExecutor(max_workers=len(job_specs), thread_name_prefix="apiparity-job-") as executor:
        return list(executor.map(_one, job_specs))
