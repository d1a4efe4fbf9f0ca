import argparse
import sys
from pathlib import Path

from . import __version__
from .comparator import run_all_jobs
from .env import load_env
from .expander import expand_job
from .fetch import HttpFetcher
from .logger import get_logger
from .schema import ConfigError, parse_endpoints, parse_job, validate_job
from .storage import load_config_dir, save_results


def _select_jobs(jobs: list, name: str | None) -> list:
    if not name:
        return jobs
    selected = [j for j in jobs if isinstance(j, dict) and j.get("name") == name]
    if not selected:
        raise SystemExit(f"No job named '{name}' in config")
    return selected


def _print_progress(completed: int, total: int) -> None:
    sys.stdout.write(f"\r  {completed}/{total} comparisons")
    if completed == total:
        sys.stdout.write("\n")
    sys.stdout.flush()


def cmd_run(args: argparse.Namespace) -> None:
    try:
        cfg = load_config_dir(Path(args.config_dir))
    except ConfigError as e:
        raise SystemExit(str(e))

    jobs = _select_jobs(cfg["jobs"], args.job)
    fetcher = HttpFetcher(verify=False) if args.insecure else None
    results = run_all_jobs(
        jobs,
        cfg["headers"],
        cfg["ids"],
        cfg["endpoints"],
        fetcher=fetcher,
        concurrency_limit=args.concurrency,
        quick_mode=True if args.quick else None,
        on_progress=_print_progress if len(jobs) == 1 else None,
    )

    for r in results:
        if r.error:
            print(f"[error] {r.job_name}: {r.error}")
            continue
        s = r.summary
        print(
            f"[{r.job_name}] {s.total_comparisons} comparisons, "
            f"{s.failures} failed, {s.endpoints_with_diffs} with diffs, {s.total_diffs} diffs"
        )

    get_logger().log_metrics_summary()

    if args.output:
        save_results(Path(args.output), results)
        print(f"Results written to {args.output}")

    if any(r.error for r in results):
        raise SystemExit(1)


def cmd_validate(args: argparse.Namespace) -> None:
    try:
        cfg = load_config_dir(Path(args.config_dir))
        parse_endpoints(cfg["endpoints"])
    except ConfigError as e:
        raise SystemExit(str(e))

    invalid = 0
    for i, job in enumerate(cfg["jobs"]):
        name = job.get("name", f"#{i}") if isinstance(job, dict) else f"#{i}"
        errors = validate_job(job)
        if not errors and job["platform"] not in cfg["headers"]:
            errors = [f"No header template for platform '{job['platform']}'"]
        if errors:
            invalid += 1
            print(f"Invalid job {name}:")
            for e in errors:
                print(f" - {e}")
        else:
            print(f"Valid job {name}")
    if invalid:
        raise SystemExit(2)


def cmd_tasks(args: argparse.Namespace) -> None:
    try:
        cfg = load_config_dir(Path(args.config_dir))
        job = parse_job(_select_jobs(cfg["jobs"], args.job)[0])
        tasks = expand_job(
            job,
            cfg["headers"],
            cfg["ids"],
            parse_endpoints(cfg["endpoints"]),
            quick=True if args.quick else None,
        )
    except ConfigError as e:
        raise SystemExit(str(e))

    print(f"{len(tasks)} tasks for job '{job.name}':")
    for t in tasks:
        print(f" - {t.key} params={t.params} loc={t.geo}")
        print(f"     A: {t.url_a}")
        print(f"     B: {t.url_b}")


def main():
    # Load .env if present (CONCURRENCY_LIMIT, QUICK_MODE, APIPARITY_VERIFY_TLS)
    load_env()
    parser = argparse.ArgumentParser(prog="apiparity", description="Compare two deployments of a JSON API")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    run = subparsers.add_parser("run", help="Run comparison jobs")
    run.add_argument("--config-dir", default="config", help="Directory with comparison/headers/ids/endpoints JSON (default: config)")
    run.add_argument("--job", help="Only run the job with this name")
    run.add_argument("--quick", action="store_true", help="One ID and one geo per endpoint")
    run.add_argument("--concurrency", type=int, help="Max in-flight comparisons per job (default: CONCURRENCY_LIMIT or 5)")
    run.add_argument("--insecure", action="store_true", help="Skip TLS certificate checks for compared hosts")
    run.add_argument("--output", help="Write job results JSON to this path")
    run.set_defaults(func=cmd_run)

    val = subparsers.add_parser("validate", help="Validate job and endpoint configuration")
    val.add_argument("--config-dir", default="config", help="Config directory (default: config)")
    val.set_defaults(func=cmd_validate)

    tsk = subparsers.add_parser("tasks", help="Print the expanded task list for a job")
    tsk.add_argument("--config-dir", default="config", help="Config directory (default: config)")
    tsk.add_argument("--job", required=True, help="Job name")
    tsk.add_argument("--quick", action="store_true", help="Expand in quick mode")
    tsk.set_defaults(func=cmd_tasks)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
