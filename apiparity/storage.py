import json
from pathlib import Path
from typing import Any, Dict, Iterable

from .models import JobResult
from .schema import ConfigError

CONFIG_FILES = {
    "comparison": "comparison.json",
    "headers": "headers.json",
    "ids": "ids.json",
    "endpoints": "endpoints.json",
}


def load_json(path: Path) -> Any:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}")


def load_config_dir(config_dir: Path) -> Dict[str, Any]:
    """Load the four config files into {'jobs', 'headers', 'ids', 'endpoints'}."""
    loaded = {name: load_json(config_dir / fname) for name, fname in CONFIG_FILES.items()}
    jobs = loaded["comparison"].get("jobs") if isinstance(loaded["comparison"], dict) else None
    if not isinstance(jobs, list):
        raise ConfigError(f"{config_dir / CONFIG_FILES['comparison']} must contain a 'jobs' list")
    return {
        "jobs": jobs,
        "headers": loaded["headers"],
        "ids": loaded["ids"],
        "endpoints": loaded["endpoints"],
    }


def save_results(path: Path, results: Iterable[JobResult]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump([r.to_dict() for r in results], f, indent=2, ensure_ascii=False, default=str)
