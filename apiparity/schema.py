from typing import Any, Dict, Iterable, List, Tuple
from urllib.parse import urlparse

from .models import DEFAULT_GEO_HEADER, EndpointDef, EndpointPair, JobSpec, RetryPolicy

REQUIRED_STR_FIELDS = ["name", "platform", "baseA", "baseB"]
URL_FIELDS = ["baseA", "baseB"]


class ConfigError(ValueError):
    """Raised when a job or catalog entry cannot be used as configured."""

    def __init__(self, message: str, errors: List[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except ValueError:
        return False


def _pair_keys(entry: Any) -> Tuple[str, str] | None:
    if isinstance(entry, dict):
        a, b = entry.get("a"), entry.get("b")
    elif isinstance(entry, (list, tuple)) and len(entry) == 2:
        a, b = entry
    else:
        return None
    if _is_non_empty_str(a) and _is_non_empty_str(b):
        return a, b
    return None


def validate_job(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    if not isinstance(data, dict):
        return ["Job definition must be a mapping"]

    errors: List[str] = []

    for f in REQUIRED_STR_FIELDS:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in URL_FIELDS:
        if _is_non_empty_str(data.get(f)) and not _valid_url(data[f]):
            errors.append(f"Field '{f}' must be a valid absolute URL (scheme + host)")

    policy = data.get("retryPolicy")
    if policy is None:
        errors.append("Missing required field: retryPolicy")
    elif not isinstance(policy, dict):
        errors.append("Field 'retryPolicy' must be a mapping")
    else:
        retries = policy.get("retries")
        if not (isinstance(retries, int) and not isinstance(retries, bool) and retries >= 0):
            errors.append("Field 'retryPolicy.retries' must be a non-negative integer")
        delay = policy.get("delayMs")
        if not (_is_number(delay) and delay >= 0):
            errors.append("Field 'retryPolicy.delayMs' must be a non-negative number")

    selectors = data.get("endpointsToRun")
    if selectors is not None:
        if not isinstance(selectors, list):
            errors.append("Field 'endpointsToRun' must be a list if provided")
        else:
            for i, entry in enumerate(selectors):
                if not _is_non_empty_str(entry) and _pair_keys(entry) is None:
                    errors.append(
                        f"endpointsToRun[{i}] must be an endpoint key or an {{a, b}} pair"
                    )

    ignore = data.get("ignorePaths")
    if ignore is not None:
        if not isinstance(ignore, list) or not all(isinstance(p, str) for p in ignore):
            errors.append("Field 'ignorePaths' must be a list of strings if provided")

    if "quickMode" in data and not isinstance(data["quickMode"], bool):
        errors.append("Field 'quickMode' must be a boolean if provided")

    if "geoHeader" in data and not _is_non_empty_str(data["geoHeader"]):
        errors.append("Field 'geoHeader' must be a non-empty string if provided")

    return errors


def parse_job(data: Dict[str, Any]) -> JobSpec:
    """Validate a job mapping and build a JobSpec.

    Raises:
        ConfigError: if any required field is missing or malformed. Defaults
            are never guessed for the retry policy.
    """
    errors = validate_job(data)
    if errors:
        name = data.get("name") if isinstance(data, dict) else None
        raise ConfigError(f"Invalid job '{name or '?'}': {'; '.join(errors)}", errors)

    selectors: List[str] = []
    pairs: List[EndpointPair] = []
    for entry in data.get("endpointsToRun") or []:
        if isinstance(entry, str):
            selectors.append(entry)
        else:
            a, b = _pair_keys(entry)
            pairs.append(EndpointPair(a, b))

    policy = data["retryPolicy"]
    return JobSpec(
        name=data["name"],
        platform=data["platform"],
        base_a=data["baseA"].rstrip("/"),
        base_b=data["baseB"].rstrip("/"),
        retry_policy=RetryPolicy(retries=policy["retries"], delay_ms=policy["delayMs"]),
        selectors=tuple(selectors),
        pairs=tuple(pairs),
        ignore_paths=tuple(data.get("ignorePaths") or ()),
        quick_mode=bool(data.get("quickMode", False)),
        test_engineer=data.get("testEngineer"),
        geo_header=data.get("geoHeader", DEFAULT_GEO_HEADER),
    )


def parse_endpoints(items: Iterable[Any]) -> List[EndpointDef]:
    """Build EndpointDefs from catalog mappings; EndpointDefs pass through."""
    endpoints: List[EndpointDef] = []
    for i, item in enumerate(items):
        if isinstance(item, EndpointDef):
            endpoints.append(item)
            continue
        if not isinstance(item, dict):
            raise ConfigError(f"Endpoint #{i} must be a mapping")
        missing = [f for f in ("platform", "key", "path") if not _is_non_empty_str(item.get(f))]
        if missing:
            raise ConfigError(f"Endpoint #{i} is missing: {', '.join(missing)}")
        endpoints.append(
            EndpointDef(
                platform=item["platform"],
                key=item["key"],
                path=item["path"],
                id_category=item.get("idCategory") or None,
            )
        )
    return endpoints
