"""
Expands one job into its concrete comparison tasks.

Tasks are the cross product of
    endpoint (or endpoint pair) x ID substitution x geo variant
emitted in that loop order, so the list is stable for a given config.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .env import quick_mode_enabled
from .logger import get_logger
from .models import ComparisonTask, EndpointDef, JobSpec
from .schema import ConfigError
from .template import build_url

logger = get_logger()


def geo_variants(header_template: Mapping[str, Any], geo_header: str, quick: bool) -> List[Any]:
    """Geo values from the template: the list if it is one (possibly empty), else the single value."""
    raw = header_template.get(geo_header)
    if isinstance(raw, (list, tuple)):
        geos = list(raw)
    else:
        geos = [raw]
    return geos[:1] if quick else geos


def substitutions(
    category: Optional[str], id_catalog: Mapping[str, Sequence[Any]], quick: bool
) -> List[Dict[str, Any]]:
    if not category:
        return [{}]
    values = list(id_catalog.get(category) or [])
    if quick:
        values = values[:1]
    return [{category: v} for v in values]


def _resolve_units(
    job: JobSpec, endpoints: Sequence[EndpointDef]
) -> List[Tuple[str, EndpointDef, EndpointDef]]:
    """(key, endpoint for side A, endpoint for side B) per unit of work."""
    index: Dict[str, EndpointDef] = {}
    for ep in endpoints:
        if ep.platform == job.platform:
            index.setdefault(ep.key, ep)

    if not job.selectors and not job.pairs:
        return [(ep.key, ep, ep) for ep in index.values()]

    units: List[Tuple[str, EndpointDef, EndpointDef]] = []
    seen = set()
    for key in job.selectors:
        if key in seen:
            continue
        seen.add(key)
        ep = index.get(key)
        if ep is None:
            _unresolved(job, key)
            continue
        units.append((key, ep, ep))

    for pair in job.pairs:
        if pair.key in seen:
            continue
        seen.add(pair.key)
        ep_a, ep_b = index.get(pair.key_a), index.get(pair.key_b)
        if ep_a is None or ep_b is None:
            _unresolved(job, pair.key)
            continue
        units.append((pair.key, ep_a, ep_b))

    return units


def _unresolved(job: JobSpec, key: str):
    logger.record_unresolved_endpoint()
    logger.warning(
        "Endpoint not found for platform; skipping",
        job=job.name,
        platform=job.platform,
        endpoint=key,
    )


def expand_job(
    job: JobSpec,
    header_templates: Mapping[str, Mapping[str, Any]],
    id_catalog: Mapping[str, Sequence[Any]],
    endpoints: Sequence[EndpointDef],
    quick: Optional[bool] = None,
) -> List[ComparisonTask]:
    """
    Build every ComparisonTask for a job.

    Args:
        job: Parsed job definition
        header_templates: Header template per platform
        id_catalog: ID values per ID category
        endpoints: Endpoint catalog (all platforms)
        quick: Global quick-mode override; read from QUICK_MODE when None

    Returns:
        Tasks in endpoint -> substitution -> geo order. Unknown endpoint keys
        are dropped and logged.

    Raises:
        ConfigError: if there is no header template for the job's platform
    """
    header_template = header_templates.get(job.platform)
    if header_template is None:
        raise ConfigError(f"No header template for platform '{job.platform}' (job '{job.name}')")

    if quick is None:
        quick = quick_mode_enabled()
    quick = quick or job.quick_mode

    geos = geo_variants(header_template, job.geo_header, quick)
    template = dict(header_template)

    tasks: List[ComparisonTask] = []
    for key, ep_a, ep_b in _resolve_units(job, endpoints):
        category = ep_a.id_category or ep_b.id_category
        for sub in substitutions(category, id_catalog, quick):
            url_a = build_url(job.base_a, job.platform, ep_a.path, sub)
            url_b = build_url(job.base_b, job.platform, ep_b.path, sub)
            for geo in geos:
                tasks.append(
                    ComparisonTask(
                        key=key,
                        params=sub,
                        geo=geo,
                        url_a=url_a,
                        url_b=url_b,
                        header_template=template,
                        geo_header=job.geo_header,
                    )
                )
    return tasks
