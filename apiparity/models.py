"""
Data model for comparison jobs, tasks, fetch results and diff records.

Config-facing types (JobSpec, EndpointDef) are immutable once parsed.
Records are built by a worker and handed off to the job aggregate.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

PAIR_SEPARATOR = "__VS__"
DEFAULT_GEO_HEADER = "cb-loc"


@dataclass(frozen=True)
class RetryPolicy:
    retries: int
    delay_ms: float


@dataclass(frozen=True)
class EndpointDef:
    platform: str
    key: str
    path: str
    id_category: Optional[str] = None


@dataclass(frozen=True)
class EndpointPair:
    """Two endpoint keys compared against each other (A path vs B path)."""

    key_a: str
    key_b: str

    @property
    def key(self) -> str:
        return f"{self.key_a}{PAIR_SEPARATOR}{self.key_b}"


@dataclass(frozen=True)
class JobSpec:
    name: str
    platform: str
    base_a: str
    base_b: str
    retry_policy: RetryPolicy
    selectors: Tuple[str, ...] = ()
    pairs: Tuple[EndpointPair, ...] = ()
    ignore_paths: Tuple[str, ...] = ()
    quick_mode: bool = False
    test_engineer: Optional[str] = None
    geo_header: str = DEFAULT_GEO_HEADER


@dataclass(frozen=True)
class ComparisonTask:
    """One (endpoint, substitution, geo) unit of work."""

    key: str
    params: Dict[str, Any]
    geo: Any
    url_a: str
    url_b: str
    header_template: Dict[str, Any]
    geo_header: str = DEFAULT_GEO_HEADER

    @property
    def headers(self) -> Dict[str, Any]:
        """Header template with the geo header narrowed to this task's geo."""
        hdrs = dict(self.header_template)
        if self.geo_header in hdrs:
            hdrs[self.geo_header] = self.geo
        return hdrs


@dataclass
class FetchResult:
    success: bool
    data: Any = None
    status: Optional[int] = None
    error: Optional[str] = None
    elapsed_ms: float = 0.0


@dataclass(frozen=True)
class RawDiff:
    """An unclassified structural difference.

    kind is one of "Edit", "New", "Delete", "ArrayChange". For ArrayChange,
    item_kind tells whether the array element was added ("New"), removed
    ("Delete") or edited in place ("Edit").
    """

    kind: str
    path: Tuple[Any, ...]
    old: Any = None
    new: Any = None
    item_kind: Optional[str] = None


@dataclass(frozen=True)
class DiffEntry:
    kind: str
    path: Tuple[Any, ...]
    old: Any
    new: Any
    severity: str
    change_type: str
    priority: int
    item_kind: Optional[str] = None

    @property
    def dot_path(self) -> str:
        return ".".join(str(p) for p in self.path)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "kind": self.kind,
            "path": list(self.path),
            "lhs": self.old,
            "rhs": self.new,
            "severity": self.severity,
            "changeType": self.change_type,
            "priority": self.priority,
        }
        if self.item_kind is not None:
            d["itemKind"] = self.item_kind
        return d


@dataclass
class ComparisonRecord:
    key: str
    params: Dict[str, Any]
    geo: Any
    url_a: str
    url_b: str
    headers_used: Dict[str, Any] = field(default_factory=dict)
    status_a: Optional[int] = None
    status_b: Optional[int] = None
    response_time_a: float = 0.0
    response_time_b: float = 0.0
    timestamp_a: Optional[str] = None
    timestamp_b: Optional[str] = None
    raw_json_a: Any = None
    raw_json_b: Any = None
    diffs: List[DiffEntry] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "params": dict(self.params),
            "cbLoc": self.geo,
            "urlA": self.url_a,
            "urlB": self.url_b,
            "statusA": self.status_a,
            "statusB": self.status_b,
            "responseTimeA": self.response_time_a,
            "responseTimeB": self.response_time_b,
            "timestampA": self.timestamp_a,
            "timestampB": self.timestamp_b,
            "headersUsedA": dict(self.headers_used),
            "headersUsedB": dict(self.headers_used),
            "rawJsonA": self.raw_json_a,
            "rawJsonB": self.raw_json_b,
            "diffs": [d.to_dict() for d in self.diffs],
            "error": self.error,
        }


@dataclass(frozen=True)
class JobSummary:
    total_comparisons: int = 0
    failures: int = 0
    endpoints_with_diffs: int = 0
    total_diffs: int = 0

    @property
    def successful(self) -> int:
        return self.total_comparisons - self.failures

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalComparisons": self.total_comparisons,
            "failures": self.failures,
            "endpointsWithDiffs": self.endpoints_with_diffs,
            "totalDiffs": self.total_diffs,
            "successful": self.successful,
        }


@dataclass(frozen=True)
class JobMeta:
    endpoints_run: Tuple[str, ...] = ()
    ids_used: Tuple[str, ...] = ()
    geo_used: Tuple[Any, ...] = ()

    def to_dict(self) -> Dict[str, List[Any]]:
        return {
            "endpointsRun": list(self.endpoints_run),
            "idsUsed": list(self.ids_used),
            "geoUsed": list(self.geo_used),
        }


@dataclass
class JobResult:
    job_name: str
    platform: Optional[str]
    records: List[ComparisonRecord] = field(default_factory=list)
    summary: JobSummary = field(default_factory=JobSummary)
    meta: JobMeta = field(default_factory=JobMeta)
    total_tasks: int = 0
    timestamp: Optional[str] = None
    test_engineer: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobName": self.job_name,
            "platform": self.platform,
            "timestamp": self.timestamp,
            "testEngineer": self.test_engineer,
            "totalTasks": self.total_tasks,
            "failures": self.summary.failures,
            "diffsFound": self.summary.total_diffs,
            "summary": self.summary.to_dict(),
            "meta": self.meta.to_dict(),
            "endpoints": [r.to_dict() for r in self.records],
            "error": self.error,
        }
