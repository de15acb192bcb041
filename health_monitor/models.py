from dataclasses import dataclass
from datetime import datetime, timezone

from health_monitor.errors import ErrorKind


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def format_dt(dt: datetime | None) -> str:
    """Human-readable UTC timestamp for console display."""
    if dt is None:
        return "Unknown"
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_ts(dt: datetime) -> str:
    """ISO 8601 UTC timestamp, e.g. 2026-02-21T12:39:08Z"""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Target:
    """One endpoint to probe. Fixed for the lifetime of a monitor run."""
    url: str

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class Success:
    status_code: int
    latency_ms: float
    body_size: int
    matched_keywords: tuple[str, ...] = ()
    body_preview: tuple[str, ...] = ()


@dataclass(frozen=True)
class Failure:
    """
    A probe that did not produce a healthy response.

    status_code is set only for HTTP-level failures (4xx/5xx); transport
    failures never got a status line.
    """
    error_kind: ErrorKind
    latency_ms: float
    status_code: int | None = None
    message: str = ""


@dataclass(frozen=True)
class ProbeResult:
    target: Target
    timestamp: datetime
    outcome: Success | Failure

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def latency_ms(self) -> float:
        return self.outcome.latency_ms

    @property
    def status_code(self) -> int | None:
        return self.outcome.status_code


@dataclass(frozen=True)
class RoundSummary:
    """
    All results of one scheduling tick, in target order.

    Lives only until the aggregator folds it in.
    """
    round_number: int
    started_at: datetime
    results: tuple[ProbeResult, ...]


@dataclass(frozen=True)
class AggregateStats:
    """
    Cumulative counters as of the last fully ingested round.

    Instances handed out by the aggregator are snapshots; the aggregator
    replaces its own copy on every ingest and never mutates one in place.
    """
    start_time: datetime
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    rounds: int = 0
    last_tick_time: datetime | None = None
    latency_sum_ms: float = 0.0
    min_latency_ms: float | None = None
    max_latency_ms: float | None = None

    @property
    def success_rate(self) -> float:
        """succeeded / total, or exactly 0 before anything was recorded."""
        if self.total <= 0:
            return 0.0
        return self.succeeded / self.total

    @property
    def mean_latency_ms(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.latency_sum_ms / self.total
