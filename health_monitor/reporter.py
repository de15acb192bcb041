# Reporter: the presentation layer of the monitor.
#
# All text formatting lives here; the models stay pure data containers.
# render_* functions are pure functions of their arguments so they can be
# tested without capturing stdout. ConsoleReporter is the only piece that
# actually writes anything.
#
# Event line format:
#     [2026-02-21T12:39:08Z] OK   https://a.example | status=200 | latency=50.00ms | size=1256B
#     [2026-02-21T12:39:08Z] FAIL https://b.example | status=500 | latency=10.00ms | error=server error | ! server error
#
#   - one line per probe result  -> grep/cut friendly
#   - ISO 8601 + Z suffix        -> unambiguous, sorts lexicographically
#   - advisory health label last, prefixed with "!"

from collections.abc import Sequence
from datetime import datetime

from health_monitor.config import SLOW_THRESHOLD_MS
from health_monitor.models import (
    AggregateStats,
    Failure,
    ProbeResult,
    Target,
    format_dt,
    format_ts,
    utcnow,
)
from health_monitor.probe import classify

_R = "\033[0m"   # reset

_MARK_COLOR: dict[str, str] = {
    "OK":   "\033[32m",   # green
    "FAIL": "\033[31m",   # red
    "!":    "\033[33m",   # yellow, advisory label
}

_RULE_WIDTH = 60


def _pct(rate: float) -> str:
    return f"{rate * 100:.2f}%"


def _seconds(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds()))


def format_result_line(result: ProbeResult, slow_threshold_ms: float = SLOW_THRESHOLD_MS) -> str:
    outcome = result.outcome
    status  = outcome.status_code if outcome.status_code is not None else "N/A"
    fields  = [
        f"[{format_ts(result.timestamp)}] {'OK  ' if result.ok else 'FAIL'} {result.target}",
        f"status={status}",
        f"latency={outcome.latency_ms:.2f}ms",
    ]

    if isinstance(outcome, Failure):
        error = outcome.error_kind.value
        if outcome.status_code is None and outcome.message:
            error = f"{error}: {outcome.message}"
        fields.append(f"error={error}")
    else:
        fields.append(f"size={outcome.body_size}B")
        if outcome.matched_keywords:
            fields.append(f"keywords={','.join(outcome.matched_keywords)}")
        if outcome.body_preview:
            fields.append(f"body={' / '.join(outcome.body_preview)}")

    label = classify(result, slow_threshold_ms)
    if label:
        fields.append(f"! {label}")

    return " | ".join(fields)


def render_banner(targets: Sequence[Target], interval: float, started_at: datetime) -> str:
    return "\n".join([
        "Endpoint health monitor",
        f"Started:  {format_dt(started_at)}",
        f"Targets:  {', '.join(str(t) for t in targets)}",
        f"Interval: every {interval:g}s",
        "=" * _RULE_WIDTH,
    ])


def render_incremental(stats: AggregateStats, now: datetime | None = None) -> str:
    """Short running snapshot: counts, success rate, uptime."""
    now = now or utcnow()
    return "\n".join([
        f"--- stats after {stats.rounds} round(s) ---",
        f"  total requests: {stats.total}",
        f"  succeeded:      {stats.succeeded}",
        f"  failed:         {stats.failed}",
        f"  success rate:   {_pct(stats.success_rate)}",
        f"  mean latency:   {stats.mean_latency_ms:.2f}ms",
        f"  uptime:         {_seconds(stats.start_time, now)}s",
        "-" * 40,
    ])


def render_final(stats: AggregateStats, now: datetime | None = None) -> str:
    """Closing report: totals, success rate, elapsed wall time, end timestamp."""
    now = now or utcnow()
    min_ms = f"{stats.min_latency_ms:.2f}ms" if stats.min_latency_ms is not None else "N/A"
    max_ms = f"{stats.max_latency_ms:.2f}ms" if stats.max_latency_ms is not None else "N/A"
    return "\n".join([
        "=" * _RULE_WIDTH,
        "Final monitoring report",
        f"  rounds:         {stats.rounds}",
        f"  total requests: {stats.total}",
        f"  succeeded:      {stats.succeeded}",
        f"  failed:         {stats.failed}",
        f"  success rate:   {_pct(stats.success_rate)}",
        f"  latency:        min {min_ms} / mean {stats.mean_latency_ms:.2f}ms / max {max_ms}",
        f"  elapsed:        {_seconds(stats.start_time, now)}s",
        f"  finished:       {format_dt(now)}",
    ])


class ConsoleReporter:
    """
    Prints the report stream to stdout.

    Colour is applied only at print time; the EventLog keeps plain text.
    """

    def __init__(self, color: bool = True) -> None:
        self._color = color

    def banner(self, targets: Sequence[Target], interval: float, started_at: datetime) -> None:
        self._print(render_banner(targets, interval, started_at))

    def round_lines(self, lines: Sequence[str]) -> None:
        for line in lines:
            self._print(self._colorize(line))

    def incremental(self, stats: AggregateStats) -> None:
        self._print(render_incremental(stats))

    def final(self, stats: AggregateStats) -> None:
        self._print(render_final(stats))

    def _colorize(self, line: str) -> str:
        if not self._color:
            return line
        for mark in ("OK  ", "FAIL"):
            token = f"] {mark} "
            if token in line:
                c = _MARK_COLOR[mark.strip()]
                line = line.replace(token, f"] {c}{mark}{_R} ", 1)
                break
        if " | ! " in line:
            head, label = line.rsplit(" | ! ", 1)
            line = f"{head} | {_MARK_COLOR['!']}! {label}{_R}"
        return line

    @staticmethod
    def _print(text: str) -> None:
        print(text, flush=True)
