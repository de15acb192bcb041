import logging
import threading
from dataclasses import replace
from datetime import datetime

from health_monitor.config import SLOW_THRESHOLD_MS
from health_monitor.errors import AggregationError
from health_monitor.event_log import EventLog
from health_monitor.models import AggregateStats, ProbeResult, RoundSummary, utcnow
from health_monitor.reporter import format_result_line

log = logging.getLogger(__name__)


class ResultAggregator:
    """
    Sole owner of the running AggregateStats and the EventLog.

    ingest() folds in one whole round under a lock and publishes the new
    stats in a single assignment, so snapshot() only ever sees complete
    rounds. Counters only grow; total == succeeded + failed after every
    ingest.
    """

    def __init__(
        self,
        slow_threshold_ms: float = SLOW_THRESHOLD_MS,
        event_log: EventLog | None = None,
        start_time: datetime | None = None,
    ) -> None:
        self._slow_threshold_ms = slow_threshold_ms
        self.event_log = event_log if event_log is not None else EventLog()
        self._stats = AggregateStats(start_time=start_time or utcnow())
        self._lock = threading.Lock()

    def ingest(self, summary: RoundSummary) -> list[str]:
        """
        Fold one round into the running totals.

        Returns the event lines appended for this round, in target order.

        Raises:
            AggregationError  if summary is not a well-formed RoundSummary
        """
        self._check(summary)

        with self._lock:
            stats = self._stats
            total, succeeded, failed = stats.total, stats.succeeded, stats.failed
            latency_sum = stats.latency_sum_ms
            min_ms, max_ms = stats.min_latency_ms, stats.max_latency_ms
            lines: list[str] = []

            for result in summary.results:
                total += 1
                if result.ok:
                    succeeded += 1
                else:
                    failed += 1

                latency = result.latency_ms
                latency_sum += latency
                min_ms = latency if min_ms is None else min(min_ms, latency)
                max_ms = latency if max_ms is None else max(max_ms, latency)
                lines.append(format_result_line(result, self._slow_threshold_ms))

            self.event_log.extend(lines)
            self._stats = replace(
                stats,
                total=total,
                succeeded=succeeded,
                failed=failed,
                rounds=stats.rounds + 1,
                last_tick_time=summary.started_at,
                latency_sum_ms=latency_sum,
                min_latency_ms=min_ms,
                max_latency_ms=max_ms,
            )

        log.debug(
            "Ingested round %d: %d result(s), %d failed so far",
            summary.round_number, len(summary.results), failed,
        )
        return lines

    def snapshot(self) -> AggregateStats:
        # AggregateStats is frozen and replaced wholesale on ingest
        return self._stats

    def success_rate(self) -> float:
        return self._stats.success_rate

    @staticmethod
    def _check(summary: RoundSummary) -> None:
        if not isinstance(summary, RoundSummary):
            raise AggregationError(f"expected RoundSummary, got {type(summary).__name__}")
        if not isinstance(summary.started_at, datetime):
            raise AggregationError(f"round {summary.round_number} has no start time")
        for result in summary.results:
            if not isinstance(result, ProbeResult):
                raise AggregationError(
                    f"round {summary.round_number} contains {type(result).__name__}, not ProbeResult"
                )
