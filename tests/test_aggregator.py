from __future__ import annotations

import math
import threading
from datetime import datetime, timedelta, timezone

import pytest

from health_monitor.aggregator import ResultAggregator
from health_monitor.errors import AggregationError, ErrorKind
from health_monitor.event_log import EventLog
from health_monitor.models import Failure, ProbeResult, RoundSummary, Success, Target

T0 = datetime(2026, 2, 21, 12, 0, 0, tzinfo=timezone.utc)


def _ok(url: str, latency: float = 50.0, status: int = 200) -> ProbeResult:
    return ProbeResult(Target(url), T0, Success(status, latency, 100))


def _fail(url: str, kind: ErrorKind, latency: float = 10.0, status: int | None = None) -> ProbeResult:
    return ProbeResult(Target(url), T0, Failure(kind, latency, status_code=status))


def _round(n: int, *results: ProbeResult) -> RoundSummary:
    return RoundSummary(round_number=n, started_at=T0 + timedelta(seconds=2 * n), results=results)


def test_success_rate_is_zero_when_nothing_ingested():
    agg = ResultAggregator(start_time=T0)
    rate = agg.success_rate()
    assert rate == 0
    assert not math.isnan(rate)
    assert agg.snapshot().total == 0


def test_mixed_round_scenario():
    agg = ResultAggregator(start_time=T0)
    agg.ingest(_round(
        1,
        _ok("https://a.test", latency=50.0),
        _fail("https://b.test", ErrorKind.SERVER_ERROR, latency=10.0, status=500),
    ))

    stats = agg.snapshot()
    assert stats.total == 2
    assert stats.succeeded == 1
    assert stats.failed == 1
    assert agg.success_rate() == 0.5

    a_line, b_line = agg.event_log.lines()
    assert "https://a.test" in a_line and "server error" not in a_line
    assert "https://b.test" in b_line and "! server error" in b_line


def test_totals_add_up_after_every_ingest():
    agg = ResultAggregator(start_time=T0)
    rounds = [
        (_ok("https://a.test"),),
        (_fail("https://a.test", ErrorKind.TIMEOUT), _ok("https://b.test")),
        (_fail("https://a.test", ErrorKind.CLIENT_ERROR, status=404),
         _fail("https://b.test", ErrorKind.DNS),
         _ok("https://c.test")),
    ]
    previous_total = 0
    for n, results in enumerate(rounds, start=1):
        agg.ingest(_round(n, *results))
        stats = agg.snapshot()
        assert stats.total == stats.succeeded + stats.failed
        assert stats.total >= previous_total
        assert stats.rounds == n
        previous_total = stats.total

    assert agg.snapshot().total == 6
    assert len(agg.event_log) == 6


def test_latency_and_tick_time_tracking():
    agg = ResultAggregator(start_time=T0)
    agg.ingest(_round(1, _ok("https://a.test", latency=30.0), _ok("https://b.test", latency=90.0)))

    stats = agg.snapshot()
    assert stats.min_latency_ms == 30.0
    assert stats.max_latency_ms == 90.0
    assert stats.mean_latency_ms == 60.0
    assert stats.last_tick_time == T0 + timedelta(seconds=2)


def test_snapshot_is_not_affected_by_later_rounds():
    agg = ResultAggregator(start_time=T0)
    agg.ingest(_round(1, _ok("https://a.test")))
    before = agg.snapshot()
    agg.ingest(_round(2, _ok("https://a.test")))

    assert before.total == 1
    assert agg.snapshot().total == 2


def test_malformed_round_is_rejected():
    agg = ResultAggregator(start_time=T0)
    with pytest.raises(AggregationError):
        agg.ingest({"results": []})
    with pytest.raises(AggregationError):
        agg.ingest(RoundSummary(round_number=1, started_at=T0, results=("not a result",)))
    assert agg.snapshot().total == 0
    assert len(agg.event_log) == 0


def test_concurrent_ingest_is_serialized():
    agg = ResultAggregator(start_time=T0)

    def _worker(offset: int) -> None:
        for n in range(50):
            agg.ingest(_round(offset + n, _ok("https://a.test"), _fail("https://b.test", ErrorKind.TIMEOUT)))

    threads = [threading.Thread(target=_worker, args=(i * 100,)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    stats = agg.snapshot()
    assert stats.total == 400
    assert stats.succeeded == 200
    assert stats.failed == 200
    assert stats.rounds == 200
    assert len(agg.event_log) == 400


def test_event_log_is_append_only_until_cleared():
    log = EventLog()
    log.append("first\n")
    log.extend(["second", "third"])

    assert log.lines() == ["first", "second", "third"]
    assert list(log) == ["first", "second", "third"]
    assert log.content() == "first\nsecond\nthird\n"

    log.clear()
    assert len(log) == 0
    assert log.content() == ""
