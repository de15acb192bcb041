from __future__ import annotations

from datetime import datetime, timedelta, timezone

from health_monitor.errors import ErrorKind
from health_monitor.models import AggregateStats, Failure, ProbeResult, Success, Target
from health_monitor.reporter import (
    ConsoleReporter,
    format_result_line,
    render_banner,
    render_final,
    render_incremental,
)

T0 = datetime(2026, 2, 21, 12, 39, 8, tzinfo=timezone.utc)


def test_success_line_carries_timestamp_target_status_latency_size():
    result = ProbeResult(Target("https://a.test"), T0, Success(200, 50.0, 1256, ("online",)))
    line = format_result_line(result)

    assert line == (
        "[2026-02-21T12:39:08Z] OK   https://a.test | status=200 | latency=50.00ms"
        " | size=1256B | keywords=online"
    )


def test_failure_lines():
    http_fail = ProbeResult(Target("https://b.test"), T0, Failure(ErrorKind.SERVER_ERROR, 10.0, 500, "HTTP 500"))
    assert format_result_line(http_fail) == (
        "[2026-02-21T12:39:08Z] FAIL https://b.test | status=500 | latency=10.00ms"
        " | error=server error | ! server error"
    )

    net_fail = ProbeResult(Target("https://c.test"), T0, Failure(ErrorKind.TIMEOUT, 10000.0, message="timed out after 10s"))
    line = format_result_line(net_fail)
    assert "status=N/A" in line
    assert "error=timeout: timed out after 10s" in line
    assert "!" not in line


def test_slow_label_uses_threshold():
    result = ProbeResult(Target("https://a.test"), T0, Success(200, 1200.0, 10))
    assert format_result_line(result, slow_threshold_ms=1000).endswith("| ! slow")
    assert "slow" not in format_result_line(result, slow_threshold_ms=5000)


def test_incremental_report():
    stats = AggregateStats(start_time=T0, total=10, succeeded=9, failed=1, rounds=5, latency_sum_ms=500.0)
    text = render_incremental(stats, now=T0 + timedelta(seconds=10))

    assert "after 5 round(s)" in text
    assert "total requests: 10" in text
    assert "succeeded:      9" in text
    assert "failed:         1" in text
    assert "success rate:   90.00%" in text
    assert "mean latency:   50.00ms" in text
    assert "uptime:         10s" in text


def test_final_report_with_nothing_recorded():
    stats = AggregateStats(start_time=T0)
    text = render_final(stats, now=T0 + timedelta(seconds=3))

    assert "total requests: 0" in text
    assert "success rate:   0.00%" in text
    assert "min N/A" in text
    assert "elapsed:        3s" in text
    assert "finished:       2026-02-21 12:39:11 UTC" in text


def test_banner_lists_targets_and_interval():
    text = render_banner([Target("https://a.test"), Target("https://b.test")], 2, T0)
    assert "https://a.test, https://b.test" in text
    assert "every 2s" in text
    assert "2026-02-21 12:39:08 UTC" in text


def test_console_reporter_colours_only_when_asked(capsys):
    line = "[2026-02-21T12:39:08Z] FAIL https://b.test | status=500 | latency=10.00ms | ! server error"

    ConsoleReporter(color=False).round_lines([line])
    assert capsys.readouterr().out == line + "\n"

    ConsoleReporter(color=True).round_lines([line])
    out = capsys.readouterr().out
    assert "\033[31mFAIL\033[0m" in out
    assert "\033[33m! server error\033[0m" in out


def test_body_preview_is_rendered_after_size():
    result = ProbeResult(Target("https://a.test"), T0, Success(200, 5.0, 11, body_preview=("hello", "world")))
    assert format_result_line(result).endswith("| size=11B | body=hello / world")
