# HealthMonitor: the top-level orchestrator.
#
# Responsibilities:
#   - Validate the run configuration before anything touches the network
#   - Create one shared aiohttp session and connection pool for all probes
#   - Wire executor -> scheduler -> aggregator -> reporter
#   - Print the banner up front and the final report on the way out
#   - Provide a stop() that signal handlers can call
#
# The monitor owns its aggregator; there is no module-level state, so two
# monitors in one process never see each other's counters.

import logging

import aiohttp

from health_monitor.aggregator import ResultAggregator
from health_monitor.config import CONNECTION_POOL_LIMIT, MonitorConfig
from health_monitor.event_log import EventLog
from health_monitor.http_client import HTTPClient
from health_monitor.models import AggregateStats, Target, utcnow
from health_monitor.probe import ProbeExecutor
from health_monitor.reporter import ConsoleReporter
from health_monitor.scheduler import Scheduler, SchedulerState

log = logging.getLogger(__name__)


class HealthMonitor:

    def __init__(self, config: MonitorConfig, reporter: ConsoleReporter | None = None) -> None:
        self.config = config.validate()
        self.targets = tuple(Target(url) for url in config.targets)
        self.reporter = reporter or ConsoleReporter()
        self.aggregator = ResultAggregator(slow_threshold_ms=config.slow_threshold_ms)
        self._scheduler: Scheduler | None = None
        self._stop_requested = False

    @property
    def event_log(self) -> EventLog:
        return self.aggregator.event_log

    async def run(self, http_client: HTTPClient | None = None) -> AggregateStats:
        """
        Poll until stopped or max_rounds is reached, then print the final
        report. Returns the final stats.

        A ready-made http_client skips session creation.
        """
        if http_client is not None:
            return await self._run_with(http_client)

        connector = aiohttp.TCPConnector(limit=CONNECTION_POOL_LIMIT)
        async with aiohttp.ClientSession(connector=connector) as session:
            return await self._run_with(HTTPClient(session, verify_tls=self.config.verify_tls))

    def stop(self) -> None:
        """Cooperative stop: the current round finishes, no new round starts."""
        self._stop_requested = True
        if self._scheduler is not None:
            self._scheduler.stop()

    async def _run_with(self, http_client: HTTPClient) -> AggregateStats:
        cfg = self.config
        # uptime and elapsed count from here, not from construction
        self.aggregator = ResultAggregator(
            slow_threshold_ms=cfg.slow_threshold_ms,
            event_log=self.aggregator.event_log,
            start_time=utcnow(),
        )
        executor = ProbeExecutor(
            http_client,
            headers=cfg.headers,
            timeout=cfg.timeout,
            keywords=cfg.keywords,
            preview_lines=cfg.preview_lines,
        )
        self._scheduler = Scheduler(
            executor,
            self.aggregator,
            reporter=self.reporter,
            report_every=cfg.report_every,
        )
        if self._stop_requested:
            self._scheduler.stop()

        self.reporter.banner(self.targets, cfg.interval, self.aggregator.snapshot().start_time)
        log.info(
            "HealthMonitor running, watching %d target(s). Press Ctrl+C to stop.",
            len(self.targets),
        )

        try:
            if self._scheduler.state is SchedulerState.IDLE:
                await self._scheduler.start(self.targets, cfg.interval, cfg.max_rounds)
        finally:
            stats = self.aggregator.snapshot()
            self.reporter.final(stats)

        return stats
