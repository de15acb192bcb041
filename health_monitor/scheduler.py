# Scheduler: drives probe rounds on a fixed interval.
#
# State machine:
#     IDLE --start()--> RUNNING --stop() / max_rounds--> STOPPING --> STOPPED
#
# Concurrency model:
#   Rounds run strictly one after another; round N+1 never starts before
#   round N has been ingested. Inside a round every target gets exactly one
#   in-flight probe and all of them run concurrently on the event loop.
#   asyncio.gather returns results in argument order, which is what keeps
#   EventLog lines in target order whatever order the probes finish in.
#
# Timing:
#   The interval is measured from tick start to tick start. After a round
#   the scheduler sleeps max(0, interval - elapsed), so a slow round only
#   delays itself and never pushes later rounds further out.

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum

from health_monitor.aggregator import ResultAggregator
from health_monitor.config import REPORT_EVERY_ROUNDS, is_positive
from health_monitor.errors import ConfigurationError, SchedulerStateError
from health_monitor.models import ProbeResult, RoundSummary, Target, utcnow
from health_monitor.probe import ProbeExecutor
from health_monitor.reporter import ConsoleReporter

log = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE     = "idle"
    RUNNING  = "running"
    STOPPING = "stopping"
    STOPPED  = "stopped"


class Scheduler:

    def __init__(
        self,
        executor: ProbeExecutor,
        aggregator: ResultAggregator,
        reporter: ConsoleReporter | None = None,
        report_every: int = REPORT_EVERY_ROUNDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._executor = executor
        self._aggregator = aggregator
        self._reporter = reporter
        self._report_every = report_every
        self._clock = clock
        self._sleep = sleep or self._wait_for_stop
        self._stop_requested = asyncio.Event()
        self._state = SchedulerState.IDLE
        self.rounds_completed = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    async def start(
        self,
        targets: Sequence[Target | str],
        interval: float,
        max_rounds: int | None = None,
    ) -> int:
        """
        Run rounds until stop() is called or max_rounds is reached.

        Returns the number of completed rounds.

        Raises:
            ConfigurationError   on an empty target set, a non-positive
                                 interval or max_rounds below 1
            SchedulerStateError  if this scheduler already ran
        """
        if self._state is not SchedulerState.IDLE:
            raise SchedulerStateError(f"cannot start a scheduler that is {self._state.value}")

        targets = tuple(t if isinstance(t, Target) else Target(t) for t in targets)
        if not targets:
            raise ConfigurationError("at least one target is required")
        if not is_positive(interval):
            raise ConfigurationError(f"interval must be positive, got {interval}")
        if max_rounds is not None and max_rounds < 1:
            raise ConfigurationError(f"max_rounds must be at least 1, got {max_rounds}")

        self._state = SchedulerState.RUNNING
        log.info(
            "Scheduler running: %d target(s) every %gs%s",
            len(targets), interval,
            f", at most {max_rounds} round(s)" if max_rounds else "",
        )

        try:
            while self._state is SchedulerState.RUNNING:
                tick_start = self._clock()
                await self._tick(targets)

                if max_rounds is not None and self.rounds_completed >= max_rounds:
                    log.info("Reached %d round(s), stopping.", max_rounds)
                    self._begin_stopping()
                if self._state is not SchedulerState.RUNNING:
                    break

                elapsed = self._clock() - tick_start
                delay = max(0.0, interval - elapsed)
                log.debug("Round %d took %.3fs, sleeping %.3fs", self.rounds_completed, elapsed, delay)
                await self._sleep(delay)
        finally:
            self._state = SchedulerState.STOPPED
            log.info("Scheduler stopped after %d round(s).", self.rounds_completed)

        return self.rounds_completed

    def stop(self) -> None:
        """
        Ask the loop to finish. Cooperative: an in-flight round completes
        and is ingested, then no further round starts.
        """
        if self._state is SchedulerState.IDLE:
            self._state = SchedulerState.STOPPED
            return
        if self._state is SchedulerState.RUNNING:
            self._begin_stopping()

    def _begin_stopping(self) -> None:
        self._state = SchedulerState.STOPPING
        self._stop_requested.set()

    async def _tick(self, targets: tuple[Target, ...]) -> None:
        round_number = self.rounds_completed + 1
        started_at = utcnow()

        results = await self._run_round(targets)

        summary = RoundSummary(round_number=round_number, started_at=started_at, results=tuple(results))
        lines = self._aggregator.ingest(summary)
        self.rounds_completed = round_number

        if self._reporter is not None:
            self._reporter.round_lines(lines)
            if round_number % self._report_every == 0:
                self._reporter.incremental(self._aggregator.snapshot())

    async def _run_round(self, targets: tuple[Target, ...]) -> list[ProbeResult]:
        if len(targets) == 1:
            return [await self._executor.probe(targets[0])]
        return list(await asyncio.gather(*(self._executor.probe(t) for t in targets)))

    async def _wait_for_stop(self, seconds: float) -> None:
        # returns early when stop() is called so shutdown does not wait out the interval
        try:
            await asyncio.wait_for(self._stop_requested.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
