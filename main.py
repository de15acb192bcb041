import argparse
import asyncio
import logging
import platform
import signal
import sys

from health_monitor.config import (
    POLL_INTERVAL_SECONDS,
    PREVIEW_LINES,
    REPORT_EVERY_ROUNDS,
    REQUEST_TIMEOUT_SECONDS,
    SLOW_THRESHOLD_MS,
    MonitorConfig,
)
from health_monitor.errors import ConfigurationError
from health_monitor.orchestrator import HealthMonitor
from health_monitor.reporter import ConsoleReporter

log = logging.getLogger("main")

EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Poll HTTP endpoints on a fixed interval and report their health",
    )
    ap.add_argument("urls", nargs="+", metavar="URL", help="endpoint(s) to probe")
    ap.add_argument("-i", "--interval", type=float, default=POLL_INTERVAL_SECONDS,
                    help="seconds between round starts (default: %(default)s)")
    ap.add_argument("-n", "--max-rounds", type=int, default=None,
                    help="stop after this many rounds (default: run until interrupted)")
    ap.add_argument("-t", "--timeout", type=float, default=REQUEST_TIMEOUT_SECONDS,
                    help="per-probe timeout in seconds (default: %(default)s)")
    ap.add_argument("--report-every", type=int, default=REPORT_EVERY_ROUNDS,
                    help="print running stats every K rounds (default: %(default)s)")
    ap.add_argument("--slow-threshold", type=float, default=SLOW_THRESHOLD_MS,
                    help="label responses slower than this many ms as slow (default: %(default)s)")
    ap.add_argument("-k", "--keyword", action="append", default=[], dest="keywords",
                    help="report when this word appears in a response body (repeatable)")
    ap.add_argument("--preview-lines", type=int, default=PREVIEW_LINES, metavar="N",
                    help="show the first N non-empty body lines of each healthy response")
    ap.add_argument("--insecure", action="store_true",
                    help="do not verify TLS certificates")
    ap.add_argument("--no-color", action="store_true", help="plain output without ANSI colours")
    ap.add_argument("--dump-log", action="store_true",
                    help="print the full event log after the final report")
    ap.add_argument("--log-level", default="INFO",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return ap


def config_from_args(args: argparse.Namespace) -> MonitorConfig:
    return MonitorConfig(
        targets=list(args.urls),
        interval=args.interval,
        max_rounds=args.max_rounds,
        timeout=args.timeout,
        report_every=args.report_every,
        slow_threshold_ms=args.slow_threshold,
        verify_tls=not args.insecure,
        keywords=tuple(args.keywords),
        preview_lines=args.preview_lines,
    )


async def run(monitor: HealthMonitor) -> None:
    loop = asyncio.get_running_loop()

    if platform.system() != "Windows":

        def _shutdown(sig: signal.Signals) -> None:
            log.info("Received %s, finishing the current round...", sig.name)
            monitor.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _shutdown, sig)

        await monitor.run()

    else:
        try:
            await monitor.run()
        except (asyncio.CancelledError, KeyboardInterrupt):
            log.info("Shutting down...")
            monitor.stop()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        monitor = HealthMonitor(
            config_from_args(args),
            reporter=ConsoleReporter(color=not args.no_color),
        )
    except ConfigurationError as exc:
        log.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    asyncio.run(run(monitor))

    if args.dump_log:
        print("\nFull event log:", flush=True)
        print(monitor.event_log.content(), end="", flush=True)
    log.info("Monitor stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
