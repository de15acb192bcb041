# Probe executor: one GET against one target, turned into a ProbeResult.
#
# Failures are data here. Anything the transport can throw arrives as a
# TransportError and leaves as a Failure; a 4xx/5xx response is a Failure
# with the status attached. probe() itself never raises for network reasons.

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime

from health_monitor.config import (
    DEFAULT_HEADERS,
    PREVIEW_CHARS,
    REQUEST_TIMEOUT_SECONDS,
    SLOW_THRESHOLD_MS,
)
from health_monitor.errors import ErrorKind, TransportError
from health_monitor.http_client import HTTPClient, HTTPResponse
from health_monitor.models import Failure, ProbeResult, Success, Target, utcnow

log = logging.getLogger(__name__)

SERVER_ERROR = "server error"
CLIENT_ERROR = "client error"
SLOW         = "slow"


def classify(result: ProbeResult, slow_threshold_ms: float = SLOW_THRESHOLD_MS) -> str | None:
    """
    Advisory health label for one result. Never changes control flow.

    5xx -> "server error", 4xx -> "client error", any other response slower
    than the threshold -> "slow". Transport failures get no label; their
    error kind already says what went wrong.
    """
    status = result.status_code
    if status is not None and status >= 500:
        return SERVER_ERROR
    if status is not None and status >= 400:
        return CLIENT_ERROR
    if result.ok and result.latency_ms > slow_threshold_ms:
        return SLOW
    return None


def body_size(response: HTTPResponse) -> int:
    """Content-Length when the server sent a sane one, else the bytes read."""
    for name, value in response.headers.items():
        if name.lower() == "content-length" and value.strip().isdigit():
            return int(value)
    return len(response.body)


def find_keywords(body: bytes, keywords: tuple[str, ...]) -> tuple[str, ...]:
    if not keywords or not body:
        return ()
    text = body.decode("utf-8", errors="replace").lower()
    return tuple(k for k in keywords if k.lower() in text)


def body_preview(body: bytes, max_lines: int, max_chars: int = PREVIEW_CHARS) -> tuple[str, ...]:
    """First max_lines non-empty lines of the body, each cut to max_chars with "..."."""
    if max_lines <= 0 or not body:
        return ()
    preview: list[str] = []
    for line in body.decode("utf-8", errors="replace").splitlines():
        line = line.strip()
        if not line:
            continue
        if len(line) > max_chars:
            line = line[:max_chars] + "..."
        preview.append(line)
        if len(preview) >= max_lines:
            break
    return tuple(preview)


class ProbeExecutor:

    def __init__(
        self,
        http_client: HTTPClient,
        headers: dict[str, str] | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        keywords: tuple[str, ...] = (),
        preview_lines: int = 0,
        clock: Callable[[], float] = time.perf_counter,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._http = http_client
        self._headers = dict(DEFAULT_HEADERS if headers is None else headers)
        self._timeout = timeout
        self._keywords = keywords
        self._preview_lines = preview_lines
        self._clock = clock
        self._now = now

    async def probe(self, target: Target, timeout: float | None = None) -> ProbeResult:
        """
        Issue one GET against target and classify the outcome.

        The per-probe timeout is enforced here as well as in the transport,
        so a stalled client can never hold a round open past it.
        """
        timeout = self._timeout if timeout is None else timeout
        timestamp = self._now()
        start = self._clock()

        try:
            response = await asyncio.wait_for(
                self._http.get(target.url, headers=self._headers, timeout=timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            outcome = Failure(ErrorKind.TIMEOUT, self._elapsed_ms(start), message=f"timed out after {timeout}s")
        except TransportError as exc:
            outcome = Failure(exc.kind, self._elapsed_ms(start), message=exc.message)
        else:
            # the transport timed the exchange itself; trust its figure
            outcome = self._outcome(response, round(response.elapsed_ms, 2))

        if isinstance(outcome, Failure):
            log.debug("Probe of %s failed: %s %s", target, outcome.error_kind.value, outcome.message)

        return ProbeResult(target=target, timestamp=timestamp, outcome=outcome)

    def _outcome(self, response: HTTPResponse, latency_ms: float) -> Success | Failure:
        if response.status >= 500:
            return Failure(ErrorKind.SERVER_ERROR, latency_ms, status_code=response.status,
                           message=f"HTTP {response.status}")
        if response.status >= 400:
            return Failure(ErrorKind.CLIENT_ERROR, latency_ms, status_code=response.status,
                           message=f"HTTP {response.status}")
        return Success(
            status_code=response.status,
            latency_ms=latency_ms,
            body_size=body_size(response),
            matched_keywords=find_keywords(response.body, self._keywords),
            body_preview=body_preview(response.body, self._preview_lines),
        )

    def _elapsed_ms(self, start: float) -> float:
        return round((self._clock() - start) * 1000, 2)
