# Thin GET wrapper over a shared aiohttp.ClientSession.
#
# The rest of the package only sees HTTPResponse values or TransportError.
# Every aiohttp / asyncio failure is mapped to an ErrorKind here so the probe
# executor never has to know which transport library is underneath.
#
# Non-2xx responses are NOT errors at this layer: status classification
# belongs to the probe executor.

import asyncio
import logging
import socket
import time
from dataclasses import dataclass, field

import aiohttp

from health_monitor.config import REQUEST_TIMEOUT_SECONDS
from health_monitor.errors import ErrorKind, TransportError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HTTPResponse:
    status: int
    body: bytes
    elapsed_ms: float
    headers: dict[str, str] = field(default_factory=dict)


class HTTPClient:
    """
    Wraps an aiohttp.ClientSession.

    One instance is shared by every probe of a monitor run (via the shared
    session and its connection pool).
    """

    def __init__(self, session: aiohttp.ClientSession, verify_tls: bool = True) -> None:
        self._session = session
        self._ssl = None if verify_tls else False

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> HTTPResponse:
        """
        Perform one GET and read the whole body.

        Raises:
            TransportError  on timeout, DNS, connection or payload failures
        """
        start = time.perf_counter()
        try:
            async with self._session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
                ssl=self._ssl,
            ) as resp:
                body = await resp.read()
                return HTTPResponse(
                    status=resp.status,
                    body=body,
                    elapsed_ms=(time.perf_counter() - start) * 1000,
                    headers=dict(resp.headers),
                )

        # ServerTimeoutError is both a ClientError and a TimeoutError, so
        # timeouts are checked first.
        except asyncio.TimeoutError as exc:
            log.warning("Timeout fetching %s after %ss", url, timeout)
            raise TransportError(ErrorKind.TIMEOUT, f"timed out after {timeout}s") from exc
        except aiohttp.ClientPayloadError as exc:
            log.warning("Could not read body from %s: %s", url, exc)
            raise TransportError(ErrorKind.DECODE, str(exc) or "payload error") from exc
        except aiohttp.ClientConnectorError as exc:
            dns = isinstance(exc, aiohttp.ClientConnectorDNSError) or isinstance(exc.os_error, socket.gaierror)
            kind = ErrorKind.DNS if dns else ErrorKind.CONNECTION
            log.warning("Cannot connect to %s: %s", url, exc)
            raise TransportError(kind, str(exc)) from exc
        except aiohttp.ClientError as exc:
            log.warning("HTTP client error fetching %s: %s", url, exc)
            raise TransportError(ErrorKind.CONNECTION, str(exc) or type(exc).__name__) from exc
