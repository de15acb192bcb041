# Exception taxonomy for the monitor.
#
# Only ConfigurationError and SchedulerStateError ever reach the user.
# TransportError is raised by HTTPClient and always caught by the probe
# executor, which turns it into a Failure result.

from enum import Enum


class ErrorKind(str, Enum):
    TIMEOUT      = "timeout"
    DNS          = "dns"
    CONNECTION   = "connection"
    DECODE       = "decode"
    CLIENT_ERROR = "client error"   # HTTP 4xx
    SERVER_ERROR = "server error"   # HTTP 5xx


class MonitorError(Exception):
    """Base class for everything this package raises on purpose."""


class ConfigurationError(MonitorError):
    """Invalid run configuration. Fatal at startup."""


class SchedulerStateError(MonitorError):
    """A scheduler was started twice, or started after being stopped."""


class AggregationError(MonitorError):
    """A malformed RoundSummary reached the aggregator."""


class TransportError(MonitorError):
    """Connection, DNS, timeout or body decode failure for one request."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
