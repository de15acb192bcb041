import math
from dataclasses import dataclass, field
from urllib.parse import urlparse

from health_monitor.errors import ConfigurationError

POLL_INTERVAL_SECONDS: float = 2
REQUEST_TIMEOUT_SECONDS: float = 10
REPORT_EVERY_ROUNDS: int = 5        # incremental snapshot every K completed rounds
SLOW_THRESHOLD_MS: float = 1000     # 2xx slower than this is labelled "slow"
CONNECTION_POOL_LIMIT: int = 50

USER_AGENT: str = "HealthMonitor/1.0"

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json,text/html,text/plain",
}

# words searched for (case-insensitive) in every response body
DEFAULT_KEYWORDS: tuple[str, ...] = ()

# body preview: first N non-empty lines, each cut to PREVIEW_CHARS
PREVIEW_LINES: int = 0
PREVIEW_CHARS: int = 100


def is_positive(value: float) -> bool:
    """True for finite numbers above zero; NaN and infinity are rejected."""
    return value > 0 and math.isfinite(value)


@dataclass
class MonitorConfig:
    """
    Everything one monitor run needs, as collected from the command line.

    validate() is the single place where a bad run is rejected; it raises
    ConfigurationError before any request goes out.
    """
    targets: list[str]
    interval: float = POLL_INTERVAL_SECONDS
    max_rounds: int | None = None
    timeout: float = REQUEST_TIMEOUT_SECONDS
    report_every: int = REPORT_EVERY_ROUNDS
    slow_threshold_ms: float = SLOW_THRESHOLD_MS
    verify_tls: bool = True
    headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    keywords: tuple[str, ...] = DEFAULT_KEYWORDS
    preview_lines: int = PREVIEW_LINES

    def validate(self) -> "MonitorConfig":
        if not self.targets:
            raise ConfigurationError("at least one target URL is required")

        for url in self.targets:
            try:
                parsed = urlparse(url)
            except ValueError as exc:
                raise ConfigurationError(f"not an http(s) URL: {url!r}") from exc
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigurationError(f"not an http(s) URL: {url!r}")

        if not is_positive(self.interval):
            raise ConfigurationError(f"interval must be positive, got {self.interval}")
        if not is_positive(self.timeout):
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        if self.max_rounds is not None and self.max_rounds < 1:
            raise ConfigurationError(f"max_rounds must be at least 1, got {self.max_rounds}")
        if self.report_every < 1:
            raise ConfigurationError(f"report_every must be at least 1, got {self.report_every}")
        if not (self.slow_threshold_ms >= 0 and math.isfinite(self.slow_threshold_ms)):
            raise ConfigurationError(
                f"slow threshold must not be negative, got {self.slow_threshold_ms}"
            )
        if self.preview_lines < 0:
            raise ConfigurationError(f"preview_lines must not be negative, got {self.preview_lines}")
        return self
