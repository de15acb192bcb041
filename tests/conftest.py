from __future__ import annotations

import asyncio
import pytest

from health_monitor.errors import TransportError
from health_monitor.http_client import HTTPResponse


class ScriptedHTTPClient:
    """
    Stands in for HTTPClient. Each URL maps to a reply:
        (status, elapsed_ms)                  -> response after no delay
        (status, elapsed_ms, delay_s)         -> response after asyncio.sleep(delay_s)
        (status, elapsed_ms, delay_s, body)   -> same, with a body
        TransportError(...)                   -> raised
    """

    def __init__(self, replies: dict) -> None:
        self.replies = replies
        self.calls: list[str] = []
        self.completed: list[str] = []
        self.on_call = None

    async def get(self, url, headers=None, timeout=10):
        self.calls.append(url)
        if self.on_call is not None:
            self.on_call(url)
        reply = self.replies[url]
        if isinstance(reply, TransportError):
            self.completed.append(url)
            raise reply
        status, elapsed_ms, *rest = reply
        delay = rest[0] if rest else 0
        body = rest[1] if len(rest) > 1 else b"ok"
        if delay:
            await asyncio.sleep(delay)
        self.completed.append(url)
        return HTTPResponse(status=status, body=body, elapsed_ms=elapsed_ms)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def scripted_client():
    return ScriptedHTTPClient


@pytest.fixture
def fake_clock():
    return FakeClock()

