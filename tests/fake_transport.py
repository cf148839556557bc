# tests/fake_transport.py
"""
Scripted HTTP client for driver and loop tests.

Fires the trace hooks in the order a real connection would, advancing a fake
clock by ``step`` seconds between milestones.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlsplit

from application.ports.http_client import HttpClientPort, HttpResponse
from application.ports.trace_hooks import TraceHooks
from domain.exceptions import ConnectFailure
from domain.exchange import ExchangeRequest


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class ScriptedResponse:
    status: int = 200
    reason: str = "OK"
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    address: str = "93.184.216.34:443"
    tls_version: str = "TLSv1.3"
    literal_ip: bool = False
    connect_error: Optional[OSError] = None


class FakeHttpClient(HttpClientPort):
    """Replays scripted responses in order; the last one repeats."""

    def __init__(self, responses: List[ScriptedResponse], clock: Optional[FakeClock] = None, step: float = 0.01):
        self.responses = list(responses)
        self.clock = clock or FakeClock()
        self.step = step
        self.requests: List[ExchangeRequest] = []
        self.deadlines: List[Optional[float]] = []
        self.closed = 0

    def _next(self) -> ScriptedResponse:
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def _chunks(self, body: bytes) -> Iterator[bytes]:
        for i in range(0, len(body), 4):
            self.clock.advance(self.step)
            yield body[i:i + 4]

    def _close(self) -> None:
        self.closed += 1

    def request(self, request: ExchangeRequest, hooks: TraceHooks, deadline: Optional[float] = None) -> HttpResponse:
        self.requests.append(request)
        self.deadlines.append(deadline)
        scripted = self._next()
        host = urlsplit(request.url).hostname or ""

        if not scripted.literal_ip:
            hooks.on_dns_start(host)
            self.clock.advance(self.step)
            hooks.on_dns_done([scripted.address])

        hooks.on_connect_start(scripted.address)
        self.clock.advance(self.step)
        if scripted.connect_error is not None:
            hooks.on_connect_done(scripted.address, scripted.connect_error)
            raise ConnectFailure(f"unable to connect to host {host}: {scripted.connect_error}")
        hooks.on_connect_done(scripted.address)

        if request.is_tls:
            hooks.on_tls_handshake_start()
            self.clock.advance(self.step)
            hooks.on_tls_handshake_done(scripted.tls_version)

        hooks.on_got_connection()
        self.clock.advance(self.step)
        hooks.on_first_response_byte()

        return HttpResponse(
            status=scripted.status,
            reason=scripted.reason,
            url=request.url,
            http_version="HTTP/1.1",
            headers=list(scripted.headers),
            chunks=self._chunks(scripted.body),
            close=self._close,
        )


class MockLogger:
    def __init__(self, calls: Optional[List[Dict[str, Any]]] = None, bound: Optional[Dict[str, Any]] = None) -> None:
        self.calls: List[Dict[str, Any]] = calls if calls is not None else []
        self.bound = bound or {}

    def _record(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        self.calls.append({"event": event, "level": level, **self.bound, **fields})

    def debug(self, event: str, **fields: Any) -> None:
        self._record("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._record("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._record("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._record("error", event, fields)

    def bind(self, **fields: Any) -> "MockLogger":
        return MockLogger(self.calls, {**self.bound, **fields})

    def events(self) -> List[str]:
        return [c["event"] for c in self.calls]


class RecordingReporter:
    def __init__(self) -> None:
        self.connected_to: List[str] = []
        self.failed: List[Tuple[str, Any]] = []
        self.results: List[Any] = []

    def connected(self, address: str) -> None:
        self.connected_to.append(address)

    def connect_failed(self, address: str, partial: Any) -> None:
        self.failed.append((address, partial))

    def visit_completed(self, result: Any) -> None:
        self.results.append(result)


class RecordingBodySink:
    def __init__(self, message: str = "Body discarded") -> None:
        self.message = message
        self.consumed: List[bytes] = []

    def consume(self, request: ExchangeRequest, response: HttpResponse, chunks) -> str:
        self.consumed.append(b"".join(chunks))
        return self.message
