# application/trace_collector.py
from __future__ import annotations

import time
from typing import Callable, List, Optional

from application.ports.logger import LoggerPort
from application.ports.trace_hooks import TraceHooks
from application.ports.visit_reporter import VisitReporterPort
from domain.timeline import partial_timeline
from domain.timing import PartialTimeline, TraceTimestamps


class TraceCollector(TraceHooks):
    """
    Records one instant per connection lifecycle event of a single visit.

    Bound to exactly one network call; the timestamps are read only after
    that call has returned.
    """

    def __init__(
        self,
        logger: LoggerPort,
        reporter: Optional[VisitReporterPort] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self._logger = logger
        self._reporter = reporter
        self._clock = clock

        self.timestamps = TraceTimestamps()
        self.tls_protocol: Optional[str] = None
        self.address: Optional[str] = None
        self.dns_error: Optional[BaseException] = None
        self.connect_error: Optional[BaseException] = None
        self.tls_error: Optional[BaseException] = None
        self.partial: Optional[PartialTimeline] = None

    def pending_phase(self) -> str:
        """Phase in progress, judged by the milestones recorded so far."""
        ts = self.timestamps
        if ts.dns_start is not None and (ts.dns_done is None or self.dns_error is not None):
            return "dns lookup"
        if ts.connect_done is None:
            return "tcp connection"
        if ts.tls_handshake_start is not None and (ts.tls_handshake_done is None or self.tls_error is not None):
            return "tls handshake"
        return "server processing"

    def on_dns_start(self, host: str) -> None:
        self.timestamps.dns_start = self._clock()
        self._logger.debug("trace.dns_start", host=host)

    def on_dns_done(self, addresses: List[str], error: Optional[BaseException] = None) -> None:
        self.timestamps.dns_done = self._clock()
        self.dns_error = error
        self._logger.debug("trace.dns_done", addresses=addresses, error=str(error) if error else None)

    def on_connect_start(self, address: str) -> None:
        # literal address: no lookup happened, connect start closes the dns phase
        if self.timestamps.dns_done is None:
            self.timestamps.connect_start = self._clock()
        self._logger.debug("trace.connect_start", address=address)

    def on_connect_done(self, address: str, error: Optional[BaseException] = None) -> None:
        now = self._clock()
        self.address = address
        if error is not None:
            self.connect_error = error
            self.partial = partial_timeline(self.timestamps, now)
            self._logger.error("connect.failed", address=address, error=str(error))
            if self._reporter is not None:
                self._reporter.connect_failed(address, self.partial)
            return

        self.timestamps.connect_done = now
        self._logger.debug("trace.connect_done", address=address)
        if self._reporter is not None:
            self._reporter.connected(address)

    def on_tls_handshake_start(self) -> None:
        self.timestamps.tls_handshake_start = self._clock()

    def on_tls_handshake_done(self, version: Optional[str], error: Optional[BaseException] = None) -> None:
        self.timestamps.tls_handshake_done = self._clock()
        self.tls_protocol = version
        if error is not None:
            self.tls_error = error
            self._logger.error("tls.failed", address=self.address, error=str(error))
        else:
            self._logger.debug("trace.tls_done", version=version)

    def on_got_connection(self) -> None:
        self.timestamps.got_connection = self._clock()

    def on_first_response_byte(self) -> None:
        self.timestamps.first_response_byte = self._clock()
