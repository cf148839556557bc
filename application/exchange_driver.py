# application/exchange_driver.py
from __future__ import annotations

import time
from typing import Callable, Iterable, Iterator, Optional

from application.http_trace import HttpResponseMeta, VisitTrace
from application.http_trace_emitter import HttpTraceEmitter
from application.outcome import ExchangeOutcome, TlsVersion, VisitResult
from application.ports.http_client import HttpClientPort
from application.services.exchange_deps import ExchangeDeps
from application.services.header_order import group_header_pairs
from application.trace_collector import TraceCollector
from application.transport_policy import TransportPolicy
from domain.exceptions import ConnectFailure, HttpstatError, RequestTimeout
from domain.exchange import ExchangeRequest
from domain.timeline import compute_timeline
from domain.timing import Scheme


class ExchangeDriver:
    """
    Performs exactly one timed round trip: request, body consumption and
    phase decomposition. Never follows redirects and never retries.
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        policy: TransportPolicy,
        deps: ExchangeDeps,
        trace: Optional[HttpTraceEmitter] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self._http = http_client
        self._policy = policy
        self._deps = deps
        self._trace = trace
        self._clock = clock

    def visit(self, request: ExchangeRequest, hop: int = 0) -> VisitResult:
        deps = self._deps.with_logger(self._deps.logger.bind(hop=hop))
        collector = TraceCollector(deps.logger, deps.reporter, clock=self._clock)
        deadline = time.monotonic() + self._policy.timeout_sec

        deps.logger.info("visit.start", method=request.method, url=request.url)

        try:
            response = self._http.request(request, collector, deadline=deadline)
        except ConnectFailure as e:
            raise ConnectFailure(
                e.message,
                address=collector.address or e.address,
                partial=collector.partial or e.partial,
            ) from e
        except HttpstatError as e:
            # after the deadline every failure is the watchdog or a clamped socket timeout
            if not _expired(deadline):
                raise
            raise self._timeout(collector.pending_phase()) from e

        # headers may complete after the deadline even when no body follows
        if _expired(deadline):
            response.close()
            raise self._timeout("server processing")

        try:
            body_message = deps.body_sink.consume(request, response, _bounded(response.chunks, deadline))
        except HttpstatError as e:
            if not _expired(deadline):
                raise
            raise self._timeout("content transfer") from e
        finally:
            response.close()
        if _expired(deadline):
            raise self._timeout("content transfer")
        t_end = self._clock()

        scheme = Scheme.from_url(request.url)
        tls_version = TlsVersion.from_protocol(collector.tls_protocol) if scheme is Scheme.TLS else TlsVersion.NONE

        outcome = ExchangeOutcome(
            url=response.url,
            http_version=response.http_version,
            status=response.status,
            reason=response.reason,
            headers=group_header_pairs(response.headers),
            tls_version=tls_version,
            body_message=body_message,
        )
        timeline = compute_timeline(collector.timestamps, scheme, t_end)

        if self._trace is not None:
            self._trace.emit(
                VisitTrace(
                    method=request.method,
                    url=request.url,
                    hop=hop,
                    request_headers=request.headers,
                    host_override=request.host_override,
                    address=collector.address,
                    response=HttpResponseMeta(
                        status=outcome.status,
                        url=outcome.url,
                        http_version=outcome.http_version,
                        headers=outcome.headers,
                        tls_version=tls_version.value,
                        location=outcome.header("Location"),
                        body_message=body_message,
                    ),
                    timeline=timeline,
                ),
                deps,
            )

        return VisitResult(request=request, outcome=outcome, timeline=timeline)

    def _timeout(self, phase: str) -> RequestTimeout:
        return RequestTimeout(f"exchange exceeded the {self._policy.timeout_sec:g}s timeout", phase=phase)


def _expired(deadline: float) -> bool:
    return time.monotonic() >= deadline


def _bounded(chunks: Iterable[bytes], deadline: float) -> Iterator[bytes]:
    for chunk in chunks:
        if _expired(deadline):
            raise RequestTimeout("timed out reading response body", phase="content transfer")
        yield chunk
