# application/http_trace_emitter.py
from __future__ import annotations

from typing import Iterable, List

from application.http_trace import VisitTrace
from application.http_trace_enricher import HttpTraceEnricher
from application.services.exchange_deps import ExchangeDeps


class HttpTraceEmitter:
    """Hands each completed visit to every enricher, in registration order."""

    def __init__(self, enrichers: Iterable[HttpTraceEnricher]):
        self._enrichers: List[HttpTraceEnricher] = list(enrichers)

    def emit(self, trace: VisitTrace, deps: ExchangeDeps) -> None:
        for enricher in self._enrichers:
            enricher.enrich_and_log(trace, deps)
