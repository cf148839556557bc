# application/http_trace_enricher.py
from __future__ import annotations

from abc import ABC, abstractmethod

from application.http_trace import VisitTrace
from application.services.exchange_deps import ExchangeDeps


class HttpTraceEnricher(ABC):
    """
    Turns one finished visit into log records.

    The trace it receives is complete: request line and headers as sent,
    the resolved peer address, response metadata and the phase timeline.
    Failed visits never reach an enricher. Headers still carry secrets, so
    masking is the enricher's job.
    """

    @abstractmethod
    def enrich_and_log(self, trace: VisitTrace, deps: ExchangeDeps) -> None:
        ...
