# application/services/exchange_deps.py
from __future__ import annotations

from dataclasses import dataclass, replace

from application.ports.body_sink import BodySinkPort
from application.ports.logger import LoggerPort
from application.ports.visit_reporter import VisitReporterPort


@dataclass(frozen=True)
class ExchangeDeps:
    logger: LoggerPort
    body_sink: BodySinkPort
    reporter: VisitReporterPort

    def with_logger(self, logger: LoggerPort) -> "ExchangeDeps":
        return replace(self, logger=logger)
