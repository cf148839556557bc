# application/ports/visit_reporter.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from domain.timing import PartialTimeline

if TYPE_CHECKING:
    from application.outcome import VisitResult


class VisitReporterPort(ABC):
    @abstractmethod
    def connected(self, address: str) -> None: ...

    @abstractmethod
    def connect_failed(self, address: str, partial: PartialTimeline) -> None: ...

    @abstractmethod
    def visit_completed(self, result: "VisitResult") -> None: ...
