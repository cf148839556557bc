# application/ports/body_sink.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from application.ports.http_client import HttpResponse
from domain.exchange import ExchangeRequest


class BodySinkPort(ABC):
    @abstractmethod
    def consume(self, request: ExchangeRequest, response: HttpResponse, chunks: Iterable[bytes]) -> str:
        """Read the body to its destination and return a disposition message."""
        ...
