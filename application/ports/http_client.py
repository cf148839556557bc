# application/ports/http_client.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from application.ports.trace_hooks import TraceHooks
from domain.exchange import ExchangeRequest


def _noop() -> None:
    return None


@dataclass(frozen=True)
class HttpResponse:
    status: int
    reason: str
    url: str
    http_version: str
    headers: List[Tuple[str, str]]  # multi-value: one pair per field line
    chunks: Iterable[bytes] = ()
    close: Callable[[], None] = field(default=_noop)


class HttpClientPort(ABC):
    @abstractmethod
    def request(self, request: ExchangeRequest, hooks: TraceHooks, deadline: Optional[float] = None) -> HttpResponse:
        """
        Perform one exchange without following redirects, invoking hooks at
        each connection lifecycle point. The body is left unread.

        ``deadline`` (``time.monotonic()`` seconds) bounds every socket
        operation of the exchange, body reads included.
        """
        ...
