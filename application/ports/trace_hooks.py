# application/ports/trace_hooks.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional


class TraceHooks(ABC):
    """
    Connection lifecycle callbacks invoked synchronously by a transport
    during a single network call.
    """

    @abstractmethod
    def on_dns_start(self, host: str) -> None: ...

    @abstractmethod
    def on_dns_done(self, addresses: List[str], error: Optional[BaseException] = None) -> None: ...

    @abstractmethod
    def on_connect_start(self, address: str) -> None: ...

    @abstractmethod
    def on_connect_done(self, address: str, error: Optional[BaseException] = None) -> None: ...

    @abstractmethod
    def on_tls_handshake_start(self) -> None: ...

    @abstractmethod
    def on_tls_handshake_done(self, version: Optional[str], error: Optional[BaseException] = None) -> None: ...

    @abstractmethod
    def on_got_connection(self) -> None: ...

    @abstractmethod
    def on_first_response_byte(self) -> None: ...
