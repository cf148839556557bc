# domain/exceptions.py
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from domain.timing import PartialTimeline


class HttpstatError(Exception):
    """Base class for every failure that aborts an invocation."""

    phase: str = "request"

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if phase:
            self.phase = phase


class ValidationError(HttpstatError):
    phase = "input"


class DnsFailure(HttpstatError):
    phase = "dns lookup"


class ConnectFailure(HttpstatError):
    phase = "tcp connection"

    def __init__(self, message: str, address: Optional[str] = None, partial: Optional["PartialTimeline"] = None):
        super().__init__(message)
        self.address = address
        self.partial = partial


class TlsFailure(HttpstatError):
    phase = "tls handshake"


class RequestTimeout(HttpstatError):
    phase = "request"


class TooManyRedirects(HttpstatError):
    phase = "redirect"

    def __init__(self, max_redirects: int):
        super().__init__(f"maximum number of redirects ({max_redirects}) followed")
        self.max_redirects = max_redirects


class BodyIOFailure(HttpstatError):
    phase = "content transfer"
