# domain/timing.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Scheme(str, Enum):
    PLAINTEXT = "http"
    TLS = "https"

    @classmethod
    def from_url(cls, url: str) -> "Scheme":
        return cls.TLS if url.lower().startswith("https://") else cls.PLAINTEXT


@dataclass
class TraceTimestamps:
    """
    Instants (monotonic seconds) observed during one network call.
    None means the event did not happen on this path.
    """

    dns_start: Optional[float] = None
    dns_done: Optional[float] = None
    connect_start: Optional[float] = None
    connect_done: Optional[float] = None
    got_connection: Optional[float] = None
    first_response_byte: Optional[float] = None
    tls_handshake_start: Optional[float] = None
    tls_handshake_done: Optional[float] = None


@dataclass(frozen=True)
class PhaseTimeline:
    scheme: Scheme

    dns_lookup: float
    tcp_connection: float
    tls_handshake: Optional[float]
    server_processing: float
    content_transfer: float

    namelookup: float
    connect: float
    pretransfer: float
    starttransfer: float
    total: float

    def phases(self) -> List[Tuple[str, float]]:
        out = [("dns_lookup", self.dns_lookup), ("tcp_connection", self.tcp_connection)]
        if self.tls_handshake is not None:
            out.append(("tls_handshake", self.tls_handshake))
        out.append(("server_processing", self.server_processing))
        out.append(("content_transfer", self.content_transfer))
        return out

    def markers(self) -> List[Tuple[str, float]]:
        return [
            ("namelookup", self.namelookup),
            ("connect", self.connect),
            ("pretransfer", self.pretransfer),
            ("starttransfer", self.starttransfer),
            ("total", self.total),
        ]

    def as_milliseconds(self) -> Dict[str, int]:
        return {name: int(value * 1000) for name, value in self.phases() + self.markers()}


@dataclass(frozen=True)
class PartialTimeline:
    """DNS and attempted TCP durations of a visit whose connect failed."""

    dns_lookup: float
    tcp_connection: float
