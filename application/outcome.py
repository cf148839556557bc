# application/outcome.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from domain.exchange import ExchangeRequest
from domain.timing import PhaseTimeline


class TlsVersion(str, Enum):
    NONE = "none"
    TLS12 = "1.2"
    TLS13 = "1.3"
    UNKNOWN = "unknown"

    @classmethod
    def from_protocol(cls, protocol: Optional[str]) -> "TlsVersion":
        if not protocol:
            return cls.NONE
        if protocol == "TLSv1.2":
            return cls.TLS12
        if protocol == "TLSv1.3":
            return cls.TLS13
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        if self is TlsVersion.TLS12:
            return "TLSv1.2"
        if self is TlsVersion.TLS13:
            return "TLSv1.3"
        return "plaintext"


@dataclass(frozen=True)
class ExchangeOutcome:
    url: str
    http_version: str
    status: int
    reason: str
    headers: List[Tuple[str, List[str]]]  # display order
    tls_version: TlsVersion = TlsVersion.NONE
    body_message: str = ""

    @property
    def status_line(self) -> str:
        return f"{self.http_version} {self.status} {self.reason}".rstrip()

    def header(self, name: str) -> Optional[str]:
        for k, values in self.headers:
            if k.lower() == name.lower() and values:
                return values[0]
        return None


@dataclass(frozen=True)
class VisitResult:
    request: ExchangeRequest
    outcome: ExchangeOutcome
    timeline: PhaseTimeline
