# application/http_trace.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from domain.exchange import HeaderMap
from domain.timing import PhaseTimeline


@dataclass(frozen=True)
class HttpResponseMeta:
    status: int
    url: str
    http_version: str
    headers: List[Tuple[str, List[str]]]
    tls_version: str
    location: Optional[str] = None
    body_message: str = ""


@dataclass(frozen=True)
class VisitTrace:
    method: str
    url: str
    hop: int = 0
    request_headers: HeaderMap = field(default_factory=HeaderMap)
    host_override: Optional[str] = None
    address: Optional[str] = None
    response: Optional[HttpResponseMeta] = None
    timeline: Optional[PhaseTimeline] = None
