# application/transport_policy.py
from __future__ import annotations

import socket
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.redirect import MAX_REDIRECTS

DEFAULT_TIMEOUT_SEC = 10


class TransportPolicy(BaseModel):
    """Transport settings built once per invocation and shared read-only by every visit."""

    model_config = ConfigDict(frozen=True)

    insecure: bool = Field(default=False, description="Skip TLS certificate verification")
    client_cert: Optional[Path] = Field(default=None, description="PEM file with client key and certificate")
    ip_family: Literal["any", "ipv4", "ipv6"] = Field(default="any", description="Address family used for DNS")
    timeout_sec: float = Field(default=DEFAULT_TIMEOUT_SEC, gt=0, description="Bound on the whole exchange")
    follow_redirects: bool = Field(default=False, description="Follow 30x responses")
    max_redirects: int = Field(default=MAX_REDIRECTS, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _resolve_family_flags(cls, data):
        if isinstance(data, dict) and ("ipv4_only" in data or "ipv6_only" in data):
            data = dict(data)
            four, six = bool(data.pop("ipv4_only", False)), bool(data.pop("ipv6_only", False))
            if four and six:
                raise ValueError("Only one of -4 and -6 may be specified")
            data["ip_family"] = "ipv4" if four else "ipv6" if six else data.get("ip_family", "any")
        return data

    @property
    def address_family(self) -> int:
        if self.ip_family == "ipv4":
            return socket.AF_INET
        if self.ip_family == "ipv6":
            return socket.AF_INET6
        return socket.AF_UNSPEC
