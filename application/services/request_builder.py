# application/services/request_builder.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

from domain.exceptions import ValidationError
from domain.exchange import BodySource, ExchangeRequest, HeaderMap


def parse_url(uri: str) -> str:
    """
    Normalize a command-line target into an absolute URL.

    Without a scheme, ``https`` is assumed unless the authority ends in ``:80``.
    """
    if "://" not in uri and not uri.startswith("//"):
        uri = "//" + uri

    try:
        parts = urlsplit(uri)
        _ = parts.port
    except ValueError as e:
        raise ValidationError(f"could not parse url {uri!r}: {e}") from e

    if not parts.netloc:
        raise ValidationError(f"could not parse url {uri!r}: missing host")

    scheme = parts.scheme.lower()
    if not scheme:
        scheme = "http" if parts.netloc.endswith(":80") else "https"
    if scheme not in ("http", "https"):
        raise ValidationError(f"unsupported protocol scheme {scheme!r}")

    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def parse_header(raw: str) -> Tuple[str, str]:
    i = raw.find(":")
    if i == -1:
        raise ValidationError(f"Header '{raw}' has invalid format, missing ':'")
    return raw[:i].rstrip(" "), raw[i:].lstrip(" :")


@dataclass(frozen=True)
class RequestTemplate:
    """
    Method, headers and body policy shared by every visit of one invocation.
    """

    method: str = "GET"
    headers: HeaderMap = field(default_factory=HeaderMap)
    host_override: Optional[str] = None
    body: BodySource = field(default_factory=BodySource)

    @classmethod
    def from_arguments(cls, method: str, header_lines: Iterable[str], data: str = "") -> "RequestTemplate":
        headers = HeaderMap()
        host: Optional[str] = None
        for line in header_lines:
            k, v = parse_header(line)
            if k.lower() == "host":
                host = v
                continue
            headers = headers.add(k, v)

        return cls(
            method=method.upper(),
            headers=headers,
            host_override=host,
            body=BodySource.from_argument(data) if data else BodySource(),
        )

    def build(self, url: str) -> ExchangeRequest:
        return ExchangeRequest(
            method=self.method,
            url=url,
            headers=self.headers,
            body=self.body,
            host_override=self.host_override,
        )
