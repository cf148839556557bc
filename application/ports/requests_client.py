# application/ports/requests_client.py
from __future__ import annotations

from http.client import RemoteDisconnected
from typing import Iterator, List, Optional, Tuple
from urllib.parse import urlsplit

import requests
import urllib3
from urllib3.exceptions import (
    InsecureRequestWarning,
    NameResolutionError,
    NewConnectionError,
    ProtocolError,
    ReadTimeoutError,
)

from application.ports.http_client import HttpClientPort, HttpResponse
from application.ports.trace_hooks import TraceHooks
from application.transport_policy import TransportPolicy
from domain.exceptions import (
    BodyIOFailure,
    ConnectFailure,
    DnsFailure,
    HttpstatError,
    RequestTimeout,
    TlsFailure,
    ValidationError,
)
from domain.exchange import ExchangeRequest
from infrastructure.http.traced_adapter import TracedHTTPAdapter

_HTTP_VERSIONS = {9: "HTTP/0.9", 10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2.0"}


def _reason_chain(exc: BaseException) -> List[BaseException]:
    """requests wraps urllib3 errors (MaxRetryError.reason, __cause__); flatten them."""
    out: List[BaseException] = []
    seen = set()
    todo: List[BaseException] = [exc]
    while todo:
        e = todo.pop(0)
        if id(e) in seen:
            continue
        seen.add(id(e))
        out.append(e)
        for nxt in (getattr(e, "reason", None), e.__cause__, e.__context__, *e.args):
            if isinstance(nxt, BaseException):
                todo.append(nxt)
    return out


def translate_error(exc: requests.RequestException, url: str) -> HttpstatError:
    chain = _reason_chain(exc)
    host = urlsplit(url).netloc

    if isinstance(exc, requests.exceptions.ConnectTimeout):
        return RequestTimeout(f"timed out connecting to {host}: {exc}", phase="tcp connection")
    if isinstance(exc, requests.exceptions.ReadTimeout):
        return RequestTimeout(f"timed out waiting for response from {host}: {exc}", phase="server processing")
    if any(isinstance(e, NameResolutionError) for e in chain):
        return DnsFailure(f"unable to resolve host {host}: {exc}")
    if isinstance(exc, requests.exceptions.SSLError):
        return TlsFailure(f"TLS handshake with {host} failed: {exc}")
    if isinstance(exc, requests.exceptions.ProxyError):
        return ConnectFailure(f"unable to connect to proxy for {host}: {exc}")
    if any(isinstance(e, NewConnectionError) for e in chain):
        return ConnectFailure(f"unable to connect to host {host}: {exc}")
    if any(isinstance(e, (ProtocolError, RemoteDisconnected)) for e in chain):
        return HttpstatError(f"connection to {host} closed before a complete response: {exc}", phase="server processing")
    if isinstance(exc, (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema)):
        return ValidationError(f"unable to create request: {exc}")
    return HttpstatError(f"failed to read response: {exc}")


def _iter_body(resp: requests.Response, chunk_size: int) -> Iterator[bytes]:
    try:
        for chunk in resp.iter_content(chunk_size=chunk_size):
            if chunk:
                yield chunk
    except requests.exceptions.ConnectionError as e:
        if any(isinstance(x, ReadTimeoutError) for x in _reason_chain(e)):
            raise RequestTimeout(f"timed out reading response body: {e}", phase="content transfer") from e
        raise BodyIOFailure(f"failed to read response body: {e}") from e
    except requests.RequestException as e:
        raise BodyIOFailure(f"failed to read response body: {e}") from e


class RequestsSessionHttpClient(HttpClientPort):
    """
    One requests.Session per exchange, closed with the response, so every
    visit measures its own DNS, TCP and TLS phases.
    """

    def __init__(self, policy: TransportPolicy, chunk_size: int = 64 * 1024):
        self._policy = policy
        self._chunk_size = chunk_size
        if policy.insecure:
            urllib3.disable_warnings(InsecureRequestWarning)

    def _server_hostname(self, request: ExchangeRequest) -> Optional[str]:
        if not request.host_override or not request.is_tls:
            return None
        return urlsplit("//" + request.host_override).hostname

    def request(self, request: ExchangeRequest, hooks: TraceHooks, deadline: Optional[float] = None) -> HttpResponse:
        session = requests.Session()
        adapter = TracedHTTPAdapter(
            hooks,
            address_family=self._policy.address_family,
            server_hostname=self._server_hostname(request),
            deadline=deadline,
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        headers = request.headers.to_wire()
        if request.host_override:
            headers["Host"] = request.host_override

        body = request.body.open()
        timeout = self._policy.timeout_sec
        try:
            resp = session.request(
                method=request.method,
                url=request.url,
                headers=headers,
                data=body or None,
                timeout=(timeout, timeout),
                allow_redirects=False,
                stream=True,
                verify=not self._policy.insecure,
                cert=str(self._policy.client_cert) if self._policy.client_cert else None,
            )
        except requests.RequestException as e:
            session.close()
            raise translate_error(e, request.url) from e
        finally:
            if not isinstance(body, bytes):
                body.close()

        def close() -> None:
            resp.close()
            session.close()

        pairs: List[Tuple[str, str]] = list(resp.raw.headers.items())
        return HttpResponse(
            status=resp.status_code,
            reason=resp.reason or "",
            url=resp.url,
            http_version=_HTTP_VERSIONS.get(resp.raw.version, "HTTP/1.1"),
            headers=pairs,
            chunks=_iter_body(resp, self._chunk_size),
            close=close,
        )
