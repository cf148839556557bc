# tests/infrastructure/test_traced_transport.py
"""Round trips against a local http.server through the traced requests stack."""
from __future__ import annotations

import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from application.ports.requests_client import RequestsSessionHttpClient
from application.trace_collector import TraceCollector
from application.transport_policy import TransportPolicy
from domain.exceptions import ConnectFailure, HttpstatError
from domain.exchange import ExchangeRequest, HeaderMap
from tests.fake_transport import MockLogger, RecordingReporter


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def do_GET(self):
        if self.path == "/hangup":
            self.close_connection = True
            return
        if self.path == "/redirect":
            self.send_response(302)
            self.send_header("Location", "/hello")
            self.send_header("Content-Length", "0")
            self.end_headers()
            return
        body = f"hello {self.headers.get('Host')} {self.headers.get('X-Trace', '')}".encode()
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Set-Cookie", "a=1")
        self.send_header("Set-Cookie", "b=2")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture(autouse=True)
def _no_proxy(monkeypatch):
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def server():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd.server_address[1]
    httpd.shutdown()
    httpd.server_close()


def _exchange(url, policy=None, **kwargs):
    collector = TraceCollector(MockLogger(), RecordingReporter())
    client = RequestsSessionHttpClient(policy or TransportPolicy())
    response = client.request(ExchangeRequest(method="GET", url=url, **kwargs), collector)
    try:
        body = b"".join(response.chunks)
    finally:
        response.close()
    return response, body, collector


def test_literal_address_records_connect_milestones(server):
    response, body, collector = _exchange(f"http://127.0.0.1:{server}/hello")

    ts = collector.timestamps
    assert response.status == 200
    assert response.http_version == "HTTP/1.1"
    assert body.startswith(b"hello 127.0.0.1")
    assert ts.dns_start is None
    assert ts.connect_start is not None
    assert ts.connect_start <= ts.connect_done <= ts.got_connection <= ts.first_response_byte
    assert ts.tls_handshake_start is None
    assert collector.address == f"127.0.0.1:{server}"


def test_hostname_records_dns_lookup(server):
    _, _, collector = _exchange(f"http://localhost:{server}/hello", policy=TransportPolicy(ip_family="ipv4"))

    ts = collector.timestamps
    assert ts.dns_start is not None
    assert ts.dns_start <= ts.dns_done <= ts.connect_done
    assert collector.address == f"127.0.0.1:{server}"


def test_repeated_response_headers_are_kept(server):
    response, _, _ = _exchange(f"http://127.0.0.1:{server}/hello")

    cookies = [v for k, v in response.headers if k.lower() == "set-cookie"]
    assert cookies == ["a=1", "b=2"]


def test_redirect_is_not_followed(server):
    response, _, _ = _exchange(f"http://127.0.0.1:{server}/redirect")

    assert response.status == 302
    assert ("Location", "/hello") in response.headers


def test_host_override_and_headers_reach_server(server):
    _, body, _ = _exchange(
        f"http://127.0.0.1:{server}/hello",
        headers=HeaderMap().add("X-Trace", "abc"),
        host_override="internal.example",
    )

    assert body == b"hello internal.example abc"


def test_refused_connection_raises_connect_failure():
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]

    collector = TraceCollector(MockLogger(), RecordingReporter())
    client = RequestsSessionHttpClient(TransportPolicy(timeout_sec=2))

    with pytest.raises(ConnectFailure):
        client.request(ExchangeRequest(method="GET", url=f"http://127.0.0.1:{port}/"), collector)

    assert collector.connect_error is not None
    assert collector.partial is not None


def test_server_hanging_up_fails_in_server_processing(server):
    collector = TraceCollector(MockLogger(), RecordingReporter())
    client = RequestsSessionHttpClient(TransportPolicy(timeout_sec=2))

    with pytest.raises(HttpstatError) as exc_info:
        client.request(ExchangeRequest(method="GET", url=f"http://127.0.0.1:{server}/hangup"), collector)

    assert exc_info.value.phase == "server processing"
    assert "closed before a complete response" in exc_info.value.message
    assert collector.timestamps.got_connection is not None
