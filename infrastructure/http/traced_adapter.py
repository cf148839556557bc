# infrastructure/http/traced_adapter.py
"""
requests / urllib3 plumbing that reports connection lifecycle events.

The adapter installs a pool manager whose pools build traced connections.
A traced connection resolves and connects by itself so that DNS and TCP are
observable separately, then reports TLS, connection readiness and the
arrival of the first response byte.
"""
from __future__ import annotations

import ipaddress
import socket
import ssl
import threading
import time
from typing import Any, Dict, Optional

from requests.adapters import HTTPAdapter
from urllib3 import PoolManager, ProxyManager
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.exceptions import ConnectTimeoutError, NameResolutionError, NewConnectionError
from urllib3.util.retry import Retry
from urllib3.util.wait import wait_for_read

from application.ports.trace_hooks import TraceHooks
from domain.exceptions import ValidationError


def format_address(sockaddr: Any) -> str:
    host, port = sockaddr[0], sockaddr[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


class _TracedConnectionMixin:
    def __init__(
        self,
        *args: Any,
        trace_hooks: Optional[TraceHooks] = None,
        address_family: int = socket.AF_UNSPEC,
        deadline: Optional[float] = None,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self._trace_hooks = trace_hooks
        self._address_family = address_family
        self._deadline = deadline
        self._watchdog: Optional[threading.Timer] = None

    def _emit(self, hook: str, *args: Any) -> None:
        if self._trace_hooks is not None:
            getattr(self._trace_hooks, hook)(*args)

    def _remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return self._deadline - time.monotonic()

    def _socket_timeout(self) -> Optional[float]:
        """Per-operation timeout, never past the exchange deadline."""
        timeout = self.timeout if isinstance(self.timeout, (int, float)) else None
        remaining = self._remaining()
        if remaining is None:
            return timeout
        return remaining if timeout is None else min(timeout, remaining)

    def _arm_watchdog(self, sock: socket.socket) -> None:
        remaining = self._remaining()
        if remaining is None:
            return
        self._watchdog = threading.Timer(max(remaining, 0.0), self._expire, args=(sock,))
        self._watchdog.daemon = True
        self._watchdog.start()

    def _expire(self, raw: socket.socket) -> None:
        # wakes any blocked read or handshake; the reader sees EOF or a reset
        target = self.sock if isinstance(self.sock, socket.socket) else raw
        try:
            socket.socket.shutdown(target, socket.SHUT_RDWR)
        except OSError:
            # already closed by the response
            return

    def close(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None
        super().close()

    def _new_conn(self) -> socket.socket:
        host = self._dns_host.strip("[]")
        port = self.port
        lookup = not is_ip_literal(host)

        if lookup:
            self._emit("on_dns_start", host)
        try:
            infos = socket.getaddrinfo(host, port, self._address_family, socket.SOCK_STREAM)
        except socket.gaierror as e:
            if lookup:
                self._emit("on_dns_done", [], e)
            raise NameResolutionError(self.host, self, e) from e
        if lookup:
            self._emit("on_dns_done", [format_address(info[4]) for info in infos])

        error: Optional[OSError] = None
        address = f"{host}:{port}"
        for family, socktype, proto, _, sockaddr in infos:
            address = format_address(sockaddr)
            timeout = self._socket_timeout()
            if timeout is not None and timeout <= 0:
                error = socket.timeout("deadline reached before connecting")
                break
            self._emit("on_connect_start", address)
            sock = None
            try:
                sock = socket.socket(family, socktype, proto)
                for opt in self.socket_options or ():
                    sock.setsockopt(*opt)
                if timeout is not None:
                    sock.settimeout(timeout)
                if self.source_address:
                    sock.bind(self.source_address)
                sock.connect(sockaddr)
            except OSError as e:
                error = e
                if sock is not None:
                    sock.close()
                continue

            self._emit("on_connect_done", address, None)
            self._arm_watchdog(sock)
            return sock

        if error is None:
            error = OSError("getaddrinfo returns an empty list")
        self._emit("on_connect_done", address, error)
        if isinstance(error, socket.timeout):
            raise ConnectTimeoutError(
                self, f"Connection to {self.host} timed out. (connect timeout={self.timeout})"
            ) from error
        raise NewConnectionError(self, f"Failed to establish a new connection: {error}") from error

    def request(self, method: str, url: str, body: Any = None, headers: Any = None, **kwargs: Any) -> None:
        if self.sock is None:
            self.connect()
        self._emit("on_got_connection")
        super().request(method, url, body=body, headers=headers, **kwargs)

    def getresponse(self) -> Any:
        if self.sock is not None:
            timeout = self._socket_timeout()
            if timeout is None:
                timeout = self.sock.gettimeout()
            if wait_for_read(self.sock, timeout=timeout):
                self._emit("on_first_response_byte")
        return super().getresponse()


class TracedHTTPConnection(_TracedConnectionMixin, HTTPConnection):
    pass


class TracedHTTPSConnection(_TracedConnectionMixin, HTTPSConnection):
    _tls_started = False

    def _new_conn(self) -> socket.socket:
        sock = super()._new_conn()
        self._tls_started = True
        self._emit("on_tls_handshake_start")
        return sock

    def connect(self) -> None:
        self._tls_started = False
        try:
            super().connect()
        except Exception as e:
            if self._tls_started:
                self._emit("on_tls_handshake_done", None, e)
            raise
        version = getattr(self.sock, "version", None)
        self._emit("on_tls_handshake_done", version() if callable(version) else None)


class _TracingPoolMixin:
    def __init__(
        self,
        *args: Any,
        trace_hooks: Optional[TraceHooks] = None,
        address_family: int = socket.AF_UNSPEC,
        deadline: Optional[float] = None,
        **kwargs: Any,
    ):
        self._trace_hooks = trace_hooks
        self._address_family = address_family
        self._deadline = deadline
        super().__init__(*args, **kwargs)

    def _new_pool(self, scheme: str, host: str, port: int, request_context: Optional[Dict[str, Any]] = None) -> Any:
        pool = super()._new_pool(scheme, host, port, request_context)
        pool.ConnectionCls = TracedHTTPSConnection if scheme == "https" else TracedHTTPConnection
        pool.conn_kw["trace_hooks"] = self._trace_hooks
        pool.conn_kw["address_family"] = self._address_family
        pool.conn_kw["deadline"] = self._deadline
        return pool


class TracingPoolManager(_TracingPoolMixin, PoolManager):
    pass


class TracingProxyManager(_TracingPoolMixin, ProxyManager):
    pass


class TracedHTTPAdapter(HTTPAdapter):
    """
    HTTPAdapter bound to one set of trace hooks. Mount a fresh instance per
    visit: pooled connections would skip the DNS, TCP and TLS phases.
    """

    def __init__(
        self,
        trace_hooks: TraceHooks,
        address_family: int = socket.AF_UNSPEC,
        server_hostname: Optional[str] = None,
        deadline: Optional[float] = None,
        **kwargs: Any,
    ):
        self._trace_hooks = trace_hooks
        self._address_family = address_family
        self._server_hostname = server_hostname
        self._deadline = deadline
        kwargs.setdefault("max_retries", Retry(total=0, redirect=False))
        super().__init__(**kwargs)

    def _tracing_kwargs(self) -> Dict[str, Any]:
        kw: Dict[str, Any] = {
            "trace_hooks": self._trace_hooks,
            "address_family": self._address_family,
            "deadline": self._deadline,
            "ssl_minimum_version": ssl.TLSVersion.TLSv1_2,
        }
        if self._server_hostname:
            kw["server_hostname"] = self._server_hostname
        return kw

    def init_poolmanager(self, connections: int, maxsize: int, block: bool = False, **pool_kwargs: Any) -> None:
        self._pool_connections = connections
        self._pool_maxsize = maxsize
        self._pool_block = block
        pool_kwargs.update(self._tracing_kwargs())
        self.poolmanager = TracingPoolManager(
            num_pools=connections,
            maxsize=maxsize,
            block=block,
            **pool_kwargs,
        )

    def proxy_manager_for(self, proxy: str, **proxy_kwargs: Any) -> ProxyManager:
        if proxy in self.proxy_manager:
            return self.proxy_manager[proxy]
        if proxy.lower().startswith("socks"):
            raise ValidationError(f"SOCKS proxies are not supported: {proxy}")

        proxy_kwargs.update(self._tracing_kwargs())
        manager = self.proxy_manager[proxy] = TracingProxyManager(
            proxy_url=proxy,
            proxy_headers=self.proxy_headers(proxy),
            num_pools=self._pool_connections,
            maxsize=self._pool_maxsize,
            block=self._pool_block,
            **proxy_kwargs,
        )
        return manager
