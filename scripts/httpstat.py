#!/usr/bin/env python3
"""
Visualize the phases of an HTTP exchange: DNS lookup, TCP connection,
TLS handshake, server processing and content transfer.

Usage:
  python scripts/httpstat.py [OPTIONS] URL

Examples:
  python scripts/httpstat.py example.com
  python scripts/httpstat.py -L -H 'Accept: text/html' http://example.com/
  python scripts/httpstat.py -X POST -d @payload.json https://httpbin.org/post
"""
from __future__ import annotations

import argparse
import platform
import sys
from importlib import metadata
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError as PolicyValidationError
from rich.console import Console

load_dotenv()

from application.http_trace_emitter import HttpTraceEmitter
from application.exchange_driver import ExchangeDriver
from application.ports.http_client import HttpClientPort
from application.ports.requests_client import RequestsSessionHttpClient
from application.redirect_loop import RedirectLoop
from application.services.exchange_deps import ExchangeDeps
from application.services.request_builder import RequestTemplate, parse_url
from application.trace_enrichers.core import HttpCoreTraceLogger
from application.transport_policy import DEFAULT_TIMEOUT_SEC, TransportPolicy
from domain.exceptions import HttpstatError, ValidationError
from infrastructure.http.body_saver import BodySaver
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger
from infrastructure.render.console_renderer import ConsoleRenderer
from infrastructure.tls.client_cert import load_client_cert

PROG = "httpstat"

ENVIRONMENT_HELP = """\
ENVIRONMENT:
  HTTP_PROXY          proxy for HTTP requests; complete URL or HOST[:PORT]
                      used for HTTPS requests if HTTPS_PROXY undefined
  HTTPS_PROXY         proxy for HTTPS requests; complete URL or HOST[:PORT]
  NO_PROXY            comma-separated list of hosts to exclude from proxy
  HTTPSTAT_LOG_LEVEL  diagnostics written to stderr (default WARNING)
"""


def _version() -> str:
    try:
        return metadata.version(PROG)
    except metadata.PackageNotFoundError:
        return "devel"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        usage="%(prog)s [OPTIONS] URL",
        epilog=ENVIRONMENT_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("url", nargs="*", help=argparse.SUPPRESS)
    parser.add_argument("-X", dest="method", default="GET", metavar="METHOD", help="HTTP method to use")
    parser.add_argument("-d", dest="data", default="", metavar="DATA", help="the body of a POST or PUT request; from file use @filename")
    parser.add_argument("-L", dest="follow_redirects", action="store_true", help="follow 30x redirects")
    parser.add_argument("-I", dest="only_header", action="store_true", help="don't read body of request")
    parser.add_argument("-k", dest="insecure", action="store_true", help="allow insecure SSL connections")
    parser.add_argument(
        "-H",
        dest="headers",
        action="append",
        default=[],
        metavar="HEADER",
        help="set HTTP header; repeatable: -H 'Accept: ...' -H 'Range: ...'",
    )
    parser.add_argument("-O", dest="remote_name", action="store_true", help="save body as remote filename")
    parser.add_argument("-o", dest="output", default=None, metavar="FILE", help="output file for body")
    parser.add_argument("-v", dest="version", action="store_true", help="print version number")
    parser.add_argument("-E", dest="cert", default="", metavar="CERT", help="client cert file for tls config")
    parser.add_argument("-4", dest="ipv4_only", action="store_true", help="resolve IPv4 addresses only")
    parser.add_argument("-6", dest="ipv6_only", action="store_true", help="resolve IPv6 addresses only")
    parser.add_argument(
        "-m",
        dest="max_time",
        type=float,
        default=DEFAULT_TIMEOUT_SEC,
        metavar="SECONDS",
        help="maximum time in seconds that you allow the whole exchange to take",
    )
    return parser


def _policy_error(exc: PolicyValidationError) -> str:
    msg = exc.errors()[0]["msg"]
    return msg.removeprefix("Value error, ")


def _error_line(exc: HttpstatError) -> str:
    # network failures name the phase they broke in
    if isinstance(exc, ValidationError):
        return f"ERROR: {exc.message}"
    return f"ERROR: {exc.phase}: {exc.message}"


def run(
    argv: List[str],
    http_client: Optional[HttpClientPort] = None,
    console: Optional[Console] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"{PROG} {_version()} (runtime: python {platform.python_version()})")
        return 0

    setup_console_logging()
    logger = LoguruLogger()

    try:
        policy = TransportPolicy(
            insecure=args.insecure,
            ipv4_only=args.ipv4_only,
            ipv6_only=args.ipv6_only,
            timeout_sec=args.max_time,
            follow_redirects=args.follow_redirects,
        )
    except PolicyValidationError as exc:
        print(f"{PROG}: {_policy_error(exc)}", file=sys.stderr)
        return 2

    if len(args.url) != 1:
        parser.print_usage(sys.stderr)
        return 2

    method = args.method.upper()
    if method in ("POST", "PUT") and not args.data:
        print("ERROR: must supply post body using -d when POST or PUT is used", file=sys.stderr)
        return 1
    if args.only_header:
        method = "HEAD"

    try:
        policy = policy.model_copy(update={"client_cert": load_client_cert(args.cert)})
        template = RequestTemplate.from_arguments(method, args.headers, args.data)
        url = parse_url(args.url[0])

        renderer = ConsoleRenderer(console)
        deps = ExchangeDeps(
            logger=logger,
            body_sink=BodySaver(save_remote_name=args.remote_name, output_file=args.output),
            reporter=renderer,
        )
        driver = ExchangeDriver(
            http_client or RequestsSessionHttpClient(policy),
            policy,
            deps,
            trace=HttpTraceEmitter([HttpCoreTraceLogger()]),
        )
        loop = RedirectLoop(
            driver,
            template,
            renderer,
            logger,
            follow_redirects=policy.follow_redirects,
            max_redirects=policy.max_redirects,
        )
        loop.run(url)
    except HttpstatError as exc:
        logger.error("run.failed", phase=exc.phase, error=exc.message)
        print(_error_line(exc), file=sys.stderr)
        return 1
    return 0


def main() -> None:
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
