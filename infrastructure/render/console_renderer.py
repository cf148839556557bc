# infrastructure/render/console_renderer.py
"""
Terminal report for each visit: address, protocol, status line, headers,
body disposition and the phase diagram.
"""
from __future__ import annotations

import re
from typing import Dict, Optional

from rich.console import Console
from rich.text import Text

from application.outcome import VisitResult
from application.ports.visit_reporter import VisitReporterPort
from domain.timing import PartialTimeline, PhaseTimeline, Scheme

HTTPS_TEMPLATE = (
    "  DNS Lookup   TCP Connection   TLS Handshake   Server Processing   Content Transfer\n"
    "[{dns_lookup}  ┃     {tcp_connection}  ┃    {tls_handshake}  ┃        {server_processing}  ┃       {content_transfer}  ]\n"
    "            ┃                ┃               ┃                   ┃                  ┃\n"
    "  namelookup:{namelookup}       ┃               ┃                   ┃                  ┃\n"
    "                      connect:{connect}      ┃                   ┃                  ┃\n"
    "                                  pretransfer:{pretransfer}          ┃                  ┃\n"
    "                                                    starttransfer:{starttransfer}         ┃\n"
    "                                                                               total:{total}\n"
)

HTTP_TEMPLATE = (
    "   DNS Lookup   TCP Connection   Server Processing   Content Transfer\n"
    "[ {dns_lookup}  ┃     {tcp_connection}  ┃        {server_processing}  ┃       {content_transfer}  ]\n"
    "             ┃                ┃                   ┃                  ┃\n"
    "   namelookup:{namelookup}       ┃                   ┃                  ┃\n"
    "                       connect:{connect}          ┃                  ┃\n"
    "                                     starttransfer:{starttransfer}         ┃\n"
    "                                                                total:{total}\n"
)

_SLOT = re.compile(r"\{(\w+)\}")

LABEL_STYLE = "green"
VALUE_STYLE = "cyan"
HEADER_NAME_STYLE = "color(246)"
LEGEND_STYLE = "color(248)"


def _ms(seconds: float) -> int:
    return int(seconds * 1000)


def format_block(seconds: float) -> str:
    return f"{_ms(seconds):7d}ms"


def format_marker(seconds: float) -> str:
    return f"{str(_ms(seconds)) + 'ms':<9}"


def render_timeline(timeline: PhaseTimeline) -> Text:
    """Fill the phase diagram for the timeline's scheme."""
    slots: Dict[str, str] = {name: format_block(v) for name, v in timeline.phases()}
    slots.update({name: format_marker(v) for name, v in timeline.markers()})
    template = HTTPS_TEMPLATE if timeline.scheme is Scheme.TLS else HTTP_TEMPLATE

    out = Text()
    for lineno, line in enumerate(template.splitlines(keepends=True)):
        style = LEGEND_STYLE if lineno == 0 else ""
        pos = 0
        for m in _SLOT.finditer(line):
            out.append(line[pos:m.start()], style=style)
            out.append(slots[m.group(1)], style=VALUE_STYLE)
            pos = m.end()
        out.append(line[pos:], style=style)
    return out


class ConsoleRenderer(VisitReporterPort):
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False, soft_wrap=True)

    def _print(self, text: Text, end: str = "\n") -> None:
        self.console.print(text, end=end, highlight=False, soft_wrap=True)

    def connected(self, address: str) -> None:
        self._print(Text.assemble("\n", ("Connected to ", LABEL_STYLE), (address, VALUE_STYLE)))

    def connect_failed(self, address: str, partial: PartialTimeline) -> None:
        self._print(
            Text(
                f"     DNS Lookup: {_ms(partial.dns_lookup)}ms\n"
                f" TCP Connection: {_ms(partial.tcp_connection)}ms"
            )
        )

    def visit_completed(self, result: VisitResult) -> None:
        outcome = result.outcome
        self._print(Text.assemble("\n", ("Connected via", LABEL_STYLE), " ", (outcome.tls_version.label, VALUE_STYLE)))

        # e.g. "HTTP/1.1 200 OK" -> "HTTP" "/" "1.1 200 OK"
        proto, _, rest = outcome.status_line.partition("/")
        self._print(Text.assemble("\n", (proto, LABEL_STYLE), ("/", HEADER_NAME_STYLE), (rest, VALUE_STYLE)))

        for name, values in outcome.headers:
            self._print(Text.assemble((name + ":", HEADER_NAME_STYLE), " ", (",".join(values), VALUE_STYLE)))

        if outcome.body_message:
            self._print(Text.assemble("\n", (outcome.body_message, VALUE_STYLE)))

        self._print(Text("\n").append_text(render_timeline(result.timeline)), end="")
