# domain/timeline.py
"""
Phase decomposition of one traced exchange.

Milestones, in source order:

    origin -> dns_done -> connect_done -> tls_start -> tls_done
           -> got_connection -> first_byte -> t_end

origin is dns_start, or connect_start when the target was a literal address
and no lookup happened. A milestone missing from the record coincides with
its predecessor, so the phase ending at it has zero length.
"""
from __future__ import annotations

from typing import Optional

from domain.timing import PartialTimeline, PhaseTimeline, Scheme, TraceTimestamps


def _first(*values: Optional[float]) -> Optional[float]:
    for v in values:
        if v is not None:
            return v
    return None


def compute_timeline(ts: TraceTimestamps, scheme: Scheme, t_end: float) -> PhaseTimeline:
    origin = _first(ts.dns_start, ts.connect_start, ts.dns_done, ts.connect_done, ts.got_connection, ts.first_response_byte, t_end)

    dns_done = _first(ts.dns_done, ts.connect_start, origin)
    connect_done = _first(ts.connect_done, dns_done)

    if scheme is Scheme.TLS:
        tls_start = _first(ts.tls_handshake_start, connect_done)
        tls_done = _first(ts.tls_handshake_done, tls_start)
        got_connection = _first(ts.got_connection, tls_done)
    else:
        tls_start = tls_done = None
        got_connection = _first(ts.got_connection, connect_done)

    first_byte = _first(ts.first_response_byte, got_connection)

    if scheme is Scheme.TLS:
        tcp_connection = tls_start - dns_done
        tls_handshake: Optional[float] = tls_done - tls_start
        connect_marker = connect_done - origin
    else:
        tcp_connection = got_connection - dns_done
        tls_handshake = None
        connect_marker = got_connection - origin

    return PhaseTimeline(
        scheme=scheme,
        dns_lookup=dns_done - origin,
        tcp_connection=tcp_connection,
        tls_handshake=tls_handshake,
        server_processing=first_byte - got_connection,
        content_transfer=t_end - first_byte,
        namelookup=dns_done - origin,
        connect=connect_marker,
        pretransfer=got_connection - origin,
        starttransfer=first_byte - origin,
        total=t_end - origin,
    )


def partial_timeline(ts: TraceTimestamps, failed_at: float) -> PartialTimeline:
    origin = _first(ts.dns_start, ts.connect_start, failed_at)
    dns_done = _first(ts.dns_done, ts.connect_start, origin)
    return PartialTimeline(
        dns_lookup=dns_done - origin,
        tcp_connection=failed_at - dns_done,
    )
