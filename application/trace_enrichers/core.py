# application/trace_enrichers/core.py
from __future__ import annotations

from application.http_trace import VisitTrace
from application.http_trace_enricher import HttpTraceEnricher
from application.services.exchange_deps import ExchangeDeps
from application.services.redactor import mask_headers, mask_pairs


class HttpCoreTraceLogger(HttpTraceEnricher):
    def enrich_and_log(self, trace: VisitTrace, deps: ExchangeDeps) -> None:
        deps.logger.info(
            "http.request",
            hop=trace.hop,
            method=trace.method,
            url=trace.url,
            host=trace.host_override,
            headers=mask_headers(trace.request_headers),
        )

        if trace.response is not None:
            deps.logger.info(
                "http.response",
                hop=trace.hop,
                status=trace.response.status,
                url=trace.response.url,
                http_version=trace.response.http_version,
                tls_version=trace.response.tls_version,
                address=trace.address,
                headers=mask_pairs(trace.response.headers),
                location=trace.response.location,
                body=trace.response.body_message,
            )

        if trace.timeline is not None:
            deps.logger.info(
                "http.timeline",
                hop=trace.hop,
                scheme=trace.timeline.scheme.value,
                **trace.timeline.as_milliseconds(),
            )
