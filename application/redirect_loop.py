# application/redirect_loop.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List
from urllib.parse import urljoin

from application.exchange_driver import ExchangeDriver
from application.outcome import VisitResult
from application.ports.logger import LoggerPort
from application.ports.visit_reporter import VisitReporterPort
from application.services.request_builder import RequestTemplate
from domain.exceptions import HttpstatError
from domain.redirect import MAX_REDIRECTS, LoopState, RedirectState, is_redirect


@dataclass
class ChainResult:
    visits: List[VisitResult] = field(default_factory=list)
    state: LoopState = LoopState.START
    redirects_followed: int = 0

    @property
    def last(self) -> VisitResult:
        return self.visits[-1]


class RedirectLoop:
    """
    Visits a URL and, when enabled, follows 30x responses one hop at a time.

    Each hop is a fresh request built from the shared template. Any failure
    aborts the whole chain.
    """

    def __init__(
        self,
        driver: ExchangeDriver,
        template: RequestTemplate,
        reporter: VisitReporterPort,
        logger: LoggerPort,
        follow_redirects: bool = False,
        max_redirects: int = MAX_REDIRECTS,
    ):
        self._driver = driver
        self._template = template
        self._reporter = reporter
        self._logger = logger
        self._follow = follow_redirects
        self._max_redirects = max_redirects

    def run(self, url: str) -> ChainResult:
        chain = ChainResult()
        redirects = RedirectState(max_redirects=self._max_redirects)
        request = self._template.build(url)

        try:
            while True:
                result = self._driver.visit(request, hop=redirects.followed)
                chain.visits.append(result)
                chain.state = LoopState.VISITED
                self._reporter.visit_completed(result)

                status = result.outcome.status
                if not self._follow or not is_redirect(status):
                    break

                location = result.outcome.header("Location")
                if not location:
                    # 30x but no Location to follow, give up
                    self._logger.warning("redirect.no_location", status=status, url=request.url)
                    break

                chain.state = LoopState.REDIRECTING
                redirects.advance()
                chain.redirects_followed = redirects.followed

                target = urljoin(request.url, location)
                self._logger.info(
                    "redirect.follow",
                    status=status,
                    location=target,
                    followed=redirects.followed,
                )
                request = self._template.build(target)
        except HttpstatError as e:
            chain.state = LoopState.FAILED
            self._logger.error("redirect.chain_failed", phase=e.phase, error=e.message, followed=redirects.followed)
            raise

        chain.state = LoopState.DONE
        return chain
