# domain/redirect.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from domain.exceptions import TooManyRedirects

MAX_REDIRECTS = 10


def is_redirect(status: int) -> bool:
    return 299 < status < 400


class LoopState(str, Enum):
    START = "start"
    VISITED = "visited"
    REDIRECTING = "redirecting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RedirectState:
    """Redirects followed so far in one invocation. Never reset mid-chain."""

    max_redirects: int = MAX_REDIRECTS
    followed: int = 0

    def advance(self) -> int:
        self.followed += 1
        if self.followed > self.max_redirects:
            raise TooManyRedirects(self.max_redirects)
        return self.followed
