# domain/exchange.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple, Union

from domain.exceptions import ValidationError


@dataclass(frozen=True)
class HeaderMap:
    """
    Ordered, case-insensitive header mapping with multi-value support.

    Names keep the spelling of their first occurrence; lookups ignore case.
    """

    items: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    def add(self, name: str, value: str) -> "HeaderMap":
        out: List[Tuple[str, Tuple[str, ...]]] = []
        added = False
        for k, values in self.items:
            if k.lower() == name.lower():
                out.append((k, values + (value,)))
                added = True
            else:
                out.append((k, values))
        if not added:
            out.append((name, (value,)))
        return HeaderMap(items=tuple(out))

    def get_all(self, name: str) -> List[str]:
        for k, values in self.items:
            if k.lower() == name.lower():
                return list(values)
        return []

    def get(self, name: str) -> Optional[str]:
        values = self.get_all(name)
        return values[0] if values else None

    def names(self) -> List[str]:
        return [k for k, _ in self.items]

    def to_wire(self) -> Dict[str, str]:
        # repeated values travel as one comma-joined field
        return {k: ", ".join(values) for k, values in self.items}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and bool(self.get_all(name))

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class BodySource:
    """Request payload: inline bytes, or a file reopened for every visit."""

    inline: bytes = b""
    path: Optional[Path] = None

    @classmethod
    def from_argument(cls, raw: str) -> "BodySource":
        if raw.startswith("@"):
            return cls(path=Path(raw[1:]))
        return cls(inline=raw.encode("utf-8"))

    @property
    def is_empty(self) -> bool:
        return self.path is None and not self.inline

    def open(self) -> Union[bytes, BinaryIO]:
        if self.path is None:
            return self.inline
        try:
            return self.path.open("rb")
        except OSError as e:
            raise ValidationError(f"failed to open data file {self.path}: {e}") from e


@dataclass(frozen=True)
class ExchangeRequest:
    method: str
    url: str
    headers: HeaderMap = field(default_factory=HeaderMap)
    body: BodySource = field(default_factory=BodySource)
    host_override: Optional[str] = None

    @property
    def scheme(self) -> str:
        return self.url.split("://", 1)[0].lower() if "://" in self.url else ""

    @property
    def is_tls(self) -> bool:
        return self.scheme == "https"
