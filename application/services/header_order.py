# application/services/header_order.py
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple, TypeVar

# https://www.w3.org/Protocols/rfc2616/rfc2616-sec13.html#sec13.5.1
HOP_BY_HOP = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

T = TypeVar("T")


def canonical_header_name(name: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def is_end_to_end(name: str) -> bool:
    return name.lower() not in HOP_BY_HOP


def display_sort_key(name: str) -> Tuple[int, int, str]:
    if name.lower() == "server":
        return (0, 0, name)
    return (1, 0 if is_end_to_end(name) else 1, name)


def sort_header_names(names: Iterable[str]) -> List[str]:
    """Server first, then end-to-end headers, then hop-by-hop headers."""
    return sorted(names, key=display_sort_key)


def sort_headers(items: Iterable[Tuple[str, T]]) -> List[Tuple[str, T]]:
    return sorted(items, key=lambda kv: display_sort_key(kv[0]))


def group_header_pairs(pairs: Iterable[Tuple[str, str]]) -> List[Tuple[str, List[str]]]:
    grouped: Dict[str, List[str]] = {}
    for name, value in pairs:
        grouped.setdefault(canonical_header_name(name), []).append(value)
    return sort_headers(grouped.items())
