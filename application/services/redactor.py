# application/services/redactor.py
from __future__ import annotations

from typing import Any, Dict, List, Tuple

from domain.exchange import HeaderMap

SENSITIVE_KEYS = {"authorization", "proxy-authorization", "cookie", "set-cookie", "x-api-key"}


def mask_value(key: str, value: Any) -> Any:
    if key.lower() in SENSITIVE_KEYS and value is not None:
        return "********"
    return value


def mask_pairs(pairs: List[Tuple[str, Any]]) -> List[Tuple[str, Any]]:
    return [(k, mask_value(k, v)) for k, v in pairs]


def mask_headers(headers: HeaderMap) -> Dict[str, Any]:
    return {k: mask_value(k, list(values)) for k, values in headers.items}
