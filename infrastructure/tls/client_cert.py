# infrastructure/tls/client_cert.py
from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from domain.exceptions import ValidationError

_PEM_BLOCK = re.compile(r"-----BEGIN ([A-Z0-9 ]+)-----.*?-----END \1-----", re.S)


def pem_block_types(data: str) -> List[str]:
    return [m.group(1) for m in _PEM_BLOCK.finditer(data)]


def load_client_cert(filename: Optional[str]) -> Optional[Path]:
    """
    Check a PEM file holding both the client private key and certificate and
    return its path for the TLS layer. None when no file was given.
    """
    if not filename:
        return None

    path = Path(filename)
    try:
        data = path.read_text(encoding="ascii", errors="replace")
    except OSError as e:
        raise ValidationError(f"failed to read client certificate file: {e}") from e

    types = pem_block_types(data)
    has_key = any(t.endswith("PRIVATE KEY") for t in types)
    has_cert = any(t.endswith("CERTIFICATE") for t in types)
    if not has_key or not has_cert:
        missing = "private key" if not has_key else "certificate"
        raise ValidationError(f"unable to load client cert and key pair: no {missing} found in {path}")
    return path
