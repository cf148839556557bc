# infrastructure/http/body_saver.py
from __future__ import annotations

import posixpath
from email.message import Message
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

from application.ports.body_sink import BodySinkPort
from application.ports.http_client import HttpResponse
from domain.exceptions import BodyIOFailure, ValidationError
from domain.exchange import ExchangeRequest
from domain.redirect import is_redirect

BODY_DISCARDED = "Body discarded"
BODY_READ = "Body read"


def filename_from_headers(headers: List[Tuple[str, str]]) -> str:
    """
    Output file name from ``Content-Disposition: attachment; filename=...``,
    or "" when the header does not name one.
    """
    for name, value in headers:
        if name.lower() != "content-disposition":
            continue
        msg = Message()
        msg["Content-Disposition"] = value
        if msg.get_content_disposition() == "attachment":
            filename = msg.get_param("filename", header="Content-Disposition")
            if isinstance(filename, tuple):
                filename = filename[2]
            if filename:
                return str(filename)
    return ""


def filename_from_url(url: str) -> str:
    parts = urlsplit(url)
    request_uri = parts.path or "/"
    if parts.query:
        request_uri += "?" + parts.query
    trimmed = request_uri.rstrip("/")
    if not trimmed:
        return "/"
    return posixpath.basename(trimmed)


class BodySaver(BodySinkPort):
    """
    Discards the response body, or writes it to ``output_file`` / the remote
    file name when ``save_remote_name`` is set.
    """

    def __init__(self, save_remote_name: bool = False, output_file: Optional[str] = None):
        self._save_remote_name = save_remote_name
        self._output_file = output_file

    def _target(self, request: ExchangeRequest, response: HttpResponse) -> Optional[Path]:
        if not self._save_remote_name and not self._output_file:
            return None

        filename = self._output_file or ""
        if self._save_remote_name:
            filename = filename_from_headers(response.headers) or filename_from_url(request.url)
            if filename == "/":
                raise ValidationError("No remote filename; specify output filename with -o to save response body")
        return Path(filename)

    def consume(self, request: ExchangeRequest, response: HttpResponse, chunks: Iterable[bytes]) -> str:
        if is_redirect(response.status) or request.method == "HEAD":
            return ""

        target = self._target(request, response)
        if target is None:
            for _ in chunks:
                pass
            return BODY_DISCARDED

        try:
            f = target.open("wb")
        except OSError as e:
            raise BodyIOFailure(f"unable to create file {target}: {e}") from e
        with f:
            for chunk in chunks:
                try:
                    f.write(chunk)
                except OSError as e:
                    raise BodyIOFailure(f"failed to write response body to {target}: {e}") from e
        return BODY_READ
