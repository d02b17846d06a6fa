"""Loading source documents from local paths or HTTP(S) URLs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

import httpx

from pdf_workbench.exceptions import (
    SourceConnectionError,
    SourceHTTPError,
    SourceNotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_NAME = "document.pdf"


@dataclass(frozen=True)
class Source:
    """Raw bytes of a source file plus the file name used for outputs."""

    name: str
    data: bytes = field(repr=False)


def is_remote(ref: str) -> bool:
    return ref.lower().startswith(("http://", "https://"))


class SourceLoader:
    """Reads sources from disk or downloads them over HTTP.

    Usage::

        with SourceLoader(timeout=10) as loader:
            source = loader.load("https://example.com/report.pdf")
    """

    def __init__(self, *, timeout: float = 30.0, **client_kwargs: Any) -> None:
        self._timeout = timeout
        self._client_kwargs = client_kwargs
        self._client: httpx.Client | None = None

    def __enter__(self) -> SourceLoader:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # -- Internal helpers -----------------------------------------------------

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                follow_redirects=True,
                **self._client_kwargs,
            )
        return self._client

    def _fetch(self, url: str) -> httpx.Response:
        """GET a URL and translate errors into our exception hierarchy."""
        try:
            resp = self._http().get(url)
        except httpx.ConnectError as exc:
            raise SourceConnectionError(f"Cannot connect to {url}") from exc
        except httpx.TimeoutException as exc:
            raise SourceConnectionError(f"Request to {url} timed out") from exc

        if resp.status_code >= 400:
            detail = resp.text[:500]
            raise SourceHTTPError(resp.status_code, detail)

        return resp

    # -- Public API -----------------------------------------------------------

    def load(self, ref: str) -> Source:
        """Return the bytes and file name of a path or URL."""
        if is_remote(ref):
            return self.load_url(ref)
        return self.load_path(Path(ref))

    def load_url(self, url: str) -> Source:
        resp = self._fetch(url)
        name = unquote(Path(urlsplit(url).path).name) or DEFAULT_REMOTE_NAME
        logger.debug("Downloaded %d bytes from %s", len(resp.content), url)
        return Source(name=name, data=resp.content)

    def load_path(self, path: Path) -> Source:
        if not path.is_file():
            raise SourceNotFoundError(f"File not found: {path}")
        return Source(name=path.name, data=path.read_bytes())
