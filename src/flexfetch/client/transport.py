"""Transport protocol and the :mod:`httpx`-backed implementation.

The downloader never talks to :mod:`httpx` directly. It depends on the
small :class:`Transport` protocol: one GET against a URL with custom
headers, returning a :class:`TransportResponse` or raising a
:class:`~flexfetch.exceptions.TransportError` subclass. ``304 Not
Modified`` is a normal return value, not an error, so conditional
requests can be answered without an exception.

Status mapping used by :class:`HttpxTransport`:

- 2xx and 304 -- returned.
- 404 -- :class:`~flexfetch.exceptions.NotFoundError`.
- any other status >= 400 -- :class:`~flexfetch.exceptions.ServerError`.
- connection, timeout and protocol errors --
  :class:`~flexfetch.exceptions.ConnectionError_`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx

from flexfetch.exceptions import ConnectionError_, NotFoundError, ServerError
from flexfetch.models import RequestConfig
from flexfetch.output import get_output

HTTP_NOT_MODIFIED = 304
HTTP_NOT_FOUND = 404


@dataclass(frozen=True)
class TransportResponse:
    """Body, status and headers of the last response received."""

    status_code: int
    content: bytes = b""
    headers: list[tuple[str, str]] = field(default_factory=list)

    @property
    def not_modified(self) -> bool:
        """Whether the origin answered ``304 Not Modified``."""
        return self.status_code == HTTP_NOT_MODIFIED


class Transport(Protocol):
    """Performs a single HTTP GET on behalf of the downloader."""

    def fetch(self, origin: str, url: str, headers: dict[str, str]) -> TransportResponse:
        """GET *url* (which lives under *origin*) with *headers*."""
        ...


class HttpxTransport:
    """Blocking :class:`Transport` backed by :class:`httpx.Client`.

    Can be used as a context manager; otherwise the client is created
    lazily on the first fetch and released by :meth:`close`.

    Args:
        config: Timeout and SSL verification settings.
        client: Optional pre-built :class:`httpx.Client` (used by tests to
            inject an :class:`httpx.MockTransport`).

    Example::

        with HttpxTransport(RequestConfig(timeout=10)) as transport:
            result = transport.fetch(
                "https://flex.symfony.com",
                "https://flex.symfony.com/aliases.json",
                {"Package-Session": "abc"},
            )
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpxTransport:
        self._ensure_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Transport protocol
    # ------------------------------------------------------------------ #

    def fetch(self, origin: str, url: str, headers: dict[str, str]) -> TransportResponse:
        """GET *url* and map the outcome onto the transport contract.

        Args:
            origin: Base endpoint *url* belongs to, used in messages.
            url: Absolute URL to fetch.
            headers: Request headers. Values are sent as UTF-8 bytes, so
                non-ASCII project identities reach the origin unchanged.

        Returns:
            A :class:`TransportResponse` for 2xx and 304 answers.

        Raises:
            NotFoundError: On 404.
            ServerError: On any other HTTP error status.
            ConnectionError_: On network, timeout or protocol errors.
        """
        client = self._ensure_client()
        get_output().debug(f"GET {url}")
        try:
            response = client.get(url, headers=_encode_headers(headers))
        except httpx.TimeoutException as exc:
            raise ConnectionError_(
                f"The \"{url}\" file could not be downloaded: timed out talking to {origin}",
                url=url,
            ) from exc
        except httpx.HTTPError as exc:
            raise ConnectionError_(
                f"The \"{url}\" file could not be downloaded: {exc}",
                url=url,
            ) from exc

        status = response.status_code
        if status == HTTP_NOT_FOUND:
            raise NotFoundError(
                f"The \"{url}\" file could not be downloaded (HTTP/1.1 404 Not Found)",
                url=url,
            )
        if status >= 400:
            reason = response.reason_phrase or ""
            raise ServerError(
                f"The \"{url}\" file could not be downloaded (HTTP {status} {reason})".rstrip(),
                url=url,
                status_code=status,
            )

        return TransportResponse(
            status_code=status,
            content=response.content,
            headers=list(response.headers.multi_items()),
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client


def _encode_headers(headers: dict[str, str]) -> dict[bytes, bytes]:
    # httpx encodes str headers as ASCII and raises UnicodeEncodeError otherwise.
    return {name.encode("utf-8"): value.encode("utf-8") for name, value in headers.items()}
