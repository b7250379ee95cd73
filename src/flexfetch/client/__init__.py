"""Fetch client module for flexfetch.

Provides the :class:`Downloader` engine together with the entities and
collaborators it works with.

Classes:
    :class:`Downloader` -- path-based fetch with cache, retry, and
    stale-data fallback.
    :class:`Response` -- immutable payload plus headers.
    :class:`HttpxTransport` -- default transport backed by :class:`httpx.Client`.
    :class:`Found`, :class:`NotFound`, :class:`Failed` -- tagged fetch results.

Example::

    from flexfetch.client import create_downloader
    from flexfetch.config import resolve_config

    with create_downloader(resolve_config()) as downloader:
        response = downloader.get("/aliases.json")
"""

from flexfetch.client.downloader import Downloader, create_downloader
from flexfetch.client.response import Response, format_api_response
from flexfetch.client.result import Failed, FetchResult, Found, NotFound
from flexfetch.client.transport import HttpxTransport, Transport, TransportResponse

__all__ = [
    "Downloader",
    "create_downloader",
    "Response",
    "format_api_response",
    "Failed",
    "FetchResult",
    "Found",
    "NotFound",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
]
