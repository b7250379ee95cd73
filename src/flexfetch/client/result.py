"""Tagged outcome of a :meth:`~flexfetch.client.downloader.Downloader.fetch` call.

Callers branch on the variant instead of catching status-carrying
exceptions::

    result = downloader.fetch("aliases.json")
    if isinstance(result, Found):
        use(result.response)
    elif isinstance(result, NotFound):
        skip()
    else:
        raise result.error
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from flexfetch.client.response import Response
from flexfetch.exceptions import FlexfetchError


@dataclass(frozen=True)
class Found:
    """The resource was fetched, revalidated, or served from cache."""

    response: Response


@dataclass(frozen=True)
class NotFound:
    """The origin reported that the resource does not exist."""

    url: str


@dataclass(frozen=True)
class Failed:
    """Retries were exhausted with nothing to fall back to, or data was malformed."""

    error: FlexfetchError


FetchResult = Union[Found, NotFound, Failed]
