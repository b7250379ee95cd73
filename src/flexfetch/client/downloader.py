"""Resilient fetch-with-cache downloader.

This module provides :class:`Downloader`, the single entry point for
reading JSON resources from the origin. For every path it:

- **Attaches session identity** -- a per-instance ``Package-Session``
  token and, when set, a ``Project`` header.
- **Revalidates cached copies** -- when the cache holds a response with a
  ``Last-Modified`` header, the request is sent with
  ``If-Modified-Since`` and a ``304`` keeps the cached response.
- **Retries transient failures** -- up to three attempts with a fixed
  ~100 ms pause between them. A 404 is never retried.
- **Degrades to stale data** -- when retries are exhausted and a cached
  copy exists, the cached copy is returned and a one-time notice says the
  data may be out of date.
- **Persists fresh responses** -- every fetched response that carries
  ``Last-Modified`` is written back to the cache.

See Also:
    :class:`~flexfetch.client.transport.HttpxTransport` and
    :class:`~flexfetch.cache.ResponseCache` for the default collaborators.
"""

from __future__ import annotations

import json
import os
import secrets
import time
from typing import Optional

from flexfetch.cache.base import CacheStore
from flexfetch.cache.cache import ResponseCache
from flexfetch.client.response import Response
from flexfetch.client.result import Failed, FetchResult, Found, NotFound
from flexfetch.client.transport import HttpxTransport, Transport, TransportResponse
from flexfetch.config import ENV_ENDPOINT, endpoint_cache_dir, normalize_endpoint
from flexfetch.exceptions import (
    DecodeError,
    FlexfetchError,
    NotFoundError,
    TransportError,
)
from flexfetch.models import DEFAULT_ENDPOINT, GlobalConfig, RequestConfig
from flexfetch.output import get_output

SESSION_HEADER = "Package-Session"
PROJECT_HEADER = "Project"
IF_MODIFIED_SINCE = "If-Modified-Since"
LAST_MODIFIED = "last-modified"


class Downloader:
    """Fetch JSON resources by path with caching, retry, and stale fallback.

    Args:
        transport: Performs the HTTP GETs.
        cache: Stores serialised responses keyed by path.
        endpoint: Base URL of the origin. Falls back to the
            ``FLEXFETCH_ENDPOINT`` environment variable, then to
            :data:`~flexfetch.models.DEFAULT_ENDPOINT`. Trailing slashes
            are trimmed.
        request_config: Attempt budget and inter-attempt delay.

    Example::

        downloader = Downloader(HttpxTransport(), ResponseCache(cache_dir))
        downloader.project_id = "01HXYZ..."
        response = downloader.get("/aliases.json")
        if response is None:
            ...  # the origin has no such resource
    """

    def __init__(
        self,
        transport: Transport,
        cache: CacheStore,
        endpoint: Optional[str] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self._transport = transport
        self._cache = cache
        self._endpoint = normalize_endpoint(
            endpoint or os.environ.get(ENV_ENDPOINT) or DEFAULT_ENDPOINT
        )
        self._config = request_config or RequestConfig()
        self._session_token = secrets.token_hex(16)
        self._project_id: Optional[str] = None
        self._degraded = False

    # ------------------------------------------------------------------ #
    # Session state
    # ------------------------------------------------------------------ #

    @property
    def endpoint(self) -> str:
        """Base URL every path is resolved against."""
        return self._endpoint

    @property
    def session_token(self) -> str:
        """Random token sent as ``Package-Session``; fixed for this instance."""
        return self._session_token

    @property
    def project_id(self) -> Optional[str]:
        """Project identity sent as ``Project``, if any."""
        return self._project_id

    @project_id.setter
    def project_id(self, value: Optional[str]) -> None:
        self._project_id = value or None

    @property
    def degraded(self) -> bool:
        """Whether a request has already fallen back to cached data."""
        return self._degraded

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def fetch(self, path: str, headers: Optional[dict[str, str]] = None) -> FetchResult:
        """Fetch *path* and report the outcome as a tagged result.

        Args:
            path: Resource path relative to the endpoint. A leading slash
                is optional.
            headers: Extra request headers.

        Returns:
            :class:`Found` with the response, :class:`NotFound` when the
            origin reports a 404, or :class:`Failed` carrying the error
            when retries were exhausted with no cached copy or when a body
            could not be decoded.
        """
        cache_key = path.lstrip("/")
        url = f"{self._endpoint}/{cache_key}"
        try:
            response = self._get(url, cache_key, headers)
        except NotFoundError as exc:
            get_output().debug(f"Not found: {url}")
            return NotFound(url=exc.url or url)
        except FlexfetchError as exc:
            return Failed(error=exc)
        return Found(response=response)

    def get(self, path: str, headers: Optional[dict[str, str]] = None) -> Optional[Response]:
        """Fetch *path*, returning ``None`` when the origin reports a 404.

        Raises:
            TransportError: When all attempts failed and nothing is cached.
            DecodeError: When the origin body or the cached entry is not
                a valid serialised JSON object.
        """
        result = self.fetch(path, headers)
        if isinstance(result, Found):
            return result.response
        if isinstance(result, NotFound):
            return None
        raise result.error

    def close(self) -> None:
        """Close the transport and cache when they support it."""
        for collaborator in (self._transport, self._cache):
            closer = getattr(collaborator, "close", None)
            if callable(closer):
                closer()

    def __enter__(self) -> Downloader:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get(self, url: str, cache_key: str, headers: Optional[dict[str, str]]) -> Response:
        request_headers = self._build_headers(headers)

        contents = self._cache.read(cache_key)
        if contents:
            cached = Response.from_bytes(contents, self._cache_location(cache_key))
            last_modified = cached.get_header(LAST_MODIFIED)
            if last_modified:
                get_output().debug(f"Cache hit: {cache_key} (last modified {last_modified})")
                fresh = self._fetch_if_modified(url, cache_key, last_modified, request_headers)
                return cached if fresh is None else fresh

        return self._fetch(url, cache_key, request_headers)

    def _fetch(self, url: str, cache_key: str, headers: dict[str, str]) -> Response:
        """Unconditional fetch; falls back to any cached copy once retries run out."""
        try:
            result = self._request_with_retries(url, headers)
        except NotFoundError:
            raise
        except TransportError as exc:
            contents = self._cache.read(cache_key)
            if not contents:
                raise
            self._switch_to_degraded_mode(exc, url)
            return Response.from_bytes(contents, self._cache_location(cache_key))

        return self._parse(result, url, cache_key)

    def _fetch_if_modified(
        self,
        url: str,
        cache_key: str,
        last_modified: str,
        headers: dict[str, str],
    ) -> Optional[Response]:
        """Conditional fetch; ``None`` means the cached response stays in use."""
        conditional = {**headers, IF_MODIFIED_SINCE: last_modified}
        try:
            result = self._request_with_retries(url, conditional)
        except NotFoundError:
            raise
        except TransportError as exc:
            self._switch_to_degraded_mode(exc, url)
            return None

        if result.not_modified:
            get_output().debug(f"Not modified: {url}")
            return None

        return self._parse(result, url, cache_key)

    def _request_with_retries(self, url: str, headers: dict[str, str]) -> TransportResponse:
        """Run the fixed-delay attempt loop.

        Each attempt ends in one of three states: success (returned),
        terminal failure (404, re-raised at once), or retryable failure.
        A retryable failure on the last attempt is re-raised so the
        caller can decide between cache fallback and propagation.
        """
        max_attempts = self._config.max_retries
        output = get_output()

        attempt = 1
        while True:
            try:
                return self._transport.fetch(self._endpoint, url, headers)
            except NotFoundError:
                raise
            except TransportError as exc:
                if attempt >= max_attempts:
                    output.debug(f"Giving up on {url} after {attempt} attempts: {exc}")
                    raise
                output.debug(
                    f"Attempt {attempt}/{max_attempts} for {url} failed: {exc}, "
                    f"retrying in {self._config.retry_delay}s"
                )
                time.sleep(self._config.retry_delay)
                attempt += 1

    def _parse(self, result: TransportResponse, url: str, cache_key: str) -> Response:
        """Decode a body, surface origin notices, and persist when cacheable."""
        try:
            data = json.loads(result.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(f"\"{url}\" does not contain valid JSON: {exc}", source=url) from exc
        if not isinstance(data, dict):
            raise DecodeError(
                f"\"{url}\" must contain a JSON object, got {type(data).__name__}",
                source=url,
            )

        output = get_output()
        if data.get("warning"):
            output.warning(f"Warning from {url}: {data['warning']}")
        if data.get("info"):
            output.info(f"Info from {url}: {data['info']}")

        response = Response(data, result.headers)
        if response.get_header(LAST_MODIFIED):
            self._cache.write(cache_key, response.to_bytes())
            output.debug(f"Cached {cache_key}")

        return response

    def _switch_to_degraded_mode(self, exc: Exception, url: str) -> None:
        if not self._degraded:
            output = get_output()
            output.degraded(str(exc))
            output.degraded(
                f"{url} could not be fully loaded, package information was loaded "
                "from the local cache and may be out of date"
            )
        self._degraded = True

    def _build_headers(self, extra: Optional[dict[str, str]]) -> dict[str, str]:
        """Merge caller headers with the engine's own, which always win.

        Header names are case-insensitive, so a caller's ``package-session``
        or ``if-modified-since`` is dropped rather than sent twice.
        """
        owned = {SESSION_HEADER.lower(), IF_MODIFIED_SINCE.lower()}
        if self._project_id:
            owned.add(PROJECT_HEADER.lower())
        headers = {name: value for name, value in (extra or {}).items() if name.lower() not in owned}
        headers[SESSION_HEADER] = self._session_token
        if self._project_id:
            headers[PROJECT_HEADER] = self._project_id
        return headers

    def _cache_location(self, cache_key: str) -> str:
        return f"{self._cache.root}{cache_key}"


def create_downloader(
    config: GlobalConfig,
    transport: Optional[Transport] = None,
    cache: Optional[CacheStore] = None,
) -> Downloader:
    """Build a :class:`Downloader` from a resolved configuration.

    Args:
        config: Effective configuration, usually from
            :func:`~flexfetch.config.resolve_config`.
        transport: Overrides the default :class:`HttpxTransport`.
        cache: Overrides the default per-endpoint :class:`ResponseCache`.

    Returns:
        A downloader with ``project_id`` already applied.
    """
    if transport is None:
        transport = HttpxTransport(config.request)
    if cache is None:
        cache = ResponseCache(endpoint_cache_dir(config.endpoint), config.cache)

    downloader = Downloader(
        transport,
        cache,
        endpoint=config.endpoint,
        request_config=config.request,
    )
    downloader.project_id = config.project_id
    return downloader
