"""Immutable response entity and the bridge to the output system.

A :class:`Response` is what :class:`~flexfetch.client.downloader.Downloader`
hands back to callers: the decoded JSON payload plus the headers last
observed from the transport. It is built either from a live transport call
or from cached bytes; both paths go through the same serialised shape::

    {"body": {...payload...}, "headers": {"Last-Modified": "...", ...}}

:func:`format_api_response` routes a response payload to stdout through
:meth:`~flexfetch.output.OutputManager.format_response`.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Optional, Union

from flexfetch.exceptions import DecodeError
from flexfetch.output import get_output

HeadersInput = Union[Mapping[str, str], Iterable[tuple[str, str]], Iterable[str]]


class Response:
    """Decoded JSON payload plus captured response headers.

    Instances are immutable: the payload is deep-copied on construction and
    on every read, and exposed through read-only mappings. Header lookup is case-insensitive
    while :attr:`headers` preserves the original names and order.

    Args:
        payload: The decoded JSON object returned by the origin.
        headers: Response headers as a mapping, as ``(name, value)`` pairs,
            or as raw ``"Name: value"`` lines. Raw lines without a colon
            (such as an ``HTTP/1.1 200 OK`` status line) are ignored.
            Repeated names are joined with ``", "``.

    Example::

        response = Response({"aliases": {}}, {"Last-Modified": "Tue, 01 Oct 2024 10:00:00 GMT"})
        response.get_header("last-modified")
    """

    __slots__ = ("_payload", "_headers", "_index")

    def __init__(self, payload: Mapping[str, Any], headers: Optional[HeadersInput] = None) -> None:
        if not isinstance(payload, Mapping):
            raise DecodeError(
                f"Response payload must be a JSON object, got {type(payload).__name__}"
            )
        pairs = _normalize_headers(headers)
        merged: dict[str, str] = {}
        index: dict[str, str] = {}
        for name, value in pairs:
            key = name.lower()
            if key in index:
                original = index[key]
                merged[original] = f"{merged[original]}, {value}"
            else:
                index[key] = name
                merged[name] = value

        object.__setattr__(self, "_payload", copy.deepcopy(dict(payload)))
        object.__setattr__(self, "_headers", merged)
        object.__setattr__(self, "_index", index)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Response is immutable")

    @property
    def payload(self) -> Mapping[str, Any]:
        """The decoded JSON payload.

        A read-only view over a deep copy, so nested values changed by the
        caller never reach the response.
        """
        return MappingProxyType(copy.deepcopy(self._payload))

    @property
    def headers(self) -> Mapping[str, str]:
        """Response headers in their original order (read-only view)."""
        return MappingProxyType(self._headers)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of header *name*, matched case-insensitively."""
        original = self._index.get(name.lower())
        if original is None:
            return default
        return self._headers[original]

    def get(self, key: str, default: Any = None) -> Any:
        """Return a deep copy of payload field *key*, or *default*."""
        if key not in self._payload:
            return default
        return copy.deepcopy(self._payload[key])

    # ------------------------------------------------------------------ #
    # Serialisation
    # ------------------------------------------------------------------ #

    def to_json(self) -> dict[str, Any]:
        """Return the serialisable form ``{"body": ..., "headers": ...}``."""
        return {
            "body": copy.deepcopy(self._payload),
            "headers": dict(self._headers),
        }

    def to_bytes(self) -> bytes:
        """Serialise the response to the bytes stored in the cache."""
        return json.dumps(self.to_json(), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_json(cls, data: Any, source: Optional[str] = None) -> Response:
        """Rebuild a response from its serialised form.

        Args:
            data: The value produced by :meth:`to_json`.
            source: Where *data* came from, named in error messages.

        Raises:
            DecodeError: If *data* does not have the serialised shape.
        """
        where = f" in {source}" if source else ""
        if not isinstance(data, Mapping) or "body" not in data:
            raise DecodeError(f"Invalid serialised response{where}", source=source)
        body = data["body"]
        headers = data.get("headers") or {}
        if not isinstance(body, Mapping):
            raise DecodeError(f"Serialised response body is not an object{where}", source=source)
        if not isinstance(headers, (Mapping, list)):
            raise DecodeError(f"Serialised response headers are invalid{where}", source=source)
        return cls(body, headers)

    @classmethod
    def from_bytes(cls, raw: bytes, source: Optional[str] = None) -> Response:
        """Rebuild a response from cached bytes.

        Raises:
            DecodeError: If *raw* is not valid JSON or not a serialised
                response. The message names *source*.
        """
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            where = f" {source}" if source else ""
            raise DecodeError(f"Could not decode cached response{where}: {exc}", source=source) from exc
        return cls.from_json(data, source=source)

    # ------------------------------------------------------------------ #
    # Dunder helpers
    # ------------------------------------------------------------------ #

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Response):
            return NotImplemented
        return self._payload == other._payload and self._headers == other._headers

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        keys = ", ".join(list(self._payload)[:5])
        return f"Response(payload_keys=[{keys}], headers={len(self._headers)})"


def _normalize_headers(headers: Optional[HeadersInput]) -> list[tuple[str, str]]:
    """Flatten any accepted header shape into ``(name, value)`` pairs."""
    if headers is None:
        return []
    if isinstance(headers, Mapping):
        return [(str(k), str(v)) for k, v in headers.items()]

    pairs: list[tuple[str, str]] = []
    for item in headers:
        if isinstance(item, str):
            name, sep, value = item.partition(":")
            if not sep or not name.strip() or " " in name.strip():
                continue
            pairs.append((name.strip(), value.strip()))
        else:
            name, value = item
            pairs.append((str(name), str(value)))
    return pairs


def format_api_response(response: Response) -> None:
    """Print a response payload using the global output system.

    Args:
        response: The :class:`Response` to display.
    """
    output = get_output()
    last_modified = response.get_header("last-modified")
    if last_modified:
        output.debug(f"Last-Modified: {last_modified}")
    output.format_response(response.to_json()["body"])
