"""Exception hierarchy for flexfetch.

All exceptions inherit from :class:`FlexfetchError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`flexfetch.exit_codes`.
The top-level error handler in :func:`flexfetch.app.main` catches
``FlexfetchError`` and exits with the appropriate code.

Transport failures share the :class:`TransportError` base so that the
downloader can tell "the origin said no" (:class:`NotFoundError`) apart
from everything that is worth retrying, by type rather than by message.

Subclass hierarchy::

    FlexfetchError            (exit 1)
    +-- ConfigError           (exit 1)
    +-- DecodeError           (exit 7)
    +-- TransportError        (exit 1)
        +-- NotFoundError     (exit 4)
        +-- ServerError       (exit 5)
        +-- ConnectionError_  (exit 6)
"""

from __future__ import annotations

from typing import Optional

from flexfetch.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class FlexfetchError(Exception):
    """Base exception for all flexfetch errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(FlexfetchError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class DecodeError(FlexfetchError):
    """Raised when a response body or cached entry is not a JSON object.

    Args:
        message: Description of the decoding problem.
        source: The URL or cache location the bytes came from.
    """

    exit_code = EXIT_DECODE_ERROR

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class TransportError(FlexfetchError):
    """Base class for failures reported by a transport.

    Args:
        message: Human-readable error description.
        url: The URL that was being fetched.
        status_code: HTTP status code of the failed response, or ``None``
            when no response was received at all.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NotFoundError(TransportError):
    """Raised when the origin returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = 404):
        super().__init__(message, url=url, status_code=status_code)


class ServerError(TransportError):
    """Raised when the origin answers with any other HTTP error status."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(TransportError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
