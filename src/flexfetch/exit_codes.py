"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~flexfetch.exceptions.FlexfetchError` subclass.
Shell wrappers and CI scripts can inspect the exit code to tell a missing
resource from an unreachable origin without parsing stderr.

Example::

    $ flexfetch get /recipes/unknown/package.json
    $ echo $?
    4   # EXIT_NOT_FOUND -- the origin has no such resource
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The origin answered with an HTTP error status and no cached copy was available."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODE_ERROR = 7
"""A response body or cached entry could not be decoded."""
