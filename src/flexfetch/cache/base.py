"""Cache store protocol consumed by the downloader.

The downloader only needs three things from a cache: read bytes by key,
write bytes by key, and a root location to name in diagnostics. Any
object satisfying :class:`CacheStore` can be passed to
:class:`~flexfetch.client.downloader.Downloader`.
"""

from __future__ import annotations

from typing import Optional, Protocol


class CacheStore(Protocol):
    """Key to bytes storage for serialised responses."""

    @property
    def root(self) -> str:
        """Location of the store, used only for diagnostic messages."""
        ...

    def read(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under *key*, or ``None`` on a miss."""
        ...

    def write(self, key: str, data: bytes) -> None:
        """Store *data* under *key*, replacing any previous value."""
        ...
