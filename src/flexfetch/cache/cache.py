"""Disk-based key to bytes store for fetched responses.

Uses :mod:`diskcache` to persist serialised responses on the filesystem.
Unlike a TTL cache, entries never expire here: freshness is decided by the
downloader through ``If-Modified-Since`` revalidation, and stale entries
are still valuable as a fallback when the origin is unreachable.

Keys are resource paths with the leading slash stripped (for example
``aliases.json`` or ``versions/symfony/framework-bundle.json``).

See Also:
    :class:`~flexfetch.models.CacheConfig` -- the Pydantic model that
    controls ``enabled``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import diskcache

from flexfetch.models import CacheConfig


class ResponseCache:
    """Disk-backed store for serialised responses.

    Satisfies the :class:`~flexfetch.cache.base.CacheStore` protocol. When
    the cache is disabled, :meth:`read` always misses and :meth:`write` is
    a no-op, so the downloader behaves as if nothing was ever cached.

    Args:
        cache_dir: Directory holding the cache (usually the per-endpoint
            directory from :func:`~flexfetch.config.endpoint_cache_dir`).
        config: Cache configuration. Defaults to an enabled cache.

    Example::

        from flexfetch.cache import ResponseCache

        cache = ResponseCache("/tmp/flex-cache")
        cache.write("aliases.json", b'{"body": {}, "headers": {}}')
        raw = cache.read("aliases.json")
    """

    def __init__(self, cache_dir: str | Path, config: Optional[CacheConfig] = None) -> None:
        self._config = config or CacheConfig()
        self._cache_dir = Path(cache_dir)
        self._cache: Optional[diskcache.Cache] = None
        if self._config.enabled:
            self._cache = diskcache.Cache(str(self._cache_dir))

    @property
    def root(self) -> str:
        """The cache directory, with a trailing separator."""
        return f"{self._cache_dir}/"

    def read(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under *key*.

        Returns:
            The stored bytes, or ``None`` on a miss, for an empty entry, or
            when caching is disabled.
        """
        if self._cache is None:
            return None
        value = self._cache.get(key)
        if not value:
            return None
        return bytes(value)

    def write(self, key: str, data: bytes) -> None:
        """Store *data* under *key*, replacing any previous entry.

        Silently ignored when caching is disabled.
        """
        if self._cache is None:
            return
        self._cache.set(key, bytes(data))

    def clear(self) -> int:
        """Remove all entries from the cache.

        Returns:
            The number of entries removed.
        """
        if self._cache is None:
            return 0
        return self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled`` (bool), and when enabled:
            ``size`` (number of entries) and ``directory`` (str path).
        """
        if self._cache is None:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._cache),
            "directory": str(self._cache_dir),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()

    def __enter__(self) -> ResponseCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
