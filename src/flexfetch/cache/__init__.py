"""Disk-based response caching for flexfetch.

This package provides :class:`ResponseCache`, a key to bytes store backed
by :mod:`diskcache`, and the :class:`CacheStore` protocol that the
downloader depends on. Entries are keyed by resource path and hold the
serialised form of a :class:`~flexfetch.client.response.Response`.

The cache is consumed by :class:`~flexfetch.client.downloader.Downloader`
and is controlled by the ``cache`` section of the global configuration
(:class:`~flexfetch.models.CacheConfig`).
"""

from flexfetch.cache.base import CacheStore
from flexfetch.cache.cache import ResponseCache

__all__ = ["CacheStore", "ResponseCache"]
