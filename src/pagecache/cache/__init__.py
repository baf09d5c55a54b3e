"""Full-page caching for pagecache.

This package provides :class:`PageCache`, which stores gzip-compressed
rendered pages in a directory, keyed by request path and device class, and
serves them back with a refreshed diagnostic footer until they go stale.

Building blocks, leaf first:

* :mod:`~pagecache.cache.compression` -- gzip with raw-bytes fallback.
* :mod:`~pagecache.cache.keys` -- request to cache key, or "not cacheable".
* :mod:`~pagecache.cache.freshness` -- the TTL predicate.
* :mod:`~pagecache.cache.store` -- directory-backed key to blob map.
* :mod:`~pagecache.cache.footer` -- trailing diagnostic line rewrite.
* :mod:`~pagecache.cache.facade` -- :class:`PageCache` orchestration.
"""

from pagecache.cache.facade import PageCache
from pagecache.cache.keys import derive_key
from pagecache.cache.store import CacheDirectory, CacheStore, open_cache_directory

__all__ = [
    "CacheDirectory",
    "CacheStore",
    "PageCache",
    "derive_key",
    "open_cache_directory",
]
