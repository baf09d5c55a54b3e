"""Full-page cache facade used by the request-handling layer.

:class:`PageCache` combines key derivation, the freshness policy, gzip and
the directory store behind three calls: :meth:`~PageCache.get` before
rendering, :meth:`~PageCache.put` after rendering, and :meth:`~PageCache.clear`
when an operator wants everything regenerated.

The cache is purely an optimisation. Nothing it does may break page serving,
so this class is the single place where failures reported by
:class:`~pagecache.cache.store.CacheStore` and
:mod:`~pagecache.cache.compression` are absorbed: they are logged, and the
operation degrades to a miss (reads) or to skipping the cache (writes).
"""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Callable, Optional

from pagecache.cache.compression import compress, decompress
from pagecache.cache.footer import format_now, random_elapsed, rewrite_footer
from pagecache.cache.freshness import is_stale
from pagecache.cache.keys import key_for
from pagecache.cache.store import CacheDirectory, CacheStore, open_cache_directory
from pagecache.models import CacheConfig, CacheStats, RequestInfo

logger = logging.getLogger(__name__)


class PageCache:
    """Disk-backed cache of rendered pages for anonymous ``GET`` requests.

    Args:
        config: Cache configuration (TTL, compression level, footer shape).
        directory: The initialised cache directory, or ``None`` to run with
            caching disabled. Usually supplied by :meth:`from_config`.
        clock: Returns the current POSIX time; injectable for tests.
        rng: Random source for the footer's elapsed time.

    Example::

        cache = PageCache.from_config(CacheConfig(directory=Path("/var/cache/blog")))
        request = RequestInfo(method="GET", path="/about")
        html = cache.get(request)
        if html is None:
            cache.put(request, render("/about"))
    """

    def __init__(
        self,
        config: CacheConfig,
        directory: Optional[CacheDirectory],
        *,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._clock = clock
        self._rng = rng
        self._store: Optional[CacheStore] = None
        if config.enabled and directory is not None:
            self._store = CacheStore(directory)

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        *,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> PageCache:
        """Open the configured directory once and build a cache around it.

        If the directory cannot be created the failure is logged here, once,
        and the returned cache stays disabled for its whole lifetime.
        """
        directory: Optional[CacheDirectory] = None
        if config.enabled:
            opened = open_cache_directory(config.resolved_directory())
            if opened.ok:
                directory = opened.value
            else:
                logger.error("Page cache disabled: %s", opened.error)
        return cls(config, directory, clock=clock, rng=rng)

    @property
    def enabled(self) -> bool:
        """Whether a usable cache directory backs this instance."""
        return self._store is not None

    @property
    def directory(self) -> Optional[Path]:
        """The cache directory, or ``None`` when disabled."""
        if self._store is None:
            return None
        return self._store.directory.path

    @property
    def config(self) -> CacheConfig:
        """The configuration this cache was built with."""
        return self._config

    def key_for(self, request: RequestInfo) -> Optional[str]:
        """Return the cache key for *request*, or ``None`` if it bypasses the cache."""
        return key_for(request, directory_available=self.enabled)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get(self, request: RequestInfo) -> Optional[str]:
        """Return the cached page for *request* with a fresh footer, or ``None``.

        ``None`` means: not cacheable, not stored, stale, or unreadable.
        """
        key = self.key_for(request)
        if key is None or self._store is None:
            return None

        read = self._store.read(key)
        if not read.ok:
            logger.error("Reads static file failed: %s", read.error)
            return None
        blob = read.value
        if blob is None:
            logger.debug("Page cache miss for %s", key)
            return None

        now = self._clock()
        if is_stale(blob.modified_at, now, self._config.ttl_seconds):
            logger.debug("Page cache entry %s is stale", key)
            return None

        inflated = decompress(blob.data)
        if inflated.ok:
            html = inflated.value
        else:
            logger.debug("Serving %s as raw bytes: %s", key, inflated.error)
            html = blob.data

        footer = self._config.footer
        content = html.decode("utf-8", errors="replace")
        try:
            served = rewrite_footer(
                content,
                random_elapsed(footer, self._rng),
                format_now(footer, now),
                footer.template,
            )
        except (AttributeError, KeyError, IndexError, ValueError) as exc:
            logger.error("Rewrites footer of %s failed: %s", key, exc)
            return None
        logger.debug("Page cache hit for %s", key)
        return served

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def put(self, request: RequestInfo, body: bytes) -> bool:
        """Store the rendered *body* of *request* unless a fresh entry already exists.

        Returns:
            ``True`` if the entry was written, ``False`` if the request is not
            cacheable, a fresh entry was kept, or the write failed.
        """
        key = self.key_for(request)
        if key is None or self._store is None:
            return False

        existing = self._store.stat(key)
        if not existing.ok:
            logger.error("Writes static file failed: %s", existing.error)
            return False
        if existing.value is not None and not is_stale(
            existing.value, self._clock(), self._config.ttl_seconds
        ):
            logger.debug("Page cache entry %s still fresh, write skipped", key)
            return False

        compressed = compress(body, self._config.compress_level)
        if compressed.ok:
            payload = compressed.value
        else:
            logger.warning("Storing %s uncompressed: %s", key, compressed.error)
            payload = body

        written = self._store.write(key, payload)
        if not written.ok:
            logger.error("Writes static file failed: %s", written.error)
            return False
        logger.debug("Page cache stored %s (%d bytes)", key, len(payload))
        return True

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear(self) -> int:
        """Remove every cached page. Returns the number of entries removed."""
        if self._store is None:
            return 0
        cleared = self._store.clear()
        if not cleared.ok:
            logger.error("Clears static cached files failed: %s", cleared.error)
            return 0
        logger.info("Cleared %d static cached files", cleared.value)
        return cleared.value

    def stats(self) -> CacheStats:
        """Summarise the cache directory for operators."""
        if self._store is None:
            return CacheStats(enabled=False, ttl_seconds=self._config.ttl_seconds)
        scanned = self._store.stats()
        if not scanned.ok:
            logger.error("Scans static cache dir failed: %s", scanned.error)
            entries, size = 0, 0
        else:
            entries, size = scanned.value
        return CacheStats(
            enabled=True,
            directory=str(self._store.directory.path),
            entries=entries,
            size_bytes=size,
            ttl_seconds=self._config.ttl_seconds,
        )
