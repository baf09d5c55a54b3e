"""Time-to-live policy shared by reads and writes."""

from __future__ import annotations


def is_stale(stored_timestamp: float, now: float, ttl: float) -> bool:
    """Return ``True`` once an entry written at *stored_timestamp* has expired.

    The same predicate drives both sides of the cache: a stale entry is a miss
    on read, and a fresh entry makes :meth:`~pagecache.cache.facade.PageCache.put`
    discard the incoming write.

    Args:
        stored_timestamp: POSIX time the entry was last written.
        now: Current POSIX time.
        ttl: Time-to-live in seconds.
    """
    return now - stored_timestamp >= ttl
