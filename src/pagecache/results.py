"""Explicit success/failure container for the storage and compression layers.

:class:`~pagecache.cache.store.CacheStore` and the functions in
:mod:`pagecache.cache.compression` never raise on I/O or codec failures.
They return a :class:`Result` instead, and
:class:`~pagecache.cache.facade.PageCache` is the one place that decides what
a failure means (usually: treat it as a cache miss, or skip caching).

Example::

    result = compress(b"<html>...</html>")
    if result.ok:
        payload = result.value
    else:
        logger.warning("Falling back to raw bytes: %s", result.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from pagecache.exceptions import PageCacheError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation that may fail without raising.

    Exactly one of :attr:`value` or :attr:`error` is meaningful: when
    :attr:`error` is ``None`` the operation succeeded and :attr:`value` holds
    its return value (which may itself legitimately be ``None``).

    Attributes:
        value: The successful return value.
        error: The failure, as a :class:`~pagecache.exceptions.PageCacheError`.
    """

    value: Optional[T] = None
    error: Optional[PageCacheError] = None

    @property
    def ok(self) -> bool:
        """``True`` when the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> Result[T]:
        """Build a successful result wrapping *value*."""
        return cls(value=value)

    @classmethod
    def failure(cls, error: PageCacheError) -> Result[T]:
        """Build a failed result carrying *error*."""
        return cls(error=error)

    def unwrap(self) -> Optional[T]:
        """Return :attr:`value`, raising :attr:`error` if the operation failed.

        Used on CLI paths where a failure should surface as an exit code
        rather than be absorbed.
        """
        if self.error is not None:
            raise self.error
        return self.value
