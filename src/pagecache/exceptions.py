"""Exception hierarchy for pagecache.

All exceptions inherit from :class:`PageCacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`pagecache.exit_codes`.

Inside the library these exceptions rarely propagate: the storage and
compression layers hand them back wrapped in a :class:`~pagecache.results.Result`
and :class:`~pagecache.cache.facade.PageCache` logs and absorbs them. They are
raised for real only on the CLI and configuration paths, where the top-level
handler in :func:`pagecache.app.main` turns them into an exit status.

Subclass hierarchy::

    PageCacheError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- CacheMissError      (exit 4)
    +-- StorageError        (exit 5)
    |   +-- StorageInitError (exit 5)
    +-- CompressionError    (exit 1)
    +-- ConfigError         (exit 1)
"""

from pagecache.exit_codes import (
    EXIT_CACHE_MISS,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_STORAGE_ERROR,
)


class PageCacheError(Exception):
    """Base exception for all pagecache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(PageCacheError):
    """Raised for invalid CLI arguments or a request that can never be cached."""

    exit_code = EXIT_INVALID_USAGE


class CacheMissError(PageCacheError):
    """Raised by the CLI when no fresh entry exists for a page."""

    exit_code = EXIT_CACHE_MISS


class StorageError(PageCacheError):
    """Raised when a cache entry cannot be read, written, or cleared."""

    exit_code = EXIT_STORAGE_ERROR


class StorageInitError(StorageError):
    """Raised when the cache directory cannot be created.

    A :class:`~pagecache.cache.facade.PageCache` that hits this error at
    startup stays disabled for its whole lifetime.
    """


class CompressionError(PageCacheError):
    """Raised when gzip compression or decompression of a payload fails."""


class ConfigError(PageCacheError):
    """Raised for configuration problems (invalid JSON, bad values, bad env vars)."""
