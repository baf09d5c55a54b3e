"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~pagecache.exceptions.PageCacheError` subclass.
Shell wrappers and cron jobs can inspect the exit code to tell a cache miss
apart from a broken cache directory without parsing stderr.

Example::

    $ pagecache cache show /about
    $ echo $?
    4   # EXIT_CACHE_MISS -- nothing fresh is stored for /about
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or the request is not cacheable."""

EXIT_CACHE_MISS = 4
"""No fresh cache entry exists for the requested page."""

EXIT_STORAGE_ERROR = 5
"""The cache directory could not be created, read, or written."""
