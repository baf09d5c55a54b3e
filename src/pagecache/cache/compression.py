"""gzip compression of page payloads.

Both directions report failure through a :class:`~pagecache.results.Result`
instead of raising. Callers fall back to the raw bytes symmetrically: a
payload that could not be compressed is stored as-is, and a stored payload
that does not decompress is served as-is.
"""

from __future__ import annotations

import gzip
import zlib

from pagecache.exceptions import CompressionError
from pagecache.results import Result

_CODEC_ERRORS = (OSError, EOFError, ValueError, TypeError, zlib.error)


def compress(data: bytes, level: int = 9) -> Result[bytes]:
    """gzip *data* at *level*.

    Returns:
        A successful result with the compressed bytes, or a failed result
        carrying a :class:`~pagecache.exceptions.CompressionError`.
    """
    try:
        return Result.success(gzip.compress(data, compresslevel=level))
    except _CODEC_ERRORS as exc:
        return Result.failure(CompressionError(f"Gzip failed: {exc}"))


def decompress(data: bytes) -> Result[bytes]:
    """Inflate gzip *data*.

    Non-gzip input (for example a payload stored raw after a compression
    failure) yields a failed result.
    """
    try:
        return Result.success(gzip.decompress(data))
    except _CODEC_ERRORS as exc:
        return Result.failure(CompressionError(f"Ungzip failed: {exc}"))
