"""Directory-backed key to blob persistence.

:class:`CacheStore` maps each cache key to one file inside a
:class:`CacheDirectory`. It knows nothing about freshness or cacheability;
the file's modification time is simply reported back alongside its bytes and
:class:`~pagecache.cache.facade.PageCache` decides what it means.

All writes use a temp-file-then-rename strategy (:func:`write_atomic`): the
payload is written to a uniquely named temporary file in the same directory,
fsynced, then moved over the final name with :func:`os.replace`. Concurrent
readers therefore see either the previous entry or the new one, never a
partially written file. Concurrent writers to the same key race, and the last
rename wins.

Every public method returns a :class:`~pagecache.results.Result`; I/O errors
never escape this module.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pagecache.exceptions import StorageError, StorageInitError
from pagecache.models import StoredBlob
from pagecache.results import Result

TEMP_PREFIX = ".pagecache."
TEMP_SUFFIX = ".tmp"


@dataclass(frozen=True)
class CacheDirectory:
    """An initialised cache directory.

    Instances only come out of :func:`open_cache_directory`, so holding one
    means the directory existed when the cache started.
    """

    path: Path


def open_cache_directory(path: Path) -> Result[CacheDirectory]:
    """Create *path* (and parents) if needed and wrap it in a :class:`CacheDirectory`.

    Returns:
        A successful result with the handle, or a failed result carrying a
        :class:`~pagecache.exceptions.StorageInitError` when the directory
        cannot be created (permissions, a regular file in the way, ...).
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return Result.failure(
            StorageInitError(f"Creates static cache dir {path} failed: {exc}")
        )
    return Result.success(CacheDirectory(path=path.resolve()))


def write_atomic(path: Path, data: bytes) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the exception re-raised.
    """
    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=TEMP_PREFIX,
            suffix=TEMP_SUFFIX,
            delete=False,
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def _is_temp_name(name: str) -> bool:
    return name.startswith(TEMP_PREFIX) and name.endswith(TEMP_SUFFIX)


class CacheStore:
    """Read, write and clear cache files under a :class:`CacheDirectory`.

    Args:
        directory: The initialised cache directory.

    Example::

        store = CacheStore(open_cache_directory(Path("/tmp/pages")).unwrap())
        store.write("_about", b"...")
        blob = store.read("_about").value
    """

    def __init__(self, directory: CacheDirectory) -> None:
        self._directory = directory

    @property
    def directory(self) -> CacheDirectory:
        """The directory this store persists into."""
        return self._directory

    def read(self, key: str) -> Result[StoredBlob]:
        """Return the bytes and modification time stored under *key*.

        A missing entry is a *successful* result whose value is ``None``.
        """
        path = self._path(key)
        if not path.ok:
            return Result.failure(path.error)
        try:
            with open(path.value, "rb") as fh:
                modified_at = os.fstat(fh.fileno()).st_mtime
                data = fh.read()
        except FileNotFoundError:
            return Result.success(None)
        except OSError as exc:
            return Result.failure(StorageError(f"Reads static file {key!r} failed: {exc}"))
        return Result.success(StoredBlob(data=data, modified_at=modified_at))

    def stat(self, key: str) -> Result[float]:
        """Return the modification time of *key*, or ``None`` if absent."""
        path = self._path(key)
        if not path.ok:
            return Result.failure(path.error)
        try:
            return Result.success(path.value.stat().st_mtime)
        except FileNotFoundError:
            return Result.success(None)
        except OSError as exc:
            return Result.failure(StorageError(f"Stats static file {key!r} failed: {exc}"))

    def write(self, key: str, data: bytes) -> Result[None]:
        """Atomically replace the entry stored under *key* with *data*."""
        path = self._path(key)
        if not path.ok:
            return Result.failure(path.error)
        try:
            write_atomic(path.value, data)
        except OSError as exc:
            return Result.failure(StorageError(f"Writes static file {key!r} failed: {exc}"))
        return Result.success()

    def clear(self) -> Result[int]:
        """Remove everything inside the cache directory, keeping the directory itself.

        Every child is attempted even if an earlier one fails.

        Returns:
            The number of top-level children removed, or a failed result if
            the directory could not be listed or any child could not be removed.
        """
        try:
            children = list(os.scandir(self._directory.path))
        except OSError as exc:
            return Result.failure(StorageError(f"Clears static cached files failed: {exc}"))

        removed = 0
        failures: list[str] = []
        for child in children:
            try:
                if child.is_dir(follow_symlinks=False):
                    shutil.rmtree(child.path)
                else:
                    os.unlink(child.path)
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as exc:
                failures.append(f"{child.name}: {exc}")

        if failures:
            return Result.failure(
                StorageError(
                    f"Clears static cached files failed for {len(failures)} "
                    f"entries: {'; '.join(failures)}"
                )
            )
        return Result.success(removed)

    def stats(self) -> Result[tuple[int, int]]:
        """Return ``(entries, size_bytes)`` for stored entries, ignoring in-flight temp files."""
        entries = 0
        size = 0
        try:
            for child in os.scandir(self._directory.path):
                if _is_temp_name(child.name) or not child.is_file(follow_symlinks=False):
                    continue
                try:
                    size += child.stat(follow_symlinks=False).st_size
                except FileNotFoundError:
                    continue
                entries += 1
        except OSError as exc:
            return Result.failure(StorageError(f"Scans static cache dir failed: {exc}"))
        return Result.success((entries, size))

    def _path(self, key: str) -> Result[Path]:
        """Map *key* to a file directly inside the cache directory."""
        if not key or key in (".", "..") or "\x00" in key:
            return Result.failure(StorageError(f"Invalid cache key: {key!r}"))
        if os.sep in key or (os.altsep is not None and os.altsep in key):
            return Result.failure(StorageError(f"Invalid cache key: {key!r}"))
        return Result.success(self._directory.path / key)
