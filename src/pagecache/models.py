"""Canonical Pydantic models shared across all pagecache modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory
or in a project-local ``pagecache.json``:
    :class:`FooterConfig`, :class:`CacheConfig`, :class:`OutputConfig`, and
    :class:`GlobalConfig`.

**Runtime models** -- passed between the request-handling layer and the
cache:
    :class:`RequestInfo`, :class:`StoredBlob`, and :class:`CacheStats`.

All models use Pydantic v2.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TTL_SECONDS = 6 * 60 * 60
"""Six hours: how long a rendered page is served from disk."""

DEFAULT_FOOTER_TEMPLATE = "<!-- Generated by pagecache in {elapsed}ms, {timestamp} -->"


def default_cache_directory() -> Path:
    """Return ``~/.pagecache/static-cache`` for the running user."""
    return Path.home() / ".pagecache" / "static-cache"


# --- Cache config ---


class FooterConfig(BaseModel):
    """Shape of the diagnostic line rewritten on every cache hit.

    The rendering pipeline appends a final line such as
    ``<!-- Generated in 231ms, 2024/05/01 10:00:00 -->`` to each page. The
    cache replaces it on every hit with a fresh one built from
    :attr:`template`, a randomised elapsed time in
    ``[elapsed_min, elapsed_max)`` and the current time.

    Example::

        FooterConfig(template="<!-- {elapsed}ms @ {timestamp} -->")
    """

    template: str = Field(
        default=DEFAULT_FOOTER_TEMPLATE,
        description="str.format template with {elapsed} and {timestamp} fields",
    )
    elapsed_min: int = Field(default=64, ge=0, description="Lowest elapsed value (ms)")
    elapsed_max: int = Field(
        default=128, description="Exclusive upper bound of the elapsed value (ms)"
    )
    timestamp_format: str = Field(
        default="%Y/%m/%d %H:%M:%S", description="strftime format of the timestamp"
    )

    @model_validator(mode="after")
    def _check_range(self) -> FooterConfig:
        if self.elapsed_max <= self.elapsed_min:
            raise ValueError("elapsed_max must be greater than elapsed_min")
        try:
            self.template.format(elapsed=0, timestamp="")
        except (AttributeError, KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Invalid footer template: {exc!r}") from exc
        return self


class CacheConfig(BaseModel):
    """Page cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable page caching")
    directory: Optional[Path] = Field(
        default=None,
        description="Cache directory (default: ~/.pagecache/static-cache)",
    )
    ttl_seconds: int = Field(
        default=DEFAULT_TTL_SECONDS, gt=0, description="Entry time-to-live in seconds"
    )
    compress_level: int = Field(
        default=9, ge=0, le=9, description="gzip compression level"
    )
    footer: FooterConfig = Field(default_factory=FooterConfig)

    def resolved_directory(self) -> Path:
        """Return :attr:`directory` with ``~`` expanded, or the default location."""
        if self.directory is None:
            return default_cache_directory()
        return self.directory.expanduser()


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`.

    Applied by the CLI root callback; ``--json`` and ``--plain`` take
    precedence over :attr:`format`.
    """

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )
    pager: bool = Field(
        default=True, description="Use pager for long output in TTY mode"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/pagecache/config.json``.

    Loaded and saved by :func:`~pagecache.config.load_global_config` and
    :func:`~pagecache.config.save_global_config`. See
    :func:`~pagecache.config.resolve_config` for the full precedence chain.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Runtime models ---


class RequestInfo(BaseModel):
    """Identity of an incoming request, as far as the cache cares.

    Built by the request-handling layer from its routing, session and
    device-classification collaborators.

    Example::

        RequestInfo(method="GET", path="/tags/python", mobile=True)
    """

    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    logged_in: bool = False
    mobile: bool = False


class StoredBlob(BaseModel):
    """Raw bytes of a cache file together with its modification time."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    modified_at: float = Field(description="POSIX timestamp of the last write")


class CacheStats(BaseModel):
    """Operator-facing summary of a cache directory."""

    enabled: bool
    directory: Optional[str] = None
    entries: int = 0
    size_bytes: int = 0
    ttl_seconds: int = DEFAULT_TTL_SECONDS
