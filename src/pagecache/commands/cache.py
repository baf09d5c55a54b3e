"""Cache commands -- inspect and maintain the page cache from the shell.

Provides the ``pagecache cache`` sub-command group:

* ``key`` -- show the cache key a request maps to.
* ``show`` -- print the page a request would be served from cache.
* ``stats`` -- entry count and disk usage.
* ``clear`` -- remove every cached page.

Commands resolve the effective configuration through
:func:`~pagecache.config.resolve_config`, honouring the global
``--cache-dir`` and ``--ttl`` flags stored in the Typer context.
"""

from __future__ import annotations

from typing import Optional

import typer

from pagecache.cache import PageCache, derive_key
from pagecache.exceptions import (
    CacheMissError,
    InvalidUsageError,
    PageCacheError,
    StorageInitError,
)
from pagecache.models import RequestInfo
from pagecache.output import error, info, print_data, print_page, print_record, success


cache_app = typer.Typer(no_args_is_help=True)


def _ctx_value(ctx: typer.Context, name: str) -> Optional[object]:
    return ctx.obj.get(name) if ctx.obj else None


def _open_cache(ctx: typer.Context, *, require_enabled: bool = True) -> PageCache:
    """Build a :class:`PageCache` from the resolved configuration.

    Raises:
        InvalidUsageError: If caching is switched off and *require_enabled*.
        StorageInitError: If the cache directory could not be created.
    """
    from pagecache.config import resolve_config

    config = resolve_config(
        cli_cache_dir=_ctx_value(ctx, "cache_dir"),  # type: ignore[arg-type]
        cli_ttl=_ctx_value(ctx, "ttl"),  # type: ignore[arg-type]
    )
    cache = PageCache.from_config(config.cache)
    if require_enabled and not cache.enabled:
        if not config.cache.enabled:
            raise InvalidUsageError("Page caching is disabled in the configuration")
        raise StorageInitError(
            f"Cache directory {config.cache.resolved_directory()} is unavailable"
        )
    return cache


def _fail(exc: PageCacheError) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


@cache_app.command("key")
def cache_key(
    path: str = typer.Argument(help="Request URI path, e.g. /articles/42."),
    mobile: bool = typer.Option(False, "--mobile", "-m", help="Mobile client."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    logged_in: bool = typer.Option(
        False, "--logged-in", help="Pretend the visitor has a session."
    ),
) -> None:
    """Print the cache key a request maps to.

    Exits with code 2 when the request would bypass the cache.

    Example::

        pagecache cache key /articles/42 --mobile
    """
    key = derive_key(method, path, logged_in, mobile)
    if key is None:
        raise _fail(InvalidUsageError(f"{method.upper()} {path} is not cacheable"))
    print_data(key)


@cache_app.command("show")
def cache_show(
    ctx: typer.Context,
    path: str = typer.Argument(help="Request URI path, e.g. /articles/42."),
    mobile: bool = typer.Option(False, "--mobile", "-m", help="Mobile client."),
) -> None:
    """Print the page an anonymous GET for PATH would be served from cache.

    The diagnostic footer is rewritten exactly as it would be for a visitor.
    Exits with code 4 when no fresh entry exists.

    Example::

        pagecache cache show /about
        pagecache --plain cache show /about --mobile > about.html
    """
    try:
        cache = _open_cache(ctx)
        html = cache.get(RequestInfo(method="GET", path=path, mobile=mobile))
        if html is None:
            raise CacheMissError(f"No fresh cache entry for {path}")
    except PageCacheError as exc:
        raise _fail(exc) from None
    print_page(html)


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show entry count, disk usage, directory and TTL.

    Example::

        pagecache cache stats
        pagecache --json cache stats
    """
    try:
        cache = _open_cache(ctx, require_enabled=False)
    except PageCacheError as exc:
        raise _fail(exc) from None
    print_record(cache.stats().model_dump(mode="json"), title="Page cache")


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached page.

    Asks for confirmation unless ``--force`` is active.

    Example::

        pagecache --force cache clear
    """
    force = bool(_ctx_value(ctx, "force"))
    try:
        cache = _open_cache(ctx)
    except PageCacheError as exc:
        raise _fail(exc) from None

    if not force:
        confirmed = typer.confirm(f"Remove all cached pages in {cache.directory}?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    removed = cache.clear()
    success(f"Removed {removed} cached entries.")
