"""Typer application and CLI entry point for pagecache.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

The root callback also routes library logging (``logging.getLogger("pagecache")``)
to stderr through a :class:`rich.logging.RichHandler`, so cache decisions
logged by :class:`~pagecache.cache.facade.PageCache` show up with
``--verbose``.

See Also:
    :mod:`pagecache.config`: Configuration resolution.
    :mod:`pagecache.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from pagecache import __version__
from pagecache.commands.cache import cache_app
from pagecache.commands.config import config_app
from pagecache.exceptions import ConfigError
from pagecache.exit_codes import EXIT_GENERIC_FAILURE
from pagecache.models import OutputConfig


app = typer.Typer(
    name="pagecache",
    help="Inspect and maintain a full-page response cache.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.add_typer(cache_app, name="cache", help="Inspect and clear cached pages.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"pagecache {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, console: Console) -> None:
    """Send ``pagecache.*`` log records to stderr via Rich."""
    package_logger = logging.getLogger("pagecache")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    handler = RichHandler(console=console, show_path=False, markup=False)
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _output_preferences() -> OutputConfig:
    """Return the configured output defaults.

    A broken config file falls back to the defaults here; the sub-command
    that needs the config reports the error itself, and ``config reset``
    must stay usable.
    """
    from pagecache.config import resolve_config

    try:
        return resolve_config().output
    except ConfigError:
        return OutputConfig()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", "-d", help="Cache directory override."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Entry time-to-live in seconds."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~pagecache.output.OutputManager` and
    logging from CLI flags layered over the configured ``output`` defaults,
    and stores shared options (``cache_dir``, ``ttl``, ``force``) in the
    Typer context for sub-commands.
    """
    from pagecache.output import OutputFormat, OutputManager, set_output

    preferences = _output_preferences()
    fmt = OutputFormat(preferences.format)
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
        use_pager=preferences.pager,
    )
    set_output(output)
    _configure_logging(verbose, output.stderr_console)

    ctx.ensure_object(dict)
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["ttl"] = ttl
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from pagecache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``pagecache`` console script.

    :class:`~pagecache.exceptions.PageCacheError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a crash
    log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from pagecache.exceptions import PageCacheError
        from pagecache.output import error

        if isinstance(exc, PageCacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
