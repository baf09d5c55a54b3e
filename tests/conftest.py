"""Shared test fixtures for pagecache.

Provides fixtures for building caches in disposable directories, a
controllable clock, isolated config environments, and CLI runners. These
fixtures are discovered by pytest and available to every test module.
"""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pagecache.cache import PageCache
from pagecache.models import CacheConfig, FooterConfig, RequestInfo
from pagecache.output import OutputFormat, OutputManager, reset_output, set_output

FOOTER_TEMPLATE = "<!-- served in {elapsed}ms at {timestamp} -->"

PAGE = (
    "<html>\n"
    "<body><h1>Hello</h1></body>\n"
    "</html>\n"
    "<!-- Generated in 532ms, 2020/04/14 10:00:00 -->"
).encode("utf-8")


class FakeClock:
    """Manually advanced replacement for :func:`time.time`."""

    def __init__(self, now: float | None = None) -> None:
        self.now = time.time() if now is None else now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state() -> None:
    """Reset the global OutputManager and CLI log handlers after every test.

    The CLI callback binds a Rich log handler to the stderr stream of the
    current invocation; once CliRunner restores the real streams that handler
    points at a closed file.
    """
    yield
    reset_output()
    package_logger = logging.getLogger("pagecache")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Directory the cache under test writes into (created lazily by the cache)."""
    return tmp_path / "static-cache"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_config(cache_dir: Path) -> CacheConfig:
    return CacheConfig(
        directory=cache_dir,
        ttl_seconds=3600,
        footer=FooterConfig(template=FOOTER_TEMPLATE),
    )


@pytest.fixture
def cache(cache_config: CacheConfig, clock: FakeClock) -> PageCache:
    """An enabled PageCache backed by tmp_path with a fake clock."""
    return PageCache.from_config(cache_config, clock=clock, rng=random.Random(7))


@pytest.fixture
def anonymous_get() -> RequestInfo:
    return RequestInfo(method="GET", path="/articles/42")


@pytest.fixture
def page() -> bytes:
    """A rendered page whose last line is the diagnostic footer."""
    return PAGE


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points HOME and the XDG base directories at subdirectories of tmp_path,
    clears all PAGECACHE_* environment variables and changes the working
    directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("pagecache.config._is_xdg_platform", lambda: True)

    for var in ["PAGECACHE_DIR", "PAGECACHE_TTL_SECONDS", "PAGECACHE_ENABLED"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output / CLI fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Typer CLI test runner."""
    return CliRunner()
