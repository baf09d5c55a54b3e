"""Tests for the ``pagecache`` command-line interface.

Every invocation passes ``--no-color`` so Rich never wraps or styles the
captured text, and ``--cache-dir`` so nothing touches the real home
directory.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pagecache import __version__
from pagecache.app import app
from pagecache.cache import PageCache
from pagecache.config import load_global_config
from pagecache.models import CacheConfig, RequestInfo
from pagecache.output import OutputManager


@pytest.fixture
def cache_root(isolated_config: Path) -> Path:
    return isolated_config / "static-cache"


@pytest.fixture
def warm_cache(cache_root: Path, page: bytes) -> PageCache:
    """A cache holding a desktop and a mobile copy of /about."""
    cache = PageCache.from_config(CacheConfig(directory=cache_root))
    assert cache.put(RequestInfo(method="GET", path="/about"), page)
    assert cache.put(RequestInfo(method="GET", path="/about", mobile=True), page)
    return cache


def _invoke(runner: CliRunner, cache_root: Path, *args: str, **kwargs):
    return runner.invoke(
        app, ["--no-color", "--cache-dir", str(cache_root), *args], **kwargs
    )


class TestRoot:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"pagecache {__version__}" in result.output

    def test_no_args_shows_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, [])
        assert "cache" in result.output
        assert "config" in result.output


class TestCacheKey:
    @pytest.mark.parametrize(
        ("args", "expected"),
        [
            (["/"], "_"),
            (["/articles/42"], "_articles_42"),
            (["/articles/42", "--mobile"], "m_articles_42"),
        ],
    )
    def test_prints_key(
        self, cli_runner: CliRunner, cache_root: Path, args: list[str], expected: str
    ) -> None:
        result = _invoke(cli_runner, cache_root, "cache", "key", *args)
        assert result.exit_code == 0, result.output
        assert result.output.strip() == expected

    def test_post_is_not_cacheable(self, cli_runner: CliRunner, cache_root: Path) -> None:
        result = _invoke(cli_runner, cache_root, "cache", "key", "/comments", "-X", "POST")
        assert result.exit_code == 2
        assert "not cacheable" in result.output

    def test_logged_in_is_not_cacheable(self, cli_runner: CliRunner, cache_root: Path) -> None:
        result = _invoke(cli_runner, cache_root, "cache", "key", "/about", "--logged-in")
        assert result.exit_code == 2


class TestCacheShow:
    def test_prints_page_with_fresh_footer(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        result = _invoke(cli_runner, cache_root, "--plain", "cache", "show", "/about")
        assert result.exit_code == 0, result.output
        assert "<h1>Hello</h1>" in result.output
        assert "<!-- Generated by pagecache in " in result.output
        assert "532ms" not in result.output

    def test_json_wraps_page(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        result = _invoke(cli_runner, cache_root, "--json", "cache", "show", "/about", "--mobile")
        assert result.exit_code == 0, result.output
        assert "<h1>Hello</h1>" in json.loads(result.stdout)["content"]

    def test_miss_exits_4(self, cli_runner: CliRunner, cache_root: Path) -> None:
        result = _invoke(cli_runner, cache_root, "cache", "show", "/nowhere")
        assert result.exit_code == 4
        assert "No fresh cache entry for /nowhere" in result.output

    def test_disabled_cache_exits_2(
        self, cli_runner: CliRunner, cache_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PAGECACHE_ENABLED", "false")
        result = _invoke(cli_runner, cache_root, "cache", "show", "/about")
        assert result.exit_code == 2
        assert "disabled" in result.output


class TestCacheStats:
    def test_plain_stats(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        result = _invoke(cli_runner, cache_root, "--plain", "cache", "stats")
        assert result.exit_code == 0, result.output
        assert "entries\t2" in result.output
        assert "enabled\tTrue" in result.output

    def test_json_stats(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        result = _invoke(cli_runner, cache_root, "--ttl", "60", "--json", "cache", "stats")
        assert result.exit_code == 0, result.output
        stats = json.loads(result.stdout)
        assert stats["entries"] == 2
        assert stats["size_bytes"] > 0
        assert stats["ttl_seconds"] == 60
        assert Path(stats["directory"]) == cache_root.resolve()

    def test_stats_when_disabled(
        self, cli_runner: CliRunner, cache_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PAGECACHE_ENABLED", "0")
        result = _invoke(cli_runner, cache_root, "--json", "cache", "stats")
        assert result.exit_code == 0, result.output
        stats = json.loads(result.stdout)
        assert stats["enabled"] is False
        assert stats["entries"] == 0


class TestCacheClear:
    def test_force_clears(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        result = _invoke(cli_runner, cache_root, "--force", "cache", "clear")
        assert result.exit_code == 0, result.output
        assert "Removed 2 cached entries." in result.output
        assert list(cache_root.iterdir()) == []

    def test_declined_confirmation_keeps_entries(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        result = _invoke(cli_runner, cache_root, "cache", "clear", input="n\n")
        assert result.exit_code == 0
        assert "Cancelled." in result.output
        assert len(list(cache_root.iterdir())) == 2

    def test_confirmed_clear(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        result = _invoke(cli_runner, cache_root, "cache", "clear", input="y\n")
        assert result.exit_code == 0, result.output
        assert list(cache_root.iterdir()) == []


class TestConfigCommands:
    def test_set_ttl(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "cache.ttl_seconds", "60"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.ttl_seconds == 60

    def test_set_nested_footer_field(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "config", "set", "cache.footer.elapsed_min", "10"]
        )
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.footer.elapsed_min == 10

    def test_set_bool(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "cache.enabled", "off"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.enabled is False

    def test_set_unknown_key(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "cache.colour", "x"])
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_set_non_integer(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "config", "set", "cache.ttl_seconds", "soon"]
        )
        assert result.exit_code == 2

    def test_set_invalid_value(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "cache.ttl_seconds", "0"])
        assert result.exit_code == 2
        assert "Validation error" in result.output
        assert load_global_config().cache.ttl_seconds == 21600

    def test_show_json(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "--quiet", "--json", "config", "show"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["cache"]["ttl_seconds"] == 21600

    def test_show_resolved_applies_env(
        self, cli_runner: CliRunner, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PAGECACHE_TTL_SECONDS", "90")
        result = cli_runner.invoke(
            app, ["--no-color", "--quiet", "--json", "config", "show", "--resolved"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["cache"]["ttl_seconds"] == 90

    def test_reset(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        cli_runner.invoke(app, ["--no-color", "config", "set", "cache.ttl_seconds", "60"])
        result = cli_runner.invoke(app, ["--no-color", "--force", "config", "reset"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.ttl_seconds == 21600

    def test_set_broken_footer_template_rejected(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "config", "set", "cache.footer.template", "<!-- {elapsed.ms} -->"]
        )
        assert result.exit_code == 2
        assert "Invalid footer template" in result.output
        assert "{elapsed}" in load_global_config().cache.footer.template

    def test_reset_repairs_broken_config_file(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        config_file = isolated_config / "config" / "pagecache" / "config.json"
        config_file.parent.mkdir(parents=True)
        config_file.write_text('{"output": {"format": "sparkly"}}')

        result = cli_runner.invoke(app, ["--no-color", "--force", "config", "reset"])
        assert result.exit_code == 0, result.output
        assert load_global_config().output.format == "auto"


class TestOutputPreferences:
    def test_configured_format_applies(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        cli_runner.invoke(app, ["--no-color", "config", "set", "output.format", "json"])
        result = _invoke(cli_runner, cache_root, "cache", "stats")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["entries"] == 2

    def test_flag_overrides_configured_format(
        self, cli_runner: CliRunner, cache_root: Path, warm_cache: PageCache
    ) -> None:
        cli_runner.invoke(app, ["--no-color", "config", "set", "output.format", "json"])
        result = _invoke(cli_runner, cache_root, "--plain", "cache", "stats")
        assert result.exit_code == 0, result.output
        assert "entries\t2" in result.output

    def test_unknown_format_rejected(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "output.format", "sparkly"])
        assert result.exit_code == 2
        assert load_global_config().output.format == "auto"

    def test_pager_preference_reaches_output_manager(
        self,
        cli_runner: CliRunner,
        cache_root: Path,
        warm_cache: PageCache,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        seen: dict[str, bool] = {}
        original = OutputManager.__init__

        def recording_init(self, *args, **kwargs) -> None:
            seen["use_pager"] = kwargs["use_pager"]
            original(self, *args, **kwargs)

        monkeypatch.setattr(OutputManager, "__init__", recording_init)
        cli_runner.invoke(app, ["--no-color", "config", "set", "output.pager", "false"])
        result = _invoke(cli_runner, cache_root, "cache", "stats")
        assert result.exit_code == 0, result.output
        assert seen["use_pager"] is False
