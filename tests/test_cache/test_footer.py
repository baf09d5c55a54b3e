"""Tests for the trailing diagnostic line rewrite."""

from __future__ import annotations

import random
from datetime import datetime

import pytest

from pagecache.cache.footer import format_now, random_elapsed, rewrite_footer
from pagecache.models import FooterConfig

TEMPLATE = "<!-- {elapsed}ms {timestamp} -->"


class TestRewriteFooter:
    def test_replaces_last_line(self) -> None:
        text = "<html>\n</html>\n<!-- 900ms 2020/01/01 00:00:00 -->"
        result = rewrite_footer(text, 77, "2024/05/01 10:00:00", TEMPLATE)
        assert result == "<html>\n</html>\n<!-- 77ms 2024/05/01 10:00:00 -->"

    def test_other_lines_untouched(self) -> None:
        lines = [f"line {i}" for i in range(50)] + ["old footer"]
        result = rewrite_footer("\n".join(lines), 100, "now", TEMPLATE)
        assert result.split("\n")[:-1] == lines[:-1]

    def test_single_line_becomes_footer(self) -> None:
        assert rewrite_footer("only", 64, "t", TEMPLATE) == "<!-- 64ms t -->"

    def test_trailing_newline_preserved(self) -> None:
        text = "<html>\n<!-- old -->\n"
        assert rewrite_footer(text, 80, "t", TEMPLATE) == "<html>\n<!-- 80ms t -->\n"

    def test_multiple_trailing_newlines_preserved(self) -> None:
        text = "a\nb\n\n\n"
        assert rewrite_footer(text, 80, "t", TEMPLATE) == "a\n<!-- 80ms t -->\n\n\n"

    def test_empty_text(self) -> None:
        assert rewrite_footer("", 70, "t", TEMPLATE) == "<!-- 70ms t -->"

    def test_crlf_lines_split_on_newline(self) -> None:
        text = "a\r\nb\r\nold"
        assert rewrite_footer(text, 70, "t", TEMPLATE) == "a\r\nb\r\n<!-- 70ms t -->"

    def test_malformed_template_raises(self) -> None:
        with pytest.raises(KeyError):
            rewrite_footer("a\nb", 70, "t", "{missing}")


class TestRandomElapsed:
    def test_within_default_range(self) -> None:
        config = FooterConfig()
        rng = random.Random(1)
        values = {random_elapsed(config, rng) for _ in range(2000)}
        assert min(values) >= 64
        assert max(values) <= 127
        assert len(values) > 1

    def test_upper_bound_exclusive(self) -> None:
        config = FooterConfig(elapsed_min=5, elapsed_max=6)
        assert {random_elapsed(config, random.Random(3)) for _ in range(50)} == {5}

    def test_module_random_when_no_rng(self) -> None:
        assert 64 <= random_elapsed(FooterConfig()) < 128


class TestFormatNow:
    def test_default_format(self) -> None:
        now = datetime(2024, 5, 1, 9, 8, 7).timestamp()
        assert format_now(FooterConfig(), now) == "2024/05/01 09:08:07"

    def test_custom_format(self) -> None:
        now = datetime(2024, 5, 1, 9, 8, 7).timestamp()
        assert format_now(FooterConfig(timestamp_format="%H:%M"), now) == "09:08"


class TestFooterConfig:
    def test_rejects_empty_range(self) -> None:
        with pytest.raises(ValueError):
            FooterConfig(elapsed_min=10, elapsed_max=10)
