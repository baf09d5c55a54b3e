"""Rewriting of the trailing diagnostic line on cache hits.

Rendered pages end with a line reporting how long generation took and when,
e.g. ``<!-- Generated by pagecache in 231ms, 2024/05/01 10:00:00 -->``. A
page served from disk would otherwise repeat the original figures forever,
so every hit swaps that line for a freshly built one. Only the served copy is
altered; the stored bytes keep their original footer.
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import Optional

from pagecache.models import FooterConfig


def rewrite_footer(text: str, elapsed_ms: int, now_formatted: str, template: str) -> str:
    """Replace the last line of *text* with a line built from *template*.

    Lines are split on ``\\n``. A trailing newline run does not count as a
    line: the last non-empty line is replaced and the trailing newlines are
    kept. Text without any non-empty line becomes the footer alone.

    Args:
        text: Page content.
        elapsed_ms: Value substituted for ``{elapsed}``.
        now_formatted: Value substituted for ``{timestamp}``.
        template: ``str.format`` template for the footer line.
    """
    footer = template.format(elapsed=elapsed_ms, timestamp=now_formatted)

    body = text.rstrip("\n")
    if not body:
        return footer
    trailing = text[len(body):]

    lines = body.split("\n")
    lines[-1] = footer
    return "\n".join(lines) + trailing


def random_elapsed(config: FooterConfig, rng: Optional[random.Random] = None) -> int:
    """Pick a plausible generation time in ``[elapsed_min, elapsed_max)``."""
    source = rng if rng is not None else random
    return source.randrange(config.elapsed_min, config.elapsed_max)


def format_now(config: FooterConfig, now: float) -> str:
    """Format POSIX time *now* (local time) with ``config.timestamp_format``."""
    return datetime.fromtimestamp(now).strftime(config.timestamp_format)
