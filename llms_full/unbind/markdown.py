"""Markdown helpers: fenced code tracking and heading titles."""
from __future__ import annotations

import re
from collections.abc import Iterator, Sequence

CODE_FENCE_RE = re.compile(r"^(?:`{3,}|~{3,})")
H1_PREFIX_RE = re.compile(r"^#\s+")
HEADING_PREFIX_RE = re.compile(r"^#+\s+")


class FenceTracker:
    """Stateful fenced-code-block detector fed one line at a time."""

    def __init__(self) -> None:
        self.opening_fence: str | None = None

    @property
    def in_code_block(self) -> bool:
        return self.opening_fence is not None

    def feed(self, line: str) -> bool:
        """Return True when ``line`` is ordinary markdown outside any code block.

        Block fence lines and every line inside a block return False; a line
        whose fence also closes on the same line is inline code and counts as
        ordinary text.
        """

        stripped = line.strip()
        match = CODE_FENCE_RE.match(stripped)
        if match is None:
            return self.opening_fence is None
        fence = match.group()
        if self.opening_fence is not None:
            if fence[0] == self.opening_fence[0] and len(fence) >= len(self.opening_fence):
                self.opening_fence = None
            return False
        if _has_inline_close(stripped, fence):
            return True
        self.opening_fence = fence
        return False


def _has_inline_close(line: str, fence: str) -> bool:
    marker = fence[0]
    start = len(fence)
    close_index = line.find(fence, start)
    while close_index >= 0:
        start = close_index + len(fence)
        if start >= len(line) or line[start] != marker:
            return True
        while start < len(line) and line[start] == marker:
            start += 1
        close_index = line.find(fence, start)
    return False


def iter_markdown_lines(
    lines: Sequence[str], start_index: int = 0
) -> Iterator[tuple[str, int]]:
    """Yield ``(line, index)`` for lines outside fenced code blocks."""

    tracker = FenceTracker()
    for index in range(start_index, len(lines)):
        line = lines[index]
        if tracker.feed(line):
            yield line, index


def _strip_anchor(title: str) -> str:
    attr_index = title.rfind("{")
    if attr_index != -1 and title.endswith("}"):
        return title[:attr_index].strip()
    return title


def extract_h1_title(line: str) -> str | None:
    """Return the title of a level-1 heading, or None for any other line.

    ``# Title {#anchor}`` yields ``Title``.
    """

    stripped = line.strip()
    match = H1_PREFIX_RE.match(stripped)
    if match is None:
        return None
    return _strip_anchor(stripped[match.end() :].strip())


def extract_header_title(line: str) -> str | None:
    """Same as :func:`extract_h1_title` but for headings of any level."""

    stripped = line.strip()
    match = HEADING_PREFIX_RE.match(stripped)
    if match is None:
        return None
    return _strip_anchor(stripped[match.end() :].strip())
