"""Streaming page parsers, one per page-delimiting dialect.

Every parser follows the :class:`~llms_full.unbind.types.PageParser`
contract: ``consume_line`` buffers one line and returns the pages that line
completed, ``flush`` drains the remainder once. Classifiers score a sample
of lines as ``certain``, ``potential`` or ``unknown`` for their dialect.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol

from .markdown import FenceTracker, extract_h1_title, extract_header_title, iter_markdown_lines
from .tokenizer import CloseTag, OpenTag, tokenize
from .types import CERTAIN, POTENTIAL, UNKNOWN, DetectResult, MetadataValue, Page

if TYPE_CHECKING:
    from .dialects import Dialect

MAX_OTHER_HEADINGS = 30

SOURCE_LINE_RE = re.compile(r"^Source:\s*(\S+)$")
FRONTMATTER_FIELD_RE = re.compile(r"^([A-Za-z_][\w\-]*):(?:\s+(.*))?$")
FRONTMATTER_DELIMITER = "---"


def classify_tag(lines: Sequence[str], tag_name: str) -> DetectResult:
    """Certain when the sample holds a balanced run of ``tag_name`` pairs."""

    close_marker = f"</{tag_name}"
    if not any(close_marker in line for line in lines):
        return UNKNOWN
    opened = closed = 0
    for token in tokenize("\n".join(lines)):
        if isinstance(token, OpenTag) and token.name == tag_name:
            if not token.self_closing:
                opened += 1
        elif isinstance(token, CloseTag) and token.name == tag_name:
            closed += 1
        if opened > 0 and opened == closed:
            return CERTAIN
    return UNKNOWN


class TagPageParser:
    """Emits one page per outermost ``<tag_name>...</tag_name>`` pair."""

    def __init__(self, tag_name: str) -> None:
        self.tag_name = tag_name
        self._close_marker = f"</{tag_name}"
        self._input = ""

    def consume_line(self, line: str) -> list[Page]:
        self._input += f"{line}\n"
        # Only a line holding a closing tag can complete a page.
        if self._close_marker not in line:
            return []
        pages, next_index = self._extract(self._input)
        if next_index:
            self._input = self._input[next_index:]
        return pages

    def flush(self) -> list[Page]:
        pages, _ = self._extract(self._input)
        self._input = ""
        return pages

    def _extract(self, text: str) -> tuple[list[Page], int]:
        pages: list[Page] = []
        next_index = 0
        stack: list[OpenTag] = []
        for token in tokenize(text):
            if isinstance(token, OpenTag):
                if token.name == self.tag_name and not token.self_closing:
                    stack.append(token)
            elif isinstance(token, CloseTag) and token.name == self.tag_name and stack:
                opening = stack.pop()
                if stack:
                    continue
                next_index = token.end
                page = _tag_page(opening, text[opening.end : token.start])
                if page is not None:
                    pages.append(page)
        return pages, next_index


def _tag_page(opening: OpenTag, body: str) -> Page | None:
    content = body.strip()
    if not content:
        return None
    title = opening.attrs.get("title")
    metadata = {name: value for name, value in opening.attrs.items() if name != "title"}
    return Page(title=title if isinstance(title, str) else None, content=content, metadata=metadata)


class BoundaryDetector(Protocol):
    def feed(self, line: str, index: int) -> int | None:
        """Return the absolute index of a page start confirmed by ``line``."""
        ...


class H1Boundary:
    """A page starts at every level-1 heading outside fenced code."""

    def __init__(self) -> None:
        self._fences = FenceTracker()

    def feed(self, line: str, index: int) -> int | None:
        if self._fences.feed(line) and extract_h1_title(line) is not None:
            return index
        return None


class MintlifyBoundary:
    """A page starts at a level-1 heading directly followed by ``Source: <url>``."""

    def __init__(self) -> None:
        self._fences = FenceTracker()
        self._heading_index: int | None = None

    def feed(self, line: str, index: int) -> int | None:
        outside = self._fences.feed(line)
        heading_index, self._heading_index = self._heading_index, None
        if heading_index is not None and SOURCE_LINE_RE.match(line.strip()):
            return heading_index
        if outside and extract_h1_title(line) is not None:
            self._heading_index = index
        return None


class FrontmatterBoundary:
    """A page starts at a ``---`` / ``key: value`` ... / ``---`` block."""

    def __init__(self) -> None:
        self._fences = FenceTracker()
        self._block_start: int | None = None
        self._field_count = 0

    def feed(self, line: str, index: int) -> int | None:
        stripped = line.strip()
        if self._block_start is not None:
            if stripped == FRONTMATTER_DELIMITER:
                if self._field_count:
                    start = self._block_start
                    self._block_start = None
                    return start
                self._block_start = index
                return None
            if self._field_count and _is_nested_value(line):
                return None
            if FRONTMATTER_FIELD_RE.match(line.rstrip()):
                self._field_count += 1
                return None
            self._block_start = None
        if self._fences.feed(line) and stripped == FRONTMATTER_DELIMITER:
            self._block_start = index
            self._field_count = 0
        return None


class SectionParser:
    """Splits a line stream into sections at boundaries found by ``detector``.

    ``build_page`` receives each completed section and whether it begins at a
    confirmed boundary (False only for text preceding the first boundary).
    """

    def __init__(
        self,
        detector: BoundaryDetector,
        build_page: Callable[[list[str], bool], Page | None],
    ) -> None:
        self._detector = detector
        self._build_page = build_page
        self._lines: list[str] = []
        self._offset = 0
        self._at_boundary = False

    def consume_line(self, line: str) -> list[Page]:
        index = self._offset + len(self._lines)
        self._lines.append(line)
        boundary = self._detector.feed(line, index)
        if boundary is None:
            return []
        cut = boundary - self._offset
        section = self._lines[:cut]
        del self._lines[:cut]
        self._offset = boundary
        at_boundary, self._at_boundary = self._at_boundary, True
        return self._pages(section, at_boundary)

    def flush(self) -> list[Page]:
        section, self._lines = self._lines, []
        self._offset += len(section)
        return self._pages(section, self._at_boundary)

    def _pages(self, section: list[str], at_boundary: bool) -> list[Page]:
        if not section:
            return []
        page = self._build_page(section, at_boundary)
        return [page] if page is not None else []


def _strip_leading_blank(lines: Sequence[str]) -> list[str]:
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    return list(lines[start:])


def build_heading_page(
    lines: Sequence[str], metadata: dict[str, MetadataValue] | None = None
) -> Page | None:
    """Convert a section to a page titled by its first line's H1 heading."""

    remaining = _strip_leading_blank(lines)
    if not remaining:
        return None
    content = "\n".join(remaining).strip()
    if not content:
        return None
    return Page(title=extract_h1_title(remaining[0]), content=content, metadata=metadata or {})


def _build_h1_section(lines: list[str], at_boundary: bool) -> Page | None:
    return build_heading_page(lines)


def _build_mintlify_section(lines: list[str], at_boundary: bool) -> Page | None:
    if not at_boundary or len(lines) < 2:
        return build_heading_page(lines)
    match = SOURCE_LINE_RE.match(lines[1].strip())
    if match is None:
        return build_heading_page(lines)
    return build_heading_page([lines[0], *lines[2:]], {"source": match.group(1)})


def _is_nested_value(line: str) -> bool:
    return line[:1].isspace() and bool(line.strip())


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _build_frontmatter_section(lines: list[str], at_boundary: bool) -> Page | None:
    if not at_boundary:
        return build_heading_page(lines)
    metadata: dict[str, MetadataValue] = {}
    nested: set[str] = set()
    key: str | None = None
    index = 1
    while index < len(lines) and lines[index].strip() != FRONTMATTER_DELIMITER:
        line = lines[index]
        index += 1
        if _is_nested_value(line):
            if key is not None:
                nested.add(key)
            continue
        match = FRONTMATTER_FIELD_RE.match(line.rstrip())
        if match:
            key = match.group(1)
            metadata[key] = _unquote((match.group(2) or "").strip())
    # Nested mappings and lists have no flat value.
    for name in nested:
        if metadata.get(name) == "":
            del metadata[name]
    body = _strip_leading_blank(lines[index + 1 :])
    content = "\n".join(body).strip()
    if not content:
        return None
    title = metadata.pop("title", None)
    if not title:
        title = extract_h1_title(body[0])
    return Page(title=title if isinstance(title, str) else None, content=content, metadata=metadata)


def h1_parser() -> SectionParser:
    return SectionParser(H1Boundary(), _build_h1_section)


def mintlify_parser() -> SectionParser:
    return SectionParser(MintlifyBoundary(), _build_mintlify_section)


def frontmatter_parser() -> SectionParser:
    return SectionParser(FrontmatterBoundary(), _build_frontmatter_section)


def _count_boundaries(detector: BoundaryDetector, lines: Sequence[str]) -> int:
    return sum(1 for index, line in enumerate(lines) if detector.feed(line, index) is not None)


def _classify_by_count(count: int) -> DetectResult:
    if count >= 2:
        return CERTAIN
    if count == 1:
        return POTENTIAL
    return UNKNOWN


def classify_mintlify(lines: Sequence[str]) -> DetectResult:
    return _classify_by_count(_count_boundaries(MintlifyBoundary(), lines))


def classify_frontmatter(lines: Sequence[str]) -> DetectResult:
    return _classify_by_count(_count_boundaries(FrontmatterBoundary(), lines))


def classify_h1(
    lines: Sequence[str], peers: Sequence[Dialect] = (), name: str = "h1"
) -> DetectResult:
    """Score the sample for the H1 dialect.

    Two or more level-1 headings are certain unless the sample also carries
    more than ``MAX_OTHER_HEADINGS`` deeper headings and some other dialect
    claims it, in which case the result drops to potential.
    """

    h1_count = 0
    other_count = 0
    for line, _ in iter_markdown_lines(lines):
        if extract_h1_title(line) is not None:
            h1_count += 1
        elif extract_header_title(line) is not None:
            other_count += 1
    if h1_count >= 2:
        if other_count > MAX_OTHER_HEADINGS and any(
            peer.classify(lines, peers) != UNKNOWN for peer in peers if peer.name != name
        ):
            return POTENTIAL
        return CERTAIN
    if h1_count:
        return POTENTIAL
    return UNKNOWN
