"""Entry points: split an llms-full.txt artifact into pages."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from itertools import chain, islice

from .arbitrate import Arbitrator
from .lines import aiter_chunk_lines, iter_chunk_lines, string_to_lines
from .types import Page

logger = logging.getLogger(__name__)


def extract_all(text: str, *, arbitrator: Arbitrator | None = None) -> list[Page]:
    """Return every page of ``text`` in the order their boundaries close."""

    return list(iter_pages(string_to_lines(text), arbitrator=arbitrator))


def iter_pages(lines: Iterable[str], *, arbitrator: Arbitrator | None = None) -> Iterator[Page]:
    """Lazily extract pages from already-decoded lines (no terminators)."""

    arbitrator = arbitrator or Arbitrator()
    line_iter = iter(lines)
    sample = list(islice(line_iter, arbitrator.sample_lines))
    parser = arbitrator.parser_for(sample)
    count = 0
    for line in chain(sample, line_iter):
        for page in parser.consume_line(line):
            count += 1
            yield page
    for page in parser.flush():
        count += 1
        yield page
    logger.debug("Extracted %d pages", count)


def extract_stream(
    source: str | bytes | Iterable[bytes | str], *, arbitrator: Arbitrator | None = None
) -> Iterator[Page]:
    """Lazily extract pages from a chunked byte or text source.

    Chunks may split lines and multi-byte characters anywhere. The source is
    consumed once and never closed here.
    """

    if isinstance(source, (str, bytes)):
        source = [source]
    lines = iter_chunk_lines(source)
    try:
        yield from iter_pages(lines, arbitrator=arbitrator)
    finally:
        lines.close()


async def aextract_stream(
    source: AsyncIterable[bytes | str], *, arbitrator: Arbitrator | None = None
) -> AsyncIterator[Page]:
    """Async form of :func:`extract_stream` for async chunk sources."""

    arbitrator = arbitrator or Arbitrator()
    lines = aiter_chunk_lines(source)
    try:
        sample: list[str] = []
        async for line in lines:
            sample.append(line)
            if len(sample) >= arbitrator.sample_lines:
                break
        parser = arbitrator.parser_for(sample)
        for line in sample:
            for page in parser.consume_line(line):
                yield page
        async for line in lines:
            for page in parser.consume_line(line):
                yield page
        for page in parser.flush():
            yield page
    finally:
        await lines.aclose()
