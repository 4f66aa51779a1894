"""Turn text or chunked byte streams into logical lines."""
from __future__ import annotations

import codecs
import re
from collections.abc import AsyncGenerator, AsyncIterable, Generator, Iterable, Iterator

LINE_BREAK_RE = re.compile(r"\r\n|\n|\r")


def string_to_lines(text: str) -> Iterator[str]:
    """Split ``text`` on CRLF, LF or CR.

    A final fragment without a terminator is yielded as the last line; a
    trailing terminator does not produce an empty line.
    """

    last_index = 0
    for match in LINE_BREAK_RE.finditer(text):
        yield text[last_index : match.start()]
        last_index = match.end()
    remaining = text[last_index:]
    if remaining:
        yield remaining


class LineBuffer:
    """Accumulates decoded chunks and releases completed lines."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes | str) -> list[str]:
        if isinstance(chunk, str):
            text = chunk
        else:
            text = self._decoder.decode(chunk)
        if not text:
            return []
        self._buffer += text
        lines: list[str] = []
        last_index = 0
        for match in LINE_BREAK_RE.finditer(self._buffer):
            # A trailing CR may be the first half of a CRLF split across chunks.
            if match.group() == "\r" and match.end() == len(self._buffer):
                break
            lines.append(self._buffer[last_index : match.start()])
            last_index = match.end()
        self._buffer = self._buffer[last_index:]
        return lines

    def finish(self) -> list[str]:
        self._buffer += self._decoder.decode(b"", final=True)
        remaining, self._buffer = self._buffer, ""
        return list(string_to_lines(remaining))


def iter_chunk_lines(chunks: Iterable[bytes | str]) -> Generator[str, None, None]:
    """Yield lines eagerly from a finite, single-pass chunk source."""

    buffer = LineBuffer()
    for chunk in chunks:
        yield from buffer.feed(chunk)
    yield from buffer.finish()


async def aiter_chunk_lines(chunks: AsyncIterable[bytes | str]) -> AsyncGenerator[str, None]:
    """Async counterpart of :func:`iter_chunk_lines`."""

    buffer = LineBuffer()
    async for chunk in chunks:
        for line in buffer.feed(chunk):
            yield line
    for line in buffer.finish():
        yield line
