from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator

import pytest

from llms_full.unbind import Arbitrator, Page, aextract_stream, extract_all, extract_stream, iter_pages

DOCS = {
    "doc_tags": (
        "<docs>\n"
        '<doc title="FastHTML concise guide" desc="A brief overview"># Concise reference\n'
        "\n"
        "## About FastHTML\n"
        "\n"
        "FastHTML is a library for building web applications.</doc>\n"
        '<doc title="HTMX reference" desc="Brief description of HTMX">## Contents\n'
        "\n"
        "* htmx Core Attributes\n"
        "* htmx CSS Classes</doc>\n"
        "</docs>\n"
    ),
    "page_tags": (
        "<page>\r\n---\r\ntitle: Workers\r\n---\r\n# Workers\r\nRun code at the edge.\r\n</page>\r\n"
        "<page>\r\n# Pages\r\n<page>nested</page>\r\nDeploy sites.\r\n</page>\r\n"
    ),
    "h1": (
        "# Einführung {#intro}\n\nVue.js ist ein Framework.\n\n## Erste Schritte\n\n"
        "```md\n# not a page\n```\n\n---\n\n# Komponenten\n\nWiederverwendbar.\n\n"
        "# Reaktivität\n\nこんにちは 世界"
    ),
    "mintlify": (
        "# Introduction\nSource: https://docs.example.com/introduction\n\nWelcome.\n\n"
        "# Quickstart\nSource: https://docs.example.com/quickstart\n\nInstall it.\n"
    ),
    "frontmatter": (
        "---\nurl: /guide/introduction.md\n---\n# Introduction\n\nHello.\n\n"
        "---\nurl: /guide/essentials.md\n---\n# Essentials\n\nMore.\n"
    ),
    "plain": "Just a paragraph\nwith two lines and no markers.\n",
}


def _dicts(pages: list[Page]) -> list[dict[str, object]]:
    return [page.to_dict() for page in pages]


def _byte_chunks(text: str, size: int) -> Iterator[bytes]:
    data = text.encode("utf-8")
    for index in range(0, len(data), size):
        yield data[index : index + size]


def test_single_doc_tag() -> None:
    pages = extract_all('<doc title="T" desc="D">C</doc>')
    assert pages == [Page(title="T", content="C", metadata={"desc": "D"})]


def test_doc_tags_in_wrapper() -> None:
    pages = extract_all(DOCS["doc_tags"])
    assert [page.title for page in pages] == ["FastHTML concise guide", "HTMX reference"]
    assert pages[0].content.startswith("# Concise reference")
    assert pages[0].metadata == {"desc": "A brief overview"}
    assert pages[1].content.startswith("## Contents")


def test_doc_content_keeps_inline_markup() -> None:
    pages = extract_all('<doc title="Special">Content with <code> tags &amp; more</doc>')
    assert pages[0].content == "Content with <code> tags &amp; more"


def test_page_tags_with_nesting() -> None:
    pages = extract_all(DOCS["page_tags"])
    assert len(pages) == 2
    assert pages[0].content.startswith("---\ntitle: Workers")
    assert pages[1].content == "# Pages\n<page>nested</page>\nDeploy sites."


def test_h1_document() -> None:
    pages = extract_all(DOCS["h1"])
    assert [page.title for page in pages] == ["Einführung", "Komponenten", "Reaktivität"]
    assert "# not a page" in pages[0].content
    assert pages[0].content.endswith("---")
    assert pages[2].content == "# Reaktivität\n\nこんにちは 世界"


def test_mintlify_document() -> None:
    pages = extract_all(DOCS["mintlify"])
    assert [(page.title, page.metadata) for page in pages] == [
        ("Introduction", {"source": "https://docs.example.com/introduction"}),
        ("Quickstart", {"source": "https://docs.example.com/quickstart"}),
    ]
    assert pages[1].content == "# Quickstart\n\nInstall it."


def test_frontmatter_document() -> None:
    pages = extract_all(DOCS["frontmatter"])
    assert [(page.title, page.metadata) for page in pages] == [
        ("Introduction", {"url": "/guide/introduction.md"}),
        ("Essentials", {"url": "/guide/essentials.md"}),
    ]


def test_plain_text_becomes_one_untitled_page() -> None:
    pages = extract_all(DOCS["plain"])
    assert pages == [
        Page(title=None, content="Just a paragraph\nwith two lines and no markers.", metadata={})
    ]


def test_empty_input() -> None:
    assert extract_all("") == []
    assert list(extract_stream(b"")) == []
    assert list(extract_stream([])) == []


@pytest.mark.parametrize("name", sorted(DOCS))
def test_no_page_is_empty(name: str) -> None:
    assert all(page.content for page in extract_all(DOCS[name]))


@pytest.mark.parametrize("name", sorted(DOCS))
@pytest.mark.parametrize("size", [1, 2, 7, 64, 4096])
def test_stream_matches_batch(name: str, size: int) -> None:
    text = DOCS[name]
    expected = _dicts(extract_all(text))
    assert expected
    assert _dicts(list(extract_stream(_byte_chunks(text, size)))) == expected


@pytest.mark.parametrize("name", sorted(DOCS))
def test_small_sample_window_matches_batch(name: str) -> None:
    text = DOCS[name]
    arbitrator = Arbitrator(sample_lines=4)
    batch = _dicts(extract_all(text, arbitrator=arbitrator))
    streamed = _dicts(list(extract_stream(_byte_chunks(text, 3), arbitrator=arbitrator)))
    assert streamed == batch


def test_stream_accepts_text_chunks_and_whole_strings() -> None:
    text = DOCS["h1"]
    expected = _dicts(extract_all(text))
    chunks = [text[index : index + 5] for index in range(0, len(text), 5)]
    assert _dicts(list(extract_stream(chunks))) == expected
    assert _dicts(list(extract_stream(text))) == expected
    assert _dicts(list(extract_stream(text.encode("utf-8")))) == expected


def test_iter_pages_over_decoded_lines() -> None:
    pages = list(iter_pages(["# A", "alpha", "# B", "beta"]))
    assert [page.title for page in pages] == ["A", "B"]


def test_stream_reads_only_what_it_needs() -> None:
    lines = [f'<doc title="P{index}">body {index}</doc>\n' for index in range(10)]
    pulled: list[bytes] = []

    def source() -> Iterator[bytes]:
        for line in lines:
            chunk = line.encode("utf-8")
            pulled.append(chunk)
            yield chunk

    stream = extract_stream(source(), arbitrator=Arbitrator(sample_lines=2))
    first = next(stream)
    assert first.title == "P0"
    assert len(pulled) <= 3
    stream.close()
    assert len(pulled) <= 3


def test_source_errors_propagate_unchanged() -> None:
    failure = ConnectionResetError("peer went away")

    def source() -> Iterator[bytes]:
        yield b"# A\nalpha\n"
        raise failure

    with pytest.raises(ConnectionResetError) as excinfo:
        list(extract_stream(source()))
    assert excinfo.value is failure


def test_async_stream_matches_batch() -> None:
    text = DOCS["doc_tags"]

    async def source() -> AsyncIterator[bytes]:
        for chunk in _byte_chunks(text, 3):
            await asyncio.sleep(0)
            yield chunk

    async def collect() -> list[Page]:
        return [page async for page in aextract_stream(source())]

    assert _dicts(asyncio.run(collect())) == _dicts(extract_all(text))


def test_async_streams_run_concurrently() -> None:
    async def source(text: str) -> AsyncIterator[bytes]:
        for chunk in _byte_chunks(text, 4):
            await asyncio.sleep(0)
            yield chunk

    async def collect(text: str) -> list[Page]:
        return [page async for page in aextract_stream(source(text))]

    async def run_all() -> list[list[Page]]:
        return await asyncio.gather(*(collect(DOCS[name]) for name in sorted(DOCS)))

    results = asyncio.run(run_all())
    for name, pages in zip(sorted(DOCS), results):
        assert _dicts(pages) == _dicts(extract_all(DOCS[name]))


def test_async_stream_abandoned_early() -> None:
    async def source() -> AsyncIterator[bytes]:
        for index in range(5):
            yield f'<doc title="P{index}">b</doc>\n'.encode("utf-8")

    async def first_only() -> Page:
        stream = aextract_stream(source(), arbitrator=Arbitrator(sample_lines=1))
        try:
            return await stream.__anext__()
        finally:
            await stream.aclose()

    assert asyncio.run(first_only()).title == "P0"
