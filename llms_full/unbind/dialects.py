"""Registry of supported page dialects, most specific first."""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .parser import (
    TagPageParser,
    classify_frontmatter,
    classify_h1,
    classify_mintlify,
    classify_tag,
    frontmatter_parser,
    h1_parser,
    mintlify_parser,
)
from .types import DetectResult, PageParser


@dataclass(frozen=True)
class Dialect:
    """A page-delimiting convention: how to recognise it and how to parse it.

    ``classify`` receives the sample and the full ordered dialect set so a
    permissive dialect can defer to its peers.
    """

    name: str
    classify: Callable[[Sequence[str], Sequence["Dialect"]], DetectResult]
    factory: Callable[[], PageParser]


def _classify_frontmatter(sample: Sequence[str], peers: Sequence[Dialect]) -> DetectResult:
    return classify_frontmatter(sample)


def _classify_mintlify(sample: Sequence[str], peers: Sequence[Dialect]) -> DetectResult:
    return classify_mintlify(sample)


def _classify_doc(sample: Sequence[str], peers: Sequence[Dialect]) -> DetectResult:
    return classify_tag(sample, "doc")


def _classify_page(sample: Sequence[str], peers: Sequence[Dialect]) -> DetectResult:
    return classify_tag(sample, "page")


def _classify_h1(sample: Sequence[str], peers: Sequence[Dialect]) -> DetectResult:
    return classify_h1(sample, peers, name="h1")


FRONTMATTER = Dialect("frontmatter", _classify_frontmatter, frontmatter_parser)
MINTLIFY = Dialect("mintlify", _classify_mintlify, mintlify_parser)
DOC_TAG = Dialect("doc", _classify_doc, lambda: TagPageParser("doc"))
PAGE_TAG = Dialect("page", _classify_page, lambda: TagPageParser("page"))
H1 = Dialect("h1", _classify_h1, h1_parser)

DEFAULT_DIALECTS: tuple[Dialect, ...] = (DOC_TAG, PAGE_TAG, FRONTMATTER, MINTLIFY, H1)
DIALECTS_BY_NAME: dict[str, Dialect] = {dialect.name: dialect for dialect in DEFAULT_DIALECTS}
