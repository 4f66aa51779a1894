"""Format-agnostic scanner for HTML-like tags embedded in text.

The tokenizer knows nothing about pages; it only reports where tags,
comments, CDATA sections, DOCTYPE declarations and text runs sit in the
buffer. Every character of the input belongs to exactly one token, so the
token ranges partition ``[0, len(text))``.
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

TAG_NAME_RE = re.compile(r"[^\s!/>]+")
ATTR_NAME_RE = re.compile(r"[\w\-:]+")
WHITESPACE_RE = re.compile(r"\s*")
UNQUOTED_VALUE_RE = re.compile(r"[^\s/>]*")
CDATA_PREFIX_RE = re.compile(r"<!\[cdata\[", re.IGNORECASE)
DOCTYPE_PREFIX_RE = re.compile(r"<!doctype", re.IGNORECASE)


@dataclass(frozen=True)
class Token:
    start: int
    end: int

    @property
    def range(self) -> tuple[int, int]:
        return self.start, self.end


@dataclass(frozen=True)
class OpenTag(Token):
    name: str = ""
    attrs: dict[str, str | bool] = field(default_factory=dict)
    self_closing: bool = False


@dataclass(frozen=True)
class CloseTag(Token):
    name: str = ""


@dataclass(frozen=True)
class Comment(Token):
    pass


@dataclass(frozen=True)
class CData(Token):
    pass


@dataclass(frozen=True)
class Doctype(Token):
    pass


@dataclass(frozen=True)
class Text(Token):
    pass


def tokenize(text: str) -> Iterator[Token]:
    """Yield tokens for ``text`` from left to right."""

    pos = 0
    last_end = 0
    length = len(text)
    while pos < length:
        pos = text.find("<", pos)
        if pos < 0:
            break
        token = (
            parse_open_tag(text, pos)
            or parse_close_tag(text, pos)
            or parse_comment(text, pos)
            or parse_cdata(text, pos)
            or parse_doctype(text, pos)
        )
        if token is None:
            pos += 1
            continue
        if last_end < token.start:
            yield Text(last_end, token.start)
        yield token
        last_end = pos = token.end
    if last_end < length:
        yield Text(last_end, length)


def parse_open_tag(text: str, start: int) -> OpenTag | None:
    match = TAG_NAME_RE.match(text, start + 1)
    if match is None:
        return None
    attrs, pos = parse_attributes(text, match.end())
    if text.startswith("/>", pos):
        return OpenTag(start, pos + 2, name=match.group(), attrs=attrs, self_closing=True)
    if text.startswith(">", pos):
        return OpenTag(start, pos + 1, name=match.group(), attrs=attrs)
    return None


def parse_attributes(text: str, start: int) -> tuple[dict[str, str | bool], int]:
    """Parse ``name="value"`` pairs starting at ``start``.

    Returns the attributes and the index of the first unconsumed character.
    Values may be double-quoted, single-quoted or bare; a name without ``=``
    maps to ``True``.
    """

    attrs: dict[str, str | bool] = {}
    length = len(text)
    pos = start
    while pos < length:
        pos = WHITESPACE_RE.match(text, pos).end()
        name_match = ATTR_NAME_RE.match(text, pos)
        if name_match is None:
            break
        name = name_match.group()
        pos = WHITESPACE_RE.match(text, name_match.end()).end()
        if pos >= length or text[pos] != "=":
            attrs[name] = True
            continue
        pos = WHITESPACE_RE.match(text, pos + 1).end()
        if pos < length and text[pos] in "\"'":
            quote_end = text.find(text[pos], pos + 1)
            if quote_end >= 0:
                attrs[name] = text[pos + 1 : quote_end]
                pos = quote_end + 1
                continue
        value_match = UNQUOTED_VALUE_RE.match(text, pos)
        attrs[name] = value_match.group()
        pos = value_match.end()
    return attrs, pos


def parse_close_tag(text: str, start: int) -> CloseTag | None:
    if not text.startswith("</", start):
        return None
    end = text.find(">", start + 2)
    if end < 0:
        return None
    return CloseTag(start, end + 1, name=text[start + 2 : end].strip())


def parse_comment(text: str, start: int) -> Comment | None:
    if not text.startswith("<!--", start):
        return None
    end = text.find("-->", start + 4)
    if end < 0:
        return None
    return Comment(start, end + 3)


def parse_cdata(text: str, start: int) -> CData | None:
    if CDATA_PREFIX_RE.match(text, start) is None:
        return None
    end = text.find("]]>", start + 9)
    if end < 0:
        return None
    return CData(start, end + 3)


def parse_doctype(text: str, start: int) -> Doctype | None:
    if DOCTYPE_PREFIX_RE.match(text, start) is None:
        return None
    end = text.find(">", start + 9)
    if end < 0:
        return None
    return Doctype(start, end + 1)
