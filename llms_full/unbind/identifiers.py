"""Stable identifiers for extracted pages, for callers that index them."""
from __future__ import annotations

import re
from urllib.parse import urljoin

from .types import Page

URL_PATH_PREFIXES = ("http://", "https://", "/", "./", "../")


def slugify(text: str) -> str:
    cleaned = re.sub(r"[^\w\s-]", "", text.strip().lower())
    cleaned = re.sub(r"\s+", "-", cleaned)
    cleaned = re.sub(r"-+", "-", cleaned)
    return cleaned.strip("-")


def is_url_path(value: object) -> bool:
    return isinstance(value, str) and value.startswith(URL_PATH_PREFIXES)


def resolve_page_id(page: Page, base_url: str, fallback_seq: int) -> str:
    """Resolve the identifier of ``page`` within the artifact at ``base_url``.

    A path-like ``url`` or ``source`` metadata entry wins, resolved against
    ``base_url``; otherwise the title slug plus ``fallback_seq``; otherwise
    a purely positional id.
    """

    for key in ("url", "source"):
        value = page.metadata.get(key)
        if is_url_path(value):
            return urljoin(base_url, str(value))
    slug = slugify(page.title) if page.title else ""
    if slug:
        return f"{slug}-page-{fallback_seq}"
    return f"page-{fallback_seq}"
