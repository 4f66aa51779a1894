"""Split llms-full.txt artifacts back into their pages."""
from __future__ import annotations

from .arbitrate import Arbitrator
from .dialects import DEFAULT_DIALECTS, Dialect
from .extract import aextract_stream, extract_all, extract_stream, iter_pages
from .types import CERTAIN, POTENTIAL, UNKNOWN, Page, PageParser

__all__ = [
    "Arbitrator",
    "CERTAIN",
    "DEFAULT_DIALECTS",
    "Dialect",
    "POTENTIAL",
    "Page",
    "PageParser",
    "UNKNOWN",
    "aextract_stream",
    "extract_all",
    "extract_stream",
    "iter_pages",
]
