"""Shared records for page extraction."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

CERTAIN = "certain"
POTENTIAL = "potential"
UNKNOWN = "unknown"

DetectResult = Literal["certain", "potential", "unknown"]
MetadataValue = str | bool


@dataclass
class Page:
    """A single page extracted from an llms-full.txt artifact."""

    title: str | None
    content: str
    metadata: dict[str, MetadataValue] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "content": self.content,
            "metadata": dict(self.metadata),
        }


class PageParser(Protocol):
    """Incremental parser for one page-delimiting dialect."""

    def consume_line(self, line: str) -> list[Page]:
        """Buffer ``line`` and return the pages it completes."""
        ...

    def flush(self) -> list[Page]:
        """Drain whatever is left in the buffer."""
        ...
