"""Pick the dialect parser for an input from a sample of its first lines."""
from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence

from .dialects import DEFAULT_DIALECTS, DIALECTS_BY_NAME, Dialect
from .types import CERTAIN, POTENTIAL, DetectResult, PageParser

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_LINES = 1000
SAMPLE_LINES_ENV = "LLMS_UNBIND_SAMPLE_LINES"
DIALECTS_ENV = "LLMS_UNBIND_DIALECTS"


def resolve_sample_lines(value: int | None) -> int:
    if value is not None:
        return max(value, 1)
    env_value = os.environ.get(SAMPLE_LINES_ENV)
    if env_value:
        try:
            return max(int(env_value), 1)
        except ValueError:
            logger.debug("Invalid %s value: %s", SAMPLE_LINES_ENV, env_value)
    return DEFAULT_SAMPLE_LINES


def resolve_dialect_order(dialects: Iterable[Dialect | str] | None) -> tuple[Dialect, ...]:
    """Resolve the ordered dialect set.

    Explicit entries may be :class:`Dialect` records or registered names; an
    unknown name raises ``ValueError``. Without explicit entries the
    comma-separated ``LLMS_UNBIND_DIALECTS`` variable is consulted, skipping
    unknown names with a warning. Duplicates are dropped, first one wins.
    """

    order: list[Dialect] = []
    if dialects is not None:
        for entry in dialects:
            if isinstance(entry, Dialect):
                order.append(entry)
                continue
            name = entry.strip()
            if not name:
                continue
            if name not in DIALECTS_BY_NAME:
                raise ValueError(f"unknown dialect: {name}")
            order.append(DIALECTS_BY_NAME[name])
    else:
        env_value = os.environ.get(DIALECTS_ENV)
        if env_value:
            for raw_name in env_value.split(","):
                name = raw_name.strip()
                if not name:
                    continue
                if name not in DIALECTS_BY_NAME:
                    logger.warning("Ignoring unknown dialect in %s: %s", DIALECTS_ENV, name)
                    continue
                order.append(DIALECTS_BY_NAME[name])
    seen = set()
    unique_order: list[Dialect] = []
    for dialect in order:
        if dialect.name not in seen:
            unique_order.append(dialect)
            seen.add(dialect.name)
    return tuple(unique_order) or DEFAULT_DIALECTS


class Arbitrator:
    """Commits to exactly one dialect per extraction.

    Dialects are consulted in precedence order: the first ``certain`` wins,
    then the first ``potential``; when every dialect is ``unknown`` the last
    (most permissive) one is used.
    """

    def __init__(
        self,
        dialects: Iterable[Dialect | str] | None = None,
        sample_lines: int | None = None,
    ) -> None:
        self.dialects = resolve_dialect_order(dialects)
        self.sample_lines = resolve_sample_lines(sample_lines)

    def classify(self, sample: Sequence[str]) -> list[tuple[Dialect, DetectResult]]:
        return [(dialect, dialect.classify(sample, self.dialects)) for dialect in self.dialects]

    def choose(self, sample: Sequence[str]) -> Dialect:
        results = self.classify(sample)
        logger.debug(
            "Dialect scores over %d lines: %s",
            len(sample),
            ", ".join(f"{dialect.name}={result}" for dialect, result in results),
        )
        for wanted in (CERTAIN, POTENTIAL):
            for dialect, result in results:
                if result == wanted:
                    logger.debug("Using %s dialect (%s)", dialect.name, result)
                    return dialect
        fallback = self.dialects[-1]
        logger.debug("No dialect matched; falling back to %s", fallback.name)
        return fallback

    def parser_for(self, sample: Sequence[str]) -> PageParser:
        return self.choose(sample).factory()
