# FILE: src/richrun/markup.py

from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import structlog

from richrun.models import Run
from richrun.patterns import Pattern, PatternTable
from richrun.runs.splitter import normalize_runs, split_and_annotate
from richrun.utils.text import join_runs

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MarkupMatch:
    """
    A balanced markup span found in flat text.
    [start, end) is the raw match, [content_start, content_end) the styled text.
    """

    pattern: Pattern
    start: int
    end: int
    content_start: int
    content_end: int

    def delimiters(self, text: str) -> Tuple[str, str]:
        return text[self.start : self.content_start], text[self.content_end : self.end]


@dataclass
class ParseResult:
    runs: List[Run]
    plain_text: str

    @property
    def tokens(self) -> List[Run]:
        return self.runs


def _longer_literals(literal: str, patterns: PatternTable) -> List[str]:
    return [other for other in patterns.literals if len(other) > len(literal) and literal in other]


def _is_standalone(text: str, index: int, literal: str, longer: Sequence[str]) -> bool:
    """
    An occurrence does not count when it is part of a longer registered
    literal, e.g. the "_"s in "__underline__".
    """
    for other in longer:
        for j in range(max(0, index + len(literal) - len(other)), index + 1):
            if text.startswith(other, j):
                return False
    return True


def _next_standalone(text: str, literal: str, from_index: int, longer: Sequence[str]) -> Optional[int]:
    index = text.find(literal, from_index)
    while index != -1:
        if _is_standalone(text, index, literal, longer):
            return index
        index = text.find(literal, index + 1)
    return None


def _match_literals(text: str, pattern: Pattern, patterns: PatternTable) -> Optional[MarkupMatch]:
    opening, closing = pattern.opening, pattern.closing
    longer_opening = _longer_literals(opening, patterns)
    longer_closing = _longer_literals(closing, patterns)

    open_at = _next_standalone(text, opening, 0, longer_opening)
    while open_at is not None:
        content_start = open_at + len(opening)
        close_at = _next_standalone(text, closing, content_start, longer_closing)
        if close_at is None:
            return None

        if close_at == content_start:
            # Empty content ("**"): retry with the closing occurrence as the new opening
            open_at = _next_standalone(text, opening, close_at, longer_opening)
            continue

        return MarkupMatch(
            pattern=pattern,
            start=open_at,
            end=close_at + len(closing),
            content_start=content_start,
            content_end=close_at,
        )
    return None


def _match_regex(text: str, pattern: Pattern) -> Optional[MarkupMatch]:
    found = pattern.matcher.search(text)
    if not found or not found.group(1):
        return None

    if found.span(1) == found.span():
        # Nothing to strip; accepting it would never shorten the text
        logger.warning(f"Pattern '{pattern.style}' matched without delimiters, ignoring")
        return None

    return MarkupMatch(
        pattern=pattern,
        start=found.start(),
        end=found.end(),
        content_start=found.start(1),
        content_end=found.end(1),
    )


def match_pattern(text: str, pattern: Pattern, patterns: PatternTable) -> Optional[MarkupMatch]:
    if pattern.is_delimited:
        return _match_literals(text, pattern, patterns)
    if pattern.matcher is not None:
        return _match_regex(text, pattern)
    # Opening-only patterns (block markers like "#") are not parsed yet
    return None


def find_markup_match(text: str, patterns: PatternTable) -> Optional[MarkupMatch]:
    """Returns the first balanced match, trying patterns in table order."""
    for pattern in patterns:
        match = match_pattern(text, pattern, patterns)
        if match:
            return match
    return None


def resolve_markup(runs: Iterable[Run], patterns: PatternTable) -> List[Run]:
    """
    Turns every balanced markup span found in the runs' text into annotations,
    removing the delimiters. Existing annotations are kept (and toggled, if a
    span re-applies a style the text already has).

    Patterns are drained through a worklist: after a successful match the
    same pattern goes back to the front, since indices shifted. Each match
    strictly shortens the text, so the loop terminates.
    """
    current = normalize_runs(list(runs))
    work = deque(patterns)

    while work:
        pattern = work.popleft()
        text = join_runs(current)

        match = match_pattern(text, pattern, patterns)
        if match is None:
            continue

        updated = split_and_annotate(
            current,
            match.start,
            match.end,
            {pattern.style: True},
            strip_literals=match.delimiters(text),
        )

        if len(join_runs(updated)) >= len(text):
            logger.warning(f"Match for '{pattern.style}' at {match.start} did not shorten the text, skipping pattern")
            continue

        logger.debug(f"Resolved '{pattern.style}' markup at [{match.start}:{match.end}]")
        current = updated
        work.appendleft(pattern)

    return current


def parse_markup(text: str, patterns: PatternTable) -> ParseResult:
    """
    Parses a markup string (e.g. "*bold* plain") into runs and plain text.
    """
    runs = resolve_markup([Run(text=text)], patterns)
    return ParseResult(runs=runs, plain_text=join_runs(runs))


def serialize_runs(runs: Iterable[Run], patterns: PatternTable) -> str:
    """
    Writes runs back out as markup. Each run is wrapped on its own, one
    delimiter pair per active style, first pattern innermost:

        Run("x", {bold, italic}) -> "_*x*_"

    Consecutive runs sharing a style are not grouped under one pair.
    Patterns without a closing literal cannot be written and are skipped.
    """
    parts = []
    for run in runs:
        wrapped = run.text
        for pattern in patterns:
            if pattern.is_delimited and run.annotations.get(pattern.style):
                wrapped = pattern.wrap(wrapped)
        parts.append(wrapped)
    return "".join(parts)
