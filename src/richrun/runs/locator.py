"""
Resolves flat-text offsets to (run index, offset inside run).

The two lookups differ only at run boundaries, and that difference is the
whole point:

    runs:     ["ab"] ["cd"]
    offset 2: locate_start -> (1, 0)   start of the following run
              locate_end   -> (0, 2)   end of the preceding run

Use locate_start for the first character an operation touches and
locate_end for the position just past the last one.
"""
from dataclasses import dataclass
from typing import Sequence

import structlog

from richrun.models import Run
from richrun.utils.text import clamp

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RunPosition:
    index: int
    offset: int


def text_length(runs: Sequence[Run]) -> int:
    return sum(len(run.text) for run in runs)


def clamp_offset(runs: Sequence[Run], offset: int) -> int:
    length = text_length(runs)
    clamped = clamp(offset, length)
    if clamped != offset:
        logger.debug(f"Clamped offset {offset} into [0, {length}]")
    return clamped


def _end_of_last(runs: Sequence[Run]) -> RunPosition:
    if not runs:
        return RunPosition(0, 0)
    return RunPosition(len(runs) - 1, len(runs[-1].text))


def locate_start(runs: Sequence[Run], offset: int) -> RunPosition:
    remaining = clamp_offset(runs, offset)
    for i, run in enumerate(runs):
        if remaining < len(run.text):
            return RunPosition(i, remaining)
        remaining -= len(run.text)
    # Offset at (or past) the end of the buffer
    return _end_of_last(runs)


def locate_end(runs: Sequence[Run], offset: int) -> RunPosition:
    remaining = clamp_offset(runs, offset)
    for i, run in enumerate(runs):
        if remaining <= len(run.text):
            return RunPosition(i, remaining)
        remaining -= len(run.text)
    return _end_of_last(runs)


def run_at(runs: Sequence[Run], offset: int) -> Run:
    """Run the caret at `offset` belongs to (boundaries go to the preceding run)."""
    position = locate_end(runs, offset)
    return runs[position.index]
