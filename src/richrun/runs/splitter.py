"""
Splitting, annotating and merging of run lists.

Every function here is pure: it takes a sequence of runs and returns a new
list, leaving the input untouched. Results always go through
normalize_runs, so callers get a list with no empty runs (unless the whole
document is empty) and no two neighbours sharing the same annotations.
"""
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from richrun.models import Run
from richrun.runs.locator import locate_end, locate_start, text_length
from richrun.utils.text import clamp, join_runs

logger = structlog.get_logger(__name__)


def conciliate_annotations(prev: Mapping, delta: Mapping) -> Dict:
    """
    Reconciles a run's annotations with a toggle delta.

    A truthy delta value flips the current value (so toggling bold on an
    already-bold run turns it off); a falsy one is assigned as-is.

    >>> conciliate_annotations({"bold": True}, {"bold": True})
    {'bold': False}
    """
    updated = dict(prev)
    for key, value in delta.items():
        if value:
            updated[key] = not updated.get(key)
        else:
            updated[key] = value
    return updated


def merge_runs(runs: Sequence[Run]) -> List[Run]:
    """
    Concatenates neighbouring runs whose annotation mappings are equal.
    Runs without annotations merge like any other.
    """
    merged: List[Run] = []
    for run in runs:
        if merged and merged[-1].annotations == run.annotations:
            merged[-1] = merged[-1].with_text(merged[-1].text + run.text)
            continue
        merged.append(run)
    return merged


def normalize_runs(runs: Sequence[Run]) -> List[Run]:
    non_empty = [run for run in runs if run.text]
    if not non_empty:
        return [Run(text="")]
    return merge_runs(non_empty)


def cut_range(runs: Sequence[Run], start: int, end: int) -> List[Run]:
    """Removes the characters in [start, end), keeping surrounding annotations."""
    result: List[Run] = []
    pos = 0
    for run in runs:
        run_start, run_end = pos, pos + len(run.text)
        pos = run_end

        if run_end <= start or run_start >= end:
            result.append(run)
            continue

        keep_head = run.text[: max(0, start - run_start)]
        keep_tail = run.text[min(len(run.text), end - run_start) :]
        result.append(run.with_text(keep_head + keep_tail))
    return result


def _strip_delimiters(
    runs: List[Run], start: int, end: int, literals: Tuple[str, str]
) -> Tuple[List[Run], int, int]:
    opening, closing = literals
    text = join_runs(runs)

    fits = end - start >= len(opening) + len(closing)
    if not (fits and text.startswith(opening, start) and text[:end].endswith(closing)):
        logger.warning(f"Delimiters {literals!r} not found around [{start}:{end}], nothing stripped")
        return runs, start, end

    # Closing first so the opening offsets stay valid
    runs = cut_range(runs, end - len(closing), end)
    runs = cut_range(runs, start, start + len(opening))
    return normalize_runs(runs), start, end - len(opening) - len(closing)


def split_and_annotate(
    runs: Sequence[Run],
    start: int,
    end: int,
    delta: Mapping,
    strip_literals: Optional[Tuple[str, str]] = None,
) -> List[Run]:
    """
    Applies an annotation delta to the text in [start, end).

    With `strip_literals=(opening, closing)` the range covers a raw markup
    match: both delimiters are cut out first and the delta is applied to
    what was between them.
    """
    updated = list(runs)
    total = text_length(updated)
    start, end = sorted((clamp(start, total), clamp(end, total)))

    if strip_literals:
        updated, start, end = _strip_delimiters(updated, start, end, strip_literals)

    if start == end:
        return normalize_runs(updated)

    first = locate_start(updated, start)
    last = locate_end(updated, end)

    # 1. Selection inside a single run: prefix / middle / suffix
    if first.index == last.index:
        run = updated[first.index]
        middle = Run(
            text=run.text[first.offset : last.offset],
            annotations=conciliate_annotations(run.annotations, delta),
        )
        updated[first.index : first.index + 1] = [
            run.with_text(run.text[: first.offset]),
            middle,
            run.with_text(run.text[last.offset :]),
        ]
        logger.debug(f"Annotated [{start}:{end}] inside run {first.index}")
        return normalize_runs(updated)

    # 2. Selection across runs: one uniform value per key over the whole span
    covered = updated[first.index : last.index + 1]
    targets = {}
    for key, value in delta.items():
        all_on = all(run.annotations.get(key) is True for run in covered)
        targets[key] = value if value and not all_on else False

    def _apply(run: Run, text: str) -> Run:
        return Run(text=text, annotations={**run.annotations, **targets})

    head_run = updated[first.index]
    tail_run = updated[last.index]

    pieces = [
        head_run.with_text(head_run.text[: first.offset]),
        _apply(head_run, head_run.text[first.offset :]),
        *[_apply(run, run.text) for run in updated[first.index + 1 : last.index]],
        _apply(tail_run, tail_run.text[: last.offset]),
        tail_run.with_text(tail_run.text[last.offset :]),
    ]
    updated[first.index : last.index + 1] = pieces

    logger.debug(f"Annotated [{start}:{end}] across runs {first.index}..{last.index}: {targets}")
    return normalize_runs(updated)
