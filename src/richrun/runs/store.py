from typing import List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from richrun.diff import compute_diff
from richrun.markup import find_markup_match, parse_markup, resolve_markup, serialize_runs
from richrun.models import Diff, EditorState, Run, Selection
from richrun.patterns import PatternTable, RenderSpan
from richrun.runs.locator import locate_end, locate_start, run_at, text_length
from richrun.runs.pending import should_consume, toggle_pending
from richrun.runs.splitter import conciliate_annotations, normalize_runs, split_and_annotate
from richrun.utils.text import clamp, insert_at, remove_at, replace_at

logger = structlog.get_logger(__name__)

RunsValue = Union[str, Sequence[Union[Run, Mapping]]]


def apply_edit(runs: Sequence[Run], diff: Diff) -> List[Run]:
    """
    Maps a text diff onto the run list (text only, annotations untouched).

    The runs describe the text *before* the edit, so only the removed span
    occupies positions in them: a pure insertion always resolves to a
    single run, however long the inserted text is.
    """
    updated = list(runs)
    total = text_length(updated)

    if diff.is_noop:
        return normalize_runs(updated)

    # 1. Edit at the end of the buffer
    if diff.start >= total:
        last = updated[-1]
        if diff.added:
            updated[-1] = last.with_text(last.text + diff.added)
        elif diff.removed:
            updated[-1] = last.with_text(last.text[: max(0, len(last.text) - len(diff.removed))])
        logger.debug(f"Edit at end of buffer ({diff.operation})")
        return normalize_runs(updated)

    start = locate_start(updated, diff.start)
    end = locate_end(updated, diff.start + len(diff.removed)) if diff.removed else start

    # 2. Same run
    if start.index == end.index:
        run = updated[start.index]

        if diff.removed and diff.added:
            new_text = replace_at(run.text, start.offset, diff.added, len(diff.removed))
        elif diff.removed:
            new_text = remove_at(run.text, start.offset, len(diff.removed))
        else:
            if start.index > 0 and start.offset == 0:
                # Typing at a style boundary continues the preceding run
                prev = updated[start.index - 1]
                updated[start.index - 1] = prev.with_text(prev.text + diff.added)
                logger.debug(f"Insertion at boundary appended to run {start.index - 1}")
                return normalize_runs(updated)
            new_text = insert_at(run.text, start.offset, diff.added)

        updated[start.index] = run.with_text(new_text)
        logger.debug(f"Edit inside run {start.index} ({diff.operation})")
        return normalize_runs(updated)

    # 3. Across runs: keep the head of the first and the tail of the last
    first = updated[start.index]
    last = updated[end.index]
    updated[start.index] = first.with_text(first.text[: start.offset] + diff.added)
    updated[end.index] = last.with_text(last.text[end.offset :])
    del updated[start.index + 1 : end.index]

    logger.debug(f"Edit across runs {start.index}..{end.index} ({diff.operation})")
    return normalize_runs(updated)


def insert_token(runs: Sequence[Run], index: int, annotations: Mapping, text: str = "") -> List[Run]:
    """
    Inserts `text` as a new run at `index`, styled with the run it lands in
    reconciled against `annotations`.
    """
    updated = list(runs)
    index = clamp(index, text_length(updated))

    if index == text_length(updated):
        last = updated[-1]
        updated.append(Run(text=text, annotations=conciliate_annotations(last.annotations, annotations)))
        return normalize_runs(updated)

    position = locate_end(updated, index)
    run = updated[position.index]
    updated[position.index : position.index + 1] = [
        run.with_text(run.text[: position.offset]),
        Run(text=text, annotations=conciliate_annotations(run.annotations, annotations)),
        run.with_text(run.text[position.offset :]),
    ]
    return normalize_runs(updated)


class TokenStore:
    """
    Owns the document state and is the only place it changes.

    Every operation builds a new immutable EditorState and swaps the
    reference, so a snapshot handed out earlier never changes under a reader.
    """

    def __init__(self, patterns: Optional[PatternTable] = None, state: Optional[EditorState] = None):
        self.patterns = patterns if patterns is not None else PatternTable.default()
        self._state = state if state is not None else EditorState()

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def runs(self) -> Tuple[Run, ...]:
        return self._state.runs

    @property
    def text(self) -> str:
        return self._state.text

    def _commit(self, runs: Sequence[Run], pending=None) -> EditorState:
        self._state = EditorState(runs=tuple(normalize_runs(runs)), pending=pending)
        return self._state

    def set_value(self, value: RunsValue) -> EditorState:
        if isinstance(value, str):
            result = parse_markup(value, self.patterns)
            logger.debug(f"Parsed markup into {len(result.runs)} runs")
            return self._commit(result.runs)

        runs = [item if isinstance(item, Run) else Run.model_validate(item) for item in value]
        return self._commit(runs)

    def apply_text_change(self, next_text: str) -> EditorState:
        """
        Reconciles the runs with a new flat-text snapshot from the input widget.

        Order: balanced markup typed in, then a pending style waiting for
        this insertion, then a plain edit.
        """
        state = self._state
        diff = compute_diff(state.text, next_text)

        if diff.is_noop:
            return state

        # 1. Markup typed in (e.g. the closing "*" of "*word*")
        match = find_markup_match(next_text, self.patterns)
        if match:
            logger.debug(f"Markup for '{match.pattern.style}' found at [{match.start}:{match.end}]")
            runs = resolve_markup(apply_edit(state.runs, diff), self.patterns)
            return self._commit(runs)

        # 2. First character after a collapsed-selection toggle
        if should_consume(state.pending, diff):
            logger.debug(f"Applying pending style {state.pending.annotations} at {diff.start}")
            runs = insert_token(state.runs, diff.start, state.pending.annotations, diff.added)
            return self._commit(runs)

        # 3. Plain edit; any pending style is dropped
        return self._commit(apply_edit(state.runs, diff))

    def toggle_style(self, selection: Selection, style: str) -> EditorState:
        if style not in self.patterns:
            logger.warning(f"Skipping toggle: unknown style '{style}'")
            return self._state

        state = self._state
        length = len(state.text)
        start, end = (clamp(offset, length) for offset in selection.ordered())
        selection = Selection(start=start, end=end)

        pending = toggle_pending(state.pending, selection, style)

        if selection.is_collapsed:
            self._state = EditorState(runs=state.runs, pending=pending)
            return self._state

        runs = split_and_annotate(state.runs, start, end, {style: True})
        return self._commit(runs, pending=pending)

    def serialize(self) -> str:
        return serialize_runs(self._state.runs, self.patterns)

    def active_styles(self, offset: int) -> List[str]:
        return run_at(self._state.runs, offset).active_styles()

    def render_plan(self) -> List[RenderSpan]:
        return self.patterns.render_plan(self._state.runs)
