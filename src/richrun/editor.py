from typing import Callable, List, Optional, Tuple

import structlog

from richrun.models import Run, Selection
from richrun.patterns import PatternTable, RenderSpan
from richrun.runs.store import RunsValue, TokenStore

logger = structlog.get_logger(__name__)

ValueListener = Callable[[Tuple[Run, ...]], None]
SelectionListener = Callable[[Selection], None]


class RichTextEditor:
    """
    Entry point for a text-input adapter and a toolbar.

    The adapter forwards what the native widget reports (text changed,
    selection changed); the toolbar calls toggle_style / set_value. All
    document state lives in the TokenStore.
    """

    def __init__(
        self,
        patterns: Optional[PatternTable] = None,
        default_value: Optional[RunsValue] = None,
        on_value_change: Optional[ValueListener] = None,
        on_selection_change: Optional[SelectionListener] = None,
    ):
        self.store = TokenStore(patterns)
        self.selection = Selection()
        self._on_value_change = on_value_change
        self._on_selection_change = on_selection_change

        if default_value:
            self.store.set_value(default_value)

    @property
    def patterns(self) -> PatternTable:
        return self.store.patterns

    def _notify_value(self):
        if self._on_value_change:
            self._on_value_change(self.store.runs)

    def set_value(self, value: RunsValue):
        """Replaces the document with a markup string or a list of runs."""
        self.store.set_value(value)
        self._notify_value()

    def on_change_text(self, next_text: str) -> str:
        """
        Handles a new text snapshot from the widget.
        Returns the plain text the widget should now display (markup
        delimiters typed in are consumed).
        """
        before = self.store.state
        after = self.store.apply_text_change(next_text)
        if after is not before:
            self._notify_value()
        return after.text

    def on_selection_change(self, start: int, end: int):
        self.selection = Selection(start=start, end=end)
        if self._on_selection_change:
            self._on_selection_change(self.selection)

    def set_selection(self, start: int, end: int):
        self.on_selection_change(start, end)

    def toggle_style(self, style: str):
        logger.debug(f"Toggle '{style}' over [{self.selection.start}:{self.selection.end}]")
        before = self.store.state
        after = self.store.toggle_style(self.selection, style)
        if after.runs != before.runs:
            self._notify_value()

    def get_rich_text_string(self) -> str:
        return self.store.serialize()

    def get_tokenized_string(self) -> Tuple[Run, ...]:
        return self.store.runs

    def get_plain_text(self) -> str:
        return self.store.text

    def get_active_styles(self) -> List[str]:
        return self.store.active_styles(self.selection.start)

    def get_render_plan(self) -> List[RenderSpan]:
        return self.store.render_plan()
