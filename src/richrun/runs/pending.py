from typing import Optional

import structlog

from richrun.models import Diff, PendingStyle, Selection
from richrun.runs.splitter import conciliate_annotations

logger = structlog.get_logger(__name__)


def toggle_pending(current: Optional[PendingStyle], selection: Selection, style: str) -> PendingStyle:
    """
    Arms (or disarms) a style for the next character typed.

    Collapsed selection: the anchor is the caret. With a range selected the
    anchor is the end of the range, so text typed right after a freshly
    styled selection gets the toggled state instead of silently inheriting.
    Pressing the same style twice at the same anchor cancels it out.
    """
    start, end = selection.ordered()
    anchor = start if selection.is_collapsed else end

    base = {}
    if current is not None and current.start == anchor and current.end == anchor:
        base = current.annotations
    elif current is not None and current.is_armed:
        logger.debug(f"Dropping pending style anchored at {current.start}, caret moved to {anchor}")

    pending = PendingStyle(start=anchor, end=anchor, annotations=conciliate_annotations(base, {style: True}))
    logger.debug(f"Pending style at {anchor}: {pending.annotations}")
    return pending


def should_consume(pending: Optional[PendingStyle], diff: Diff) -> bool:
    """True when `diff` is the insertion the pending style was waiting for."""
    if pending is None or not pending.is_armed:
        return False
    if not diff.added or diff.removed:
        return False
    return diff.start == pending.start == pending.end
