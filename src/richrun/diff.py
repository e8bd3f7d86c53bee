from diff_match_patch import diff_match_patch
import structlog

from richrun.models import Diff

logger = structlog.get_logger(__name__)

_dmp = diff_match_patch()


def compute_diff(prev: str, next_text: str) -> Diff:
    """
    Computes the single contiguous edit that turns `prev` into `next_text`.

    Text input events only ever carry one insertion, deletion or replacement
    at the caret, so a common prefix + common suffix scan is enough; no LCS.
    The suffix is measured on what is left after the prefix, so the two
    never overlap (e.g. "aa" -> "aaa" is an insertion at 2, not at 0).
    """
    prefix = _dmp.diff_commonPrefix(prev, next_text)

    prev_tail = prev[prefix:]
    next_tail = next_text[prefix:]
    suffix = _dmp.diff_commonSuffix(prev_tail, next_tail)

    removed = prev_tail[: len(prev_tail) - suffix]
    added = next_tail[: len(next_tail) - suffix]

    diff = Diff(start=prefix, removed=removed, added=added)
    logger.debug(f"Diff at {prefix}: -{len(removed)} +{len(added)} ({diff.operation})")
    return diff
