"""
Small string splicing helpers shared by the run operations.
All indices are clamped into the valid range instead of raising.
"""
from typing import Iterable

from richrun.models import Run


def clamp(index: int, length: int) -> int:
    return max(0, min(index, length))


def insert_at(text: str, index: int, substring: str) -> str:
    i = clamp(index, len(text))
    return text[:i] + substring + text[i:]


def remove_at(text: str, index: int, length: int) -> str:
    i = clamp(index, len(text))
    return text[:i] + text[i + length :]


def replace_at(text: str, index: int, substring: str, length: int) -> str:
    i = clamp(index, len(text))
    return text[:i] + substring + text[i + length :]


def join_runs(runs: Iterable[Run]) -> str:
    return "".join(run.text for run in runs)
