import pytest

from richrun.editor import RichTextEditor
from richrun.patterns import PatternTable


@pytest.fixture
def patterns():
    """The built-in pattern table (bold, italic, strikethrough, code, underline)."""
    return PatternTable.default()


@pytest.fixture
def editor(patterns):
    return RichTextEditor(patterns=patterns)
