from importlib.metadata import PackageNotFoundError, version

from richrun.diff import compute_diff
from richrun.editor import RichTextEditor
from richrun.markup import parse_markup, serialize_runs
from richrun.models import Diff, EditorState, PendingStyle, Run, Selection
from richrun.patterns import Pattern, PatternTable, RenderVariant
from richrun.runs.store import TokenStore

try:
    __version__ = version("richrun")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source/dev)
    __version__ = "0.0.0-dev"

__all__ = [
    "RichTextEditor",
    "TokenStore",
    "Run",
    "Diff",
    "EditorState",
    "PendingStyle",
    "Selection",
    "Pattern",
    "PatternTable",
    "RenderVariant",
    "compute_diff",
    "parse_markup",
    "serialize_runs",
    "__version__",
]
