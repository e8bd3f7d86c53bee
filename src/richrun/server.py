import json
import logging
import sys

import structlog
from mcp.server.fastmcp import FastMCP

# --- LOGGING CONFIGURATION ---
# CRITICAL: Redirect all logs to stderr.
# Any output to stdout will break the MCP JSON-RPC protocol.
logging.basicConfig(stream=sys.stderr, level=logging.INFO, force=True)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)
# -----------------------------

from richrun.markup import parse_markup
from richrun.models import Selection
from richrun.patterns import PatternTable
from richrun.runs.store import TokenStore

# Initialize the MCP Server
mcp = FastMCP("Richrun Markup Service")

PATTERNS = PatternTable.default()


def _store_from_markup(markup: str) -> TokenStore:
    store = TokenStore(PATTERNS)
    store.set_value(markup)
    return store


@mcp.tool()
def parse_markup_tool(markup: str) -> str:
    """
    Parses a markup string (e.g. "*bold* and _italic_") into styled runs.

    Returns JSON: {"plain_text": ..., "runs": [{"text": ..., "annotations": {...}}]}
    """
    try:
        result = parse_markup(markup, PATTERNS)
        payload = {
            "plain_text": result.plain_text,
            "runs": [run.model_dump() for run in result.runs],
        }
        return json.dumps(payload, ensure_ascii=False)
    except Exception as e:
        return f"Error parsing markup: {str(e)}"


@mcp.tool()
def toggle_style_in_markup(markup: str, start: int, end: int, style: str) -> str:
    """
    Toggles a style over [start, end) of the markup's plain text and returns the new markup.

    Offsets refer to the plain text (delimiters removed). Toggling a style the
    whole range already has removes it.
    Example: toggle_style_in_markup("Hello world", 0, 5, "bold") -> "*Hello* world"
    """
    try:
        if style not in PATTERNS:
            return f"Error toggling style: unknown style '{style}'. Known: {', '.join(PATTERNS.styles)}"
        store = _store_from_markup(markup)
        store.toggle_style(Selection(start=start, end=end), style)
        return store.serialize()
    except Exception as e:
        return f"Error toggling style: {str(e)}"


@mcp.tool()
def apply_text_edit(markup: str, new_plain_text: str) -> str:
    """
    Applies a plain-text rewrite to styled markup, keeping the styles of untouched text.

    The edit is computed as the single contiguous change between the
    markup's plain text and `new_plain_text`.
    Example: apply_text_edit("*Hello* world", "Hello brave world") -> "*Hello* brave world"
    """
    try:
        store = _store_from_markup(markup)
        store.apply_text_change(new_plain_text)
        return store.serialize()
    except Exception as e:
        return f"Error applying edit: {str(e)}"


@mcp.tool()
def list_styles() -> str:
    """Lists the styles this service understands and their markup delimiters."""
    return json.dumps(
        [
            {"style": p.style, "opening": p.opening, "closing": p.closing, "render": p.render.value}
            for p in PATTERNS
        ]
    )


def run_server():
    mcp.run()
