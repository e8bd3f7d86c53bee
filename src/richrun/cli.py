import argparse
import json
import sys
from pathlib import Path

import structlog

from richrun.patterns import PatternTable
from richrun.runs.store import TokenStore

logger = structlog.get_logger(__name__)


def _read_text(path: Path) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Could not read {path}: {e}", exc_info=True)
        raise ValueError(f"Could not read {path}: {str(e)}") from e


def mode_parse(markup_path: Path) -> Path:
    print(f"📄 Parsing markup from: {markup_path}")
    store = TokenStore(PatternTable.default())
    store.set_value(_read_text(markup_path))

    payload = {
        "plain_text": store.text,
        "runs": [run.model_dump() for run in store.runs],
    }
    output_json = markup_path.with_suffix(".json")
    with open(output_json, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

    print(f"✅ {len(store.runs)} runs saved to: {output_json}")
    return output_json


def mode_edit(markup_path: Path, plain_path: Path) -> Path:
    print(f"🔄 Applying '{plain_path}' to '{markup_path}'...")

    # 1. Load styled document
    store = TokenStore(PatternTable.default())
    store.set_value(_read_text(markup_path))

    # 2. Apply the plain-text rewrite
    store.apply_text_change(_read_text(plain_path))

    # 3. Save
    output = markup_path.with_name(f"{markup_path.stem}_edited{markup_path.suffix}")
    with open(output, "w", encoding="utf-8") as f:
        f.write(store.serialize())

    print(f"✅ Success! Edited markup saved to: {output}")
    return output


def handle_serve(args):
    # Imported lazily: the server module reconfigures logging for stdio transport.
    from richrun.server import run_server

    run_server()


def handle_parse(args):
    if not args.markup_file.exists():
        print(f"❌ Error: File {args.markup_file} not found.")
        sys.exit(1)
    mode_parse(args.markup_file)


def handle_edit(args):
    for path in (args.markup_file, args.plain_file):
        if not path.exists():
            print(f"❌ Error: File {path} not found.")
            sys.exit(1)
    mode_edit(args.markup_file, args.plain_file)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Richrun: styled markup <-> annotated runs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_parse = subparsers.add_parser("parse", help="Parse a markup file into runs (JSON)")
    p_parse.add_argument("markup_file", type=Path, help="Path to the markup file")
    p_parse.set_defaults(func=handle_parse)

    p_edit = subparsers.add_parser("edit", help="Apply a plain-text rewrite to a markup file")
    p_edit.add_argument("markup_file", type=Path, help="Path to the styled markup file")
    p_edit.add_argument("plain_file", type=Path, help="Path to the rewritten plain text")
    p_edit.set_defaults(func=handle_edit)

    p_serve = subparsers.add_parser("serve", help="Run the MCP server on stdio")
    p_serve.set_defaults(func=handle_serve)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
