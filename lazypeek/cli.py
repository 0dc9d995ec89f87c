"""Command-line front door for lazypeek.

Parses CLI options, opens the target path in a ``FileView`` and prints the
first window of content (text, image preview, hex dump, archive tree, or
database summary) to stdout.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from dataclasses import replace
from pathlib import Path

from .content.types import ContentError, ImageContent
from .runtime.config import load_viewer_settings, save_style
from .runtime.session import FileView

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazypeek",
        description="Print a window of any file: highlighted text, image preview, hex dump, archive tree, or database tables.",
    )
    parser.add_argument("path", help="File to view.")
    parser.add_argument(
        "--start",
        type=_non_negative_int,
        default=0,
        help="First line (text), 16-byte row (binary) or row (--table) to show.",
    )
    parser.add_argument(
        "--lines",
        type=_positive_int,
        default=None,
        help="Number of body lines to print (default: everything loaded).",
    )
    parser.add_argument(
        "--width",
        type=_positive_int,
        default=None,
        help="Column budget for image previews (default: terminal width).",
    )
    parser.add_argument("--style", default=None, help="Pygments style name for text highlighting.")
    parser.add_argument(
        "--save-style",
        action="store_true",
        help="Store --style in the config file as the default for later runs.",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument("--table", metavar="NAME", default=None, help="Page rows of NAME in a database file.")
    parser.add_argument("--verbose", action="store_true", help="Log debug details to stderr.")
    return parser


def render_view(view: FileView, *, show_preview: bool = True) -> str:
    """Join a loaded view's header, body and status into printable text."""
    out: list[str] = []
    for line in view.header_lines():
        out.append(line)
        out.append("\n")
    body = view.visible_lines()
    if not show_preview and isinstance(view.content, ImageContent):
        body = []
    for line in body:
        out.append(line)
        if "\033" in line:
            out.append("\033[0m")
        out.append("\n")
    status = view.status_line()
    if status:
        out.append(status)
        out.append("\n")
    return "".join(out)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and print the first window of ``path``.

    Exits with status 1 and a message when the file cannot be read.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.save_style and args.style is None:
        parser.error("--save-style requires --style")
    _configure_logging(args.verbose)

    path = Path(args.path)
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    if path.is_dir():
        raise SystemExit(f"Not a file: {path}")

    settings = load_viewer_settings()
    if args.style is not None:
        settings = replace(settings, style=args.style)
    if args.save_style:
        save_style(args.style)
    term = shutil.get_terminal_size((80, 24))
    view = FileView(
        settings,
        page_size=args.lines,
        width=args.width if args.width is not None else term.columns,
        height=term.lines,
        color=not args.no_color,
    )
    view.open(path, position=args.start, table=args.table)
    view.wait()

    if isinstance(view.content, ContentError):
        logger.debug("request failed: %s (%s)", view.content.message, view.content.error_type)
        raise SystemExit(f"Error reading {view.content.kind} file {path}: {view.content.message}")
    if args.lines is None and view.controller is not None:
        view.resize(max(1, view.controller.state.loaded_item_count))

    sys.stdout.write(render_view(view, show_preview=not args.no_color))
    if view.error is not None:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
