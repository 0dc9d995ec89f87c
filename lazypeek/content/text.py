"""Bounded-window line reader.

Every call scans from the start of the file to count lines, so cost is linear
in file length. Only the requested window is kept in memory.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_LINE_CHARS = 2_000
LINE_ELLIPSIS = "..."
SCAN_LINE_LIMIT_BYTES = 1024 * 1024
CONTENT_SNIFF_CHARS = 500

_HTML_MARKERS = (
    "<!doctype html",
    "<html",
    "<head>",
    "<body>",
    "<div",
    "<span",
    "<p>",
    "<h1",
    "<h2",
    "<h3",
    "<meta",
    "<title>",
    "<script",
    "<style",
    "<link",
)
_SVG_NAMESPACE = 'xmlns="http://www.w3.org/2000/svg"'
_TAG_RE = re.compile(r"<[^>]*>")


def _decode_line(raw: bytes) -> str:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def truncate_line(line: str, max_chars: int = MAX_LINE_CHARS) -> str:
    if max_chars <= 0 or len(line) <= max_chars:
        return line
    return line[:max_chars] + LINE_ELLIPSIS


def _read_line(handle) -> bytes:
    """Read one physical line, keeping at most ``SCAN_LINE_LIMIT_BYTES`` of it."""
    head = handle.readline(SCAN_LINE_LIMIT_BYTES)
    if not head or head.endswith(b"\n") or len(head) < SCAN_LINE_LIMIT_BYTES:
        return head
    # Drain the rest of an oversized line without holding it.
    while True:
        rest = handle.readline(SCAN_LINE_LIMIT_BYTES)
        if not rest or rest.endswith(b"\n"):
            return head + b"\n"


def read_window(
    path: Path,
    start_line: int,
    max_lines: int,
    max_line_chars: int = MAX_LINE_CHARS,
) -> tuple[list[str], int, str | None]:
    """Read up to ``max_lines`` lines starting at ``start_line`` (0-based).

    Returns ``(lines, total_lines, error)``. ``total_lines`` counts every line
    seen during the scan. On an I/O failure the scan stops and the lines
    collected so far are returned together with the error message.
    """
    start_line = max(0, start_line)
    max_lines = max(0, max_lines)
    lines: list[str] = []
    total_lines = 0
    try:
        with Path(path).open("rb") as handle:
            while True:
                raw = _read_line(handle)
                if not raw:
                    break
                if total_lines >= start_line and len(lines) < max_lines:
                    lines.append(truncate_line(_decode_line(raw), max_line_chars))
                total_lines += 1
    except OSError as exc:
        logger.debug("text scan of %s stopped after %d lines: %s", path, total_lines, exc)
        return lines, total_lines, str(exc)
    return lines, total_lines, None


def detect_content_language(content: str) -> str | None:
    """Guess a markup/data language for extensionless text.

    Returns ``"html"``, ``"svg"``, ``"xml"``, ``"json"`` or ``None``.
    """
    trimmed = content.strip().lower()
    if not trimmed:
        return None
    if any(marker in trimmed for marker in _HTML_MARKERS):
        return "html"
    if trimmed.startswith("<?xml") and ("<svg" in trimmed or _SVG_NAMESPACE in trimmed):
        return "svg"
    if trimmed.startswith("<?xml"):
        return "xml"
    if _TAG_RE.search(trimmed) and "<svg" not in trimmed:
        return "xml"
    if trimmed.startswith("{") and ":" in trimmed:
        return "json"
    if trimmed.startswith("[") and "{" in trimmed:
        return "json"
    return None


def sniff_language_from_lines(lines: list[str]) -> str | None:
    return detect_content_language("\n".join(lines)[:CONTENT_SNIFF_CHARS])
