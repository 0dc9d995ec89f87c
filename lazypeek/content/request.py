"""Single entry point turning a path plus position hints into ``FileContent``."""

from __future__ import annotations

import logging
from pathlib import Path

from .archive import read_manifest
from .binary import read_chunk
from .classify import detect_file_kind, file_extension
from .database import fetch_rows, read_database_info
from .image import read_image_info, read_svg_info
from .text import MAX_LINE_CHARS, read_window, sniff_language_from_lines
from .types import (
    ERROR_DECODE,
    ERROR_IO,
    KIND_ARCHIVE,
    KIND_BINARY,
    KIND_DATABASE,
    KIND_IMAGE,
    KIND_TEXT,
    BinaryContent,
    ContentError,
    FileContent,
    TableRows,
    TextContent,
)

logger = logging.getLogger(__name__)

DEFAULT_TEXT_CHUNK_LINES = 500
DEFAULT_WIDTH_HINT = 80


def _error(kind: str, message: str, is_decode: bool = False, partial: TextContent | None = None) -> ContentError:
    return ContentError(kind=kind, message=message, error_type=ERROR_DECODE if is_decode else ERROR_IO, partial=partial)


def _request_text(path: Path, start_line: int, max_lines: int, max_line_chars: int) -> FileContent:
    lines, total_lines, error = read_window(path, start_line, max_lines, max_line_chars)
    content = TextContent(lines=tuple(lines), total_lines=total_lines, start_line=max(0, start_line))
    if error is not None:
        return _error(KIND_TEXT, error, partial=content)

    if file_extension(path) or not lines:
        return content
    language = sniff_language_from_lines(lines)
    if language == "svg":
        image, image_error, _is_decode = read_svg_info(path, path.stat().st_size)
        if image_error is None and image is not None:
            return image
        language = "xml"
    if language is None:
        return content
    return TextContent(
        lines=content.lines,
        total_lines=content.total_lines,
        start_line=content.start_line,
        detected_language=language,
    )


def _request_binary(path: Path, start_row: int) -> FileContent:
    chunk, base_offset, total_size, error = read_chunk(path, start_row)
    if error is not None:
        return _error(KIND_BINARY, error)
    return BinaryContent(chunk=chunk, chunk_base_offset=base_offset, total_size=total_size)


def request(
    path: Path,
    position_hint: int = 0,
    size_hint: int = DEFAULT_TEXT_CHUNK_LINES,
    width_hint: int = DEFAULT_WIDTH_HINT,
    *,
    kind: str | None = None,
    max_line_chars: int = MAX_LINE_CHARS,
) -> FileContent:
    """Classify ``path`` and read the window described by the hints.

    ``position_hint`` is a line index for text and a 16-byte row index for
    binary. ``size_hint`` is the line budget for text and the preview height
    for images; ``width_hint`` bounds image preview width. Archive and
    database reads ignore the hints. Pass ``kind`` to skip classification.
    """
    path = Path(path)
    if kind is None:
        kind = detect_file_kind(path)
    logger.debug("request %s kind=%s position=%d size=%d width=%d", path, kind, position_hint, size_hint, width_hint)

    if kind == KIND_TEXT:
        try:
            return _request_text(path, position_hint, size_hint, max_line_chars)
        except OSError as exc:
            return _error(KIND_TEXT, str(exc))
    if kind == KIND_IMAGE:
        image, error, is_decode = read_image_info(path, size_hint, width_hint)
        if error is not None or image is None:
            return _error(KIND_IMAGE, error or "unreadable image", is_decode)
        return image
    if kind == KIND_ARCHIVE:
        archive, error, is_decode = read_manifest(path)
        if error is not None or archive is None:
            return _error(KIND_ARCHIVE, error or "unreadable archive", is_decode)
        return archive
    if kind == KIND_DATABASE:
        database, error, is_decode = read_database_info(path)
        if error is not None or database is None:
            return _error(KIND_DATABASE, error or "unreadable database", is_decode)
        return database
    return _request_binary(path, position_hint)


def request_table_rows(path: Path, table: str, offset: int, limit: int) -> TableRows | ContentError:
    """Fetch one page of rows from ``table`` for a row-addressed view."""
    rows, error = fetch_rows(Path(path), table, offset, limit)
    if error is not None or rows is None:
        return _error(KIND_DATABASE, error or "unreadable table")
    return rows
