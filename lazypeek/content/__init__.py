"""File-content readers and the tagged ``FileContent`` payloads they return.

``request`` is the front door: it classifies a path and dispatches to the
text, binary, image, archive, or database reader.
"""

from __future__ import annotations

from .classify import classify, detect_file_kind
from .hexdump import format_hex_dump
from .request import request, request_table_rows
from .types import (
    KIND_ARCHIVE,
    KIND_BINARY,
    KIND_DATABASE,
    KIND_IMAGE,
    KIND_TEXT,
    ArchiveContent,
    ArchiveEntry,
    BinaryContent,
    ContentError,
    DatabaseContent,
    FileContent,
    ImageContent,
    RenderedPreview,
    TableRows,
    TableSummary,
    TextContent,
    is_error,
)

__all__ = [
    "KIND_ARCHIVE",
    "KIND_BINARY",
    "KIND_DATABASE",
    "KIND_IMAGE",
    "KIND_TEXT",
    "ArchiveContent",
    "ArchiveEntry",
    "BinaryContent",
    "ContentError",
    "DatabaseContent",
    "FileContent",
    "ImageContent",
    "RenderedPreview",
    "TableRows",
    "TableSummary",
    "TextContent",
    "classify",
    "detect_file_kind",
    "format_hex_dump",
    "is_error",
    "request",
    "request_table_rows",
]
