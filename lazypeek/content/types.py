"""Content payload datatypes returned by file readers.

Each request yields exactly one ``FileContent`` variant. Failures are the
``ContentError`` variant, so a valid payload and an error never coexist.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Union

from .errors import ContentDecodeError, ContentReadError
from .hexdump import format_hex_dump

KIND_TEXT = "text"
KIND_IMAGE = "image"
KIND_BINARY = "binary"
KIND_ARCHIVE = "archive"
KIND_DATABASE = "database"

ERROR_IO = "io"
ERROR_DECODE = "decode"


@dataclass(frozen=True)
class RenderedPreview:
    """Terminal-ready image preview made of pre-colored half-block rows."""

    char_width: int
    char_height: int
    rows: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.rows) != self.char_height:
            raise ValueError(f"preview has {len(self.rows)} rows, expected {self.char_height}")


@dataclass(frozen=True)
class ArchiveEntry:
    """One flat manifest record; hierarchy is rebuilt from ``name``."""

    name: str
    size: int
    compressed_size: int
    mod_time: datetime | None
    is_dir: bool


@dataclass(frozen=True)
class ColumnSummary:
    name: str
    type: str
    not_null: bool
    primary_key: bool


@dataclass(frozen=True)
class TableSummary:
    name: str
    row_count: int
    schema: str = ""
    columns: tuple[ColumnSummary, ...] = ()
    sample: tuple[dict[str, object], ...] = ()


@dataclass(frozen=True)
class TableRows:
    """Paginated row window for one database table."""

    table: str
    columns: tuple[str, ...]
    rows: tuple[dict[str, object], ...]
    offset: int
    total_rows: int


@dataclass(frozen=True)
class TextContent:
    kind: ClassVar[str] = KIND_TEXT

    lines: tuple[str, ...]
    total_lines: int
    start_line: int = 0
    detected_language: str | None = None


@dataclass(frozen=True)
class ImageContent:
    kind: ClassVar[str] = KIND_IMAGE

    format: str
    width: int
    height: int
    size_bytes: int
    preview: RenderedPreview | None = None
    preview_error: str | None = None


@dataclass(frozen=True)
class BinaryContent:
    kind: ClassVar[str] = KIND_BINARY

    chunk: bytes
    chunk_base_offset: int
    total_size: int

    @property
    def end_offset(self) -> int:
        return self.chunk_base_offset + len(self.chunk)

    def hex_lines(self) -> list[str]:
        return format_hex_dump(self.chunk, self.chunk_base_offset)


@dataclass(frozen=True)
class ArchiveContent:
    kind: ClassVar[str] = KIND_ARCHIVE

    format: str
    entries: tuple[ArchiveEntry, ...]
    file_count: int
    folder_count: int
    total_size: int
    compressed_size: int
    tree_lines: tuple[str, ...] = ()

    @property
    def compression_ratio(self) -> float | None:
        """Compressed size as a percentage of uncompressed size."""
        if self.total_size <= 0:
            return None
        return self.compressed_size / self.total_size * 100


@dataclass(frozen=True)
class DatabaseContent:
    kind: ClassVar[str] = KIND_DATABASE

    format: str
    version: str
    table_count: int
    tables: tuple[TableSummary, ...]
    file_size: int = 0
    schema: str = ""


@dataclass(frozen=True)
class ContentError:
    """Failed request for ``kind``; ``partial`` holds best-effort text lines."""

    kind: str
    message: str
    error_type: str = ERROR_IO
    partial: TextContent | None = field(default=None)

    def raise_for_error(self) -> None:
        if self.error_type == ERROR_DECODE:
            raise ContentDecodeError(self.message)
        raise ContentReadError(self.message)


FileContent = Union[TextContent, ImageContent, BinaryContent, ArchiveContent, DatabaseContent, ContentError]


def is_error(content: FileContent) -> bool:
    return isinstance(content, ContentError)


__all__ = [
    "ArchiveContent",
    "ArchiveEntry",
    "BinaryContent",
    "ColumnSummary",
    "ContentError",
    "DatabaseContent",
    "ERROR_DECODE",
    "ERROR_IO",
    "FileContent",
    "ImageContent",
    "KIND_ARCHIVE",
    "KIND_BINARY",
    "KIND_DATABASE",
    "KIND_IMAGE",
    "KIND_TEXT",
    "RenderedPreview",
    "TableRows",
    "TableSummary",
    "TextContent",
    "is_error",
]
