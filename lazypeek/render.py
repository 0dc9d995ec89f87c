"""Plain-text rendering of content headers and non-text item lists."""

from __future__ import annotations

from .content.types import (
    ArchiveContent,
    BinaryContent,
    ContentError,
    DatabaseContent,
    FileContent,
    ImageContent,
    TableRows,
    TableSummary,
)

SEPARATOR = " • "
SIZE_UNITS = "KMGTPE"


def format_size(size: int) -> str:
    """Human-readable size with 1024-based units (``"1.5 KB"``)."""
    if size < 1024:
        return f"{size} B"
    div = 1024
    exp = 0
    remaining = size // 1024
    while remaining >= 1024 and exp < len(SIZE_UNITS) - 1:
        div *= 1024
        exp += 1
        remaining //= 1024
    return f"{size / div:.1f} {SIZE_UNITS[exp]}B"


def _display_cell(value: object) -> str:
    if value is None:
        return "NULL"
    return str(value).replace("\n", " ")


def format_table_summary(table: TableSummary) -> str:
    noun = "row" if table.row_count == 1 else "rows"
    columns = ", ".join(column.name for column in table.columns)
    line = f"{table.name} ({table.row_count} {noun})"
    return f"{line}: {columns}" if columns else line


def format_table_row(row: dict[str, object], columns: tuple[str, ...]) -> str:
    return " | ".join(_display_cell(row.get(column)) for column in columns)


def header_lines(content: FileContent | TableRows) -> list[str]:
    """Metadata lines shown above the scrollable body of a view."""
    if isinstance(content, ImageContent):
        lines = [
            f"{content.format} Image{SEPARATOR}{content.width} × {content.height} pixels"
            f"{SEPARATOR}{format_size(content.size_bytes)}"
        ]
        if content.preview_error is not None:
            lines.append(f"Preview unavailable: {content.preview_error}")
        return lines
    if isinstance(content, BinaryContent):
        return [f"Binary file{SEPARATOR}{format_size(content.total_size)}"]
    if isinstance(content, ArchiveContent):
        info = f"{content.format} Archive{SEPARATOR}{content.file_count} files, {content.folder_count} folders"
        ratio = content.compression_ratio
        if ratio is not None:
            info += f"{SEPARATOR}{ratio:.1f}% compression"
        return [info]
    if isinstance(content, DatabaseContent):
        return [
            f"{content.format} {content.version}{SEPARATOR}{content.table_count} tables"
            f"{SEPARATOR}{format_size(content.file_size)}"
        ]
    if isinstance(content, TableRows):
        return [f"Table {content.table}{SEPARATOR}{content.total_rows} rows", " | ".join(content.columns)]
    if isinstance(content, ContentError):
        return [f"Error reading {content.kind} file: {content.message}"]
    return []


def item_lines(content: FileContent | TableRows, start: int, end: int) -> list[str]:
    """Uncolored body lines ``[start, end)`` for non-text content."""
    if isinstance(content, BinaryContent):
        row_start = start * 16
        return BinaryContent(
            chunk=content.chunk[row_start:end * 16],
            chunk_base_offset=content.chunk_base_offset + row_start,
            total_size=content.total_size,
        ).hex_lines()
    if isinstance(content, ArchiveContent):
        return list(content.tree_lines[start:end])
    if isinstance(content, DatabaseContent):
        return [format_table_summary(table) for table in content.tables[start:end]]
    if isinstance(content, ImageContent):
        if content.preview is None:
            return []
        return list(content.preview.rows[start:end])
    if isinstance(content, TableRows):
        return [format_table_row(row, content.columns) for row in content.rows[start:end]]
    return []


__all__ = [
    "format_size",
    "format_table_row",
    "format_table_summary",
    "header_lines",
    "item_lines",
]
