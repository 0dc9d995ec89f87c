"""Fixed-size byte window reader for hex views."""

from __future__ import annotations

import logging
from pathlib import Path

from .hexdump import HEX_ROW_BYTES

logger = logging.getLogger(__name__)

BINARY_CHUNK_BYTES = 8 * 1024


def read_chunk(
    path: Path,
    start_row: int,
    row_size: int = HEX_ROW_BYTES,
    chunk_bytes: int = BINARY_CHUNK_BYTES,
) -> tuple[bytes, int, int, str | None]:
    """Read one window of bytes starting at row ``start_row``.

    Returns ``(chunk, chunk_base_offset, total_size, error)`` where
    ``chunk_base_offset == start_row * row_size``. The window is shortened at
    end of file and is empty (not an error) when the offset is at or past it.
    ``total_size`` comes from file metadata.
    """
    base_offset = max(0, start_row) * row_size
    path = Path(path)
    try:
        total_size = path.stat().st_size
    except OSError as exc:
        return b"", base_offset, 0, str(exc)

    read_size = min(chunk_bytes, total_size - base_offset)
    if read_size <= 0:
        return b"", base_offset, total_size, None

    try:
        with path.open("rb") as handle:
            handle.seek(base_offset)
            chunk = handle.read(read_size)
    except OSError as exc:
        logger.debug("binary read of %s at %d failed: %s", path, base_offset, exc)
        return b"", base_offset, total_size, str(exc)
    return chunk, base_offset, total_size, None
