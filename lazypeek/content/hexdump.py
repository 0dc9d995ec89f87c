"""Canonical 16-bytes-per-row hex dump formatting."""

from __future__ import annotations

HEX_ROW_BYTES = 16
HEX_GROUP_BYTES = 8


def _gutter_char(value: int) -> str:
    return chr(value) if 32 <= value <= 126 else "."


def format_hex_dump(data: bytes, base_offset: int = 0) -> list[str]:
    """Format ``data`` as hex-dump rows addressed from ``base_offset``.

    Row layout: ``%08x``, two spaces, sixteen ``%02x`` cells each followed by
    a space (one extra space after the eighth), a space, then the ``|``-framed
    ASCII gutter. A short final row pads its hex cells with blanks but only
    prints gutter characters for bytes that exist. Empty input yields no rows.
    """
    lines: list[str] = []
    for row_start in range(0, len(data), HEX_ROW_BYTES):
        row = data[row_start : row_start + HEX_ROW_BYTES]
        parts = [f"{base_offset + row_start:08x}  "]
        for idx in range(HEX_ROW_BYTES):
            parts.append(f"{row[idx]:02x} " if idx < len(row) else "   ")
            if idx == HEX_GROUP_BYTES - 1:
                parts.append(" ")
        parts.append(" |")
        parts.append("".join(_gutter_char(value) for value in row))
        parts.append("|")
        lines.append("".join(parts))
    return lines
