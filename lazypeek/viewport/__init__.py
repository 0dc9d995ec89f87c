"""Cursor, viewport and chunk-base navigation for file views."""

from __future__ import annotations

from .controller import (
    KEY_DOWN,
    KEY_END,
    KEY_HOME,
    KEY_UP,
    ChunkWindow,
    FetchRequest,
    ViewportController,
    ViewportState,
    chunk_window_for,
    view_mode_for,
)

__all__ = [
    "KEY_DOWN",
    "KEY_END",
    "KEY_HOME",
    "KEY_UP",
    "ChunkWindow",
    "FetchRequest",
    "ViewportController",
    "ViewportState",
    "chunk_window_for",
    "view_mode_for",
]
