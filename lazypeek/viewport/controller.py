"""Cursor/viewport state machine for one open file view.

Chunked views (text lines, hex rows, table rows) hold a window of a larger
item sequence. Moving the cursor inside the window never fetches; stepping
past either edge returns a ``FetchRequest`` and marks the view as loading
until ``complete`` or ``fail`` is called. Manifest views (archive tree,
database tables, image preview rows) are fully loaded and only scroll.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..content.hexdump import HEX_ROW_BYTES
from ..content.types import (
    ArchiveContent,
    BinaryContent,
    DatabaseContent,
    FileContent,
    ImageContent,
    TableRows,
    TextContent,
)

KEY_UP = "up"
KEY_DOWN = "down"
KEY_HOME = "home"
KEY_END = "end"
NAVIGATION_KEYS = frozenset({KEY_UP, KEY_DOWN, KEY_HOME, KEY_END})

MODE_LINES = "lines"
MODE_BYTES = "bytes"
MODE_ROWS = "rows"
MODE_MANIFEST = "manifest"
CHUNKED_MODES = frozenset({MODE_LINES, MODE_BYTES, MODE_ROWS})

ANCHOR_START = "start"
ANCHOR_END = "end"


@dataclass
class ViewportState:
    """Cursor and viewport are chunk-local item indices.

    ``chunk_base_offset`` is in the view's native unit: line index for text,
    byte offset for binary, row offset for table rows, 0 for manifests.
    """

    cursor: int = 0
    viewport_offset: int = 0
    chunk_base_offset: int = 0
    loaded_item_count: int = 0


@dataclass(frozen=True)
class ChunkWindow:
    """Loaded window measured in items (lines, hex rows, table rows, tree lines)."""

    base_item: int
    loaded_items: int
    total_items: int
    base_offset: int = 0


@dataclass(frozen=True)
class FetchRequest:
    """Reader position to load next; ``position`` is in items (hex rows for binary)."""

    position: int
    anchor: str = ANCHOR_START


def _ceil_rows(size: int) -> int:
    return (size + HEX_ROW_BYTES - 1) // HEX_ROW_BYTES


def view_mode_for(content: FileContent | TableRows) -> str:
    if isinstance(content, TextContent):
        return MODE_LINES
    if isinstance(content, BinaryContent):
        return MODE_BYTES
    if isinstance(content, TableRows):
        return MODE_ROWS
    return MODE_MANIFEST


def chunk_window_for(content: FileContent | TableRows) -> ChunkWindow:
    """Measure a loaded payload as a window of items."""
    if isinstance(content, TextContent):
        return ChunkWindow(
            base_item=content.start_line,
            loaded_items=len(content.lines),
            total_items=content.total_lines,
            base_offset=content.start_line,
        )
    if isinstance(content, BinaryContent):
        return ChunkWindow(
            base_item=content.chunk_base_offset // HEX_ROW_BYTES,
            loaded_items=_ceil_rows(len(content.chunk)),
            total_items=_ceil_rows(content.total_size),
            base_offset=content.chunk_base_offset,
        )
    if isinstance(content, TableRows):
        return ChunkWindow(
            base_item=content.offset,
            loaded_items=len(content.rows),
            total_items=content.total_rows,
            base_offset=content.offset,
        )
    if isinstance(content, ArchiveContent):
        count = len(content.tree_lines)
    elif isinstance(content, DatabaseContent):
        count = len(content.tables)
    elif isinstance(content, ImageContent):
        count = content.preview.char_height if content.preview is not None else 0
    else:
        count = 0
    return ChunkWindow(base_item=0, loaded_items=count, total_items=count)


class ViewportController:
    """Per-view navigation state; re-created whenever a new path opens.

    ``back_step_items`` is how far a chunk is re-based when scrolling up past
    its start; ``end_chunk_items`` is the window size requested for ``end``.
    """

    def __init__(
        self,
        mode: str,
        page_size: int,
        *,
        back_step_items: int = 1,
        end_chunk_items: int = 1,
    ) -> None:
        self.mode = mode
        self.page_size = max(1, page_size)
        self.back_step_items = max(1, back_step_items)
        self.end_chunk_items = max(1, end_chunk_items)
        self.state = ViewportState()
        self.loading = False
        self.pending: FetchRequest | None = None
        self._base_item = 0
        self._total_items = 0

    @property
    def is_chunked(self) -> bool:
        return self.mode in CHUNKED_MODES

    @property
    def total_items(self) -> int:
        return self._total_items

    @property
    def absolute_cursor(self) -> int:
        """Cursor as an item index into the whole sequence."""
        return self._base_item + self.state.cursor

    def _max_manifest_offset(self) -> int:
        return max(0, self.state.loaded_item_count - self.page_size)

    def _apply_window(self, window: ChunkWindow) -> None:
        self._base_item = window.base_item
        self._total_items = window.total_items
        self.state.chunk_base_offset = window.base_offset
        self.state.loaded_item_count = window.loaded_items

    def _place_cursor(self, anchor: str) -> None:
        loaded = self.state.loaded_item_count
        if not self.is_chunked:
            offset = self._max_manifest_offset() if anchor == ANCHOR_END else 0
            self.state.viewport_offset = offset
            self.state.cursor = offset
            return
        if anchor == ANCHOR_END:
            self.state.cursor = max(0, loaded - 1)
            self.state.viewport_offset = max(0, loaded - self.page_size)
        else:
            self.state.cursor = 0
            self.state.viewport_offset = 0

    def open(self, window: ChunkWindow) -> None:
        """Install the first loaded window of a newly opened file."""
        self.state = ViewportState()
        self.loading = False
        self.pending = None
        self._apply_window(window)
        self._place_cursor(ANCHOR_START)

    def complete(self, window: ChunkWindow) -> None:
        """Apply a finished fetch; the cursor lands per the pending anchor."""
        anchor = self.pending.anchor if self.pending is not None else ANCHOR_START
        self.loading = False
        self.pending = None
        self._apply_window(window)
        self._place_cursor(anchor)

    def fail(self) -> None:
        """Drop the in-flight fetch and keep the previous window."""
        self.loading = False
        self.pending = None

    def resize(self, page_size: int) -> None:
        self.page_size = max(1, page_size)
        if not self.is_chunked:
            offset = min(self.state.viewport_offset, self._max_manifest_offset())
            self.state.viewport_offset = offset
            self.state.cursor = offset
            return
        if self.state.cursor >= self.state.viewport_offset + self.page_size:
            self.state.viewport_offset = self.state.cursor - self.page_size + 1

    def _request(self, position: int, anchor: str = ANCHOR_START) -> FetchRequest:
        request = FetchRequest(position=max(0, position), anchor=anchor)
        self.pending = request
        self.loading = True
        return request

    def handle_key(self, key: str) -> FetchRequest | None:
        """Apply one navigation input; returns a fetch to issue, if any.

        Input is ignored while a fetch is outstanding.
        """
        if self.loading or key not in NAVIGATION_KEYS:
            return None
        if not self.is_chunked:
            self._scroll_manifest(key)
            return None
        if key == KEY_DOWN:
            return self._move_down()
        if key == KEY_UP:
            return self._move_up()
        if key == KEY_HOME:
            return self._move_home()
        return self._move_end()

    def _scroll_manifest(self, key: str) -> None:
        offset = self.state.viewport_offset
        if key == KEY_DOWN:
            offset += 1
        elif key == KEY_UP:
            offset -= 1
        elif key == KEY_HOME:
            offset = 0
        else:
            offset = self._max_manifest_offset()
        offset = max(0, min(offset, self._max_manifest_offset()))
        self.state.viewport_offset = offset
        self.state.cursor = offset

    def _move_down(self) -> FetchRequest | None:
        state = self.state
        if state.cursor + 1 < state.loaded_item_count:
            state.cursor += 1
            if state.cursor >= state.viewport_offset + self.page_size:
                state.viewport_offset = state.cursor - self.page_size + 1
            return None
        next_item = self._base_item + state.loaded_item_count
        if state.loaded_item_count > 0 and next_item < self._total_items:
            return self._request(next_item)
        return None

    def _move_up(self) -> FetchRequest | None:
        state = self.state
        if state.cursor > 0:
            state.cursor -= 1
            if state.cursor < state.viewport_offset:
                state.viewport_offset = state.cursor
            return None
        if self._base_item > 0:
            return self._request(self._base_item - self.back_step_items)
        return None

    def _move_home(self) -> FetchRequest | None:
        if self._base_item > 0:
            return self._request(0)
        self.state.cursor = 0
        self.state.viewport_offset = 0
        return None

    def _move_end(self) -> FetchRequest | None:
        if self._base_item + self.state.loaded_item_count < self._total_items:
            return self._request(self._total_items - self.end_chunk_items, ANCHOR_END)
        self._place_cursor(ANCHOR_END)
        return None

    def visible_range(self) -> tuple[int, int]:
        """Chunk-local ``[start, end)`` of items on screen."""
        start = self.state.viewport_offset
        return start, min(self.state.loaded_item_count, start + self.page_size)

    def scroll_info(self) -> tuple[int, int, int]:
        """1-based ``(first, last, total)`` visible item numbers for a status line."""
        start, end = self.visible_range()
        total = self._total_items if self.is_chunked else self.state.loaded_item_count
        if end <= start or total <= 0:
            return 0, 0, max(0, total)
        return self._base_item + start + 1, self._base_item + end, total

    @property
    def can_scroll_up(self) -> bool:
        return self.state.viewport_offset > 0 or self._base_item > 0

    @property
    def can_scroll_down(self) -> bool:
        _first, last, total = self.scroll_info()
        return last < total
