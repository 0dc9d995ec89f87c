"""One open file view: fetch lifecycle, viewport state and visible lines.

``FileView`` owns a ``ContentFetcher`` and a ``ViewportController``. Opening
a path starts the first fetch in the background; ``poll`` applies finished
fetches; ``key`` feeds navigation into the controller and issues any fetch it
asks for. The view never has more than one fetch outstanding.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..content.binary import BINARY_CHUNK_BYTES
from ..content.classify import detect_file_kind, file_extension
from ..content.hexdump import HEX_ROW_BYTES
from ..content.types import (
    KIND_IMAGE,
    ContentError,
    FileContent,
    TableRows,
    TextContent,
)
from ..render import header_lines, item_lines
from ..syntax import SyntaxHighlighter, sanitize_terminal_text
from ..viewport.controller import (
    MODE_BYTES,
    MODE_LINES,
    MODE_ROWS,
    FetchRequest,
    ViewportController,
    chunk_window_for,
    view_mode_for,
)
from .config import DEFAULT_SETTINGS, ViewerSettings
from .fetcher import ContentFetcher, ContentFetchRequest, ContentFetchResult, load_content

logger = logging.getLogger(__name__)

IMAGE_CHROME_ROWS = 8


class FileView:
    """Stateful viewer for a single path (or one table of a database).

    ``page_size`` counts body rows only; header lines are extra.
    """

    def __init__(
        self,
        settings: ViewerSettings = DEFAULT_SETTINGS,
        *,
        page_size: int | None = None,
        width: int = 80,
        height: int = 24,
        highlighter: SyntaxHighlighter | None = None,
        fetcher_factory=ContentFetcher,
        color: bool = True,
    ) -> None:
        self.settings = settings
        self.page_size = max(1, page_size if page_size is not None else settings.page_size)
        self.width = max(1, width)
        self.height = max(1, height)
        self.color = color
        self.highlighter = highlighter
        if self.highlighter is None and color:
            self.highlighter = SyntaxHighlighter(style=settings.style)
        self._fetcher_factory = fetcher_factory
        self.fetcher: ContentFetcher | None = None
        self.path: Path | None = None
        self.table: str | None = None
        self.content: FileContent | TableRows | None = None
        self.error: ContentError | None = None
        self.controller: ViewportController | None = None
        self._pending_id: int | None = None

    @property
    def loading(self) -> bool:
        return self._pending_id is not None

    def image_size_hint(self) -> int:
        return max(self.settings.image_min_rows, self.height - IMAGE_CHROME_ROWS)

    def _size_hint_for(self, kind: str) -> int:
        if kind == KIND_IMAGE:
            return self.image_size_hint()
        return self.settings.text_chunk_lines

    def _load(self, job: ContentFetchRequest) -> FileContent | TableRows:
        if job.table is None and job.kind is None:
            kind = detect_file_kind(job.path)
            job = ContentFetchRequest(
                request_id=job.request_id,
                path=job.path,
                kind=kind,
                position_hint=job.position_hint,
                size_hint=self._size_hint_for(kind),
                width_hint=job.width_hint,
                max_line_chars=job.max_line_chars,
            )
        return load_content(job)

    def open(self, path: Path, *, position: int = 0, table: str | None = None) -> int | None:
        """Start viewing ``path`` (or ``table`` in it) from item ``position``.

        Each open gets a fresh fetcher, so results from a previous path can
        never land in this view.
        """
        self.path = Path(path)
        self.table = table
        self.content = None
        self.error = None
        self.controller = None
        self.fetcher = self._fetcher_factory(load=self._load)
        size_hint = self.settings.table_rows_chunk if table is not None else self.settings.text_chunk_lines
        self._pending_id = self.fetcher.schedule(
            self.path,
            position_hint=position,
            size_hint=size_hint,
            width_hint=self.width,
            max_line_chars=self.settings.max_line_chars,
            table=table,
        )
        return self._pending_id

    def _controller_for(self, content: FileContent | TableRows) -> ViewportController:
        mode = view_mode_for(content)
        if mode == MODE_LINES:
            back_step, end_chunk = self.settings.text_back_step_lines, self.settings.text_chunk_lines
        elif mode == MODE_BYTES:
            back_step = self.settings.binary_back_step_bytes // HEX_ROW_BYTES
            end_chunk = BINARY_CHUNK_BYTES // HEX_ROW_BYTES
        elif mode == MODE_ROWS:
            back_step = end_chunk = self.settings.table_rows_chunk
        else:
            back_step = end_chunk = 1
        return ViewportController(mode, self.page_size, back_step_items=back_step, end_chunk_items=end_chunk)

    def _apply(self, result: ContentFetchResult) -> None:
        content = result.content
        self._pending_id = None
        if isinstance(content, ContentError):
            logger.debug("fetch %d for %s failed: %s", result.request.request_id, self.path, content.message)
            self.error = content
            if self.controller is not None:
                self.controller.fail()
                return
            if content.partial is not None:
                self.content = content.partial
                self.controller = self._controller_for(content.partial)
                self.controller.open(chunk_window_for(content.partial))
            else:
                self.content = content
            return

        self.error = None
        self.content = content
        if self.controller is None:
            self.controller = self._controller_for(content)
            self.controller.open(chunk_window_for(content))
        else:
            self.controller.complete(chunk_window_for(content))

    def poll(self) -> bool:
        """Apply finished fetches; returns whether the view changed."""
        if self.fetcher is None:
            return False
        changed = False
        for result in self.fetcher.drain_results():
            if result.request.request_id != self._pending_id:
                continue
            self._apply(result)
            changed = True
        return changed

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the outstanding fetch completes, then apply it."""
        if self.fetcher is None:
            return False
        while self._pending_id is not None:
            result = self.fetcher.wait_result(timeout)
            if result is None:
                return False
            if result.request.request_id == self._pending_id:
                self._apply(result)
                return True
        return False

    def _issue(self, fetch: FetchRequest) -> None:
        if self.fetcher is None or self.path is None or self.controller is None:
            return
        rows_view = self.controller.mode == MODE_ROWS
        size_hint = self.settings.table_rows_chunk if rows_view else self.settings.text_chunk_lines
        request_id = self.fetcher.schedule(
            self.path,
            kind=None if rows_view else self.content.kind,
            position_hint=fetch.position,
            size_hint=size_hint,
            width_hint=self.width,
            max_line_chars=self.settings.max_line_chars,
            table=self.table if rows_view else None,
        )
        if request_id is None:
            # The controller gates input while loading, so the fetcher is idle here.
            self.controller.fail()
            return
        self._pending_id = request_id

    def key(self, key: str) -> bool:
        """Feed one navigation key; returns whether a fetch was issued."""
        if self.controller is None or self.loading:
            return False
        fetch = self.controller.handle_key(key)
        if fetch is None:
            return False
        self._issue(fetch)
        return self.loading

    def resize(self, page_size: int, width: int | None = None) -> None:
        self.page_size = max(1, page_size)
        if width is not None:
            self.width = max(1, width)
        if self.controller is not None:
            self.controller.resize(self.page_size)

    def header_lines(self) -> list[str]:
        lines = header_lines(self.content) if self.content is not None else ["Loading..."]
        if self.error is not None and self.error is not self.content:
            lines = lines + header_lines(self.error)
        return lines

    def visible_lines(self) -> list[str]:
        """Body lines currently inside the viewport, highlighted for text."""
        if self.controller is None or self.content is None:
            return []
        start, end = self.controller.visible_range()
        content = self.content
        if isinstance(content, TextContent):
            lines = content.lines[start:end]
            if self.highlighter is None:
                return [sanitize_terminal_text(line) for line in lines]
            extension = file_extension(self.path) if self.path is not None else ""
            return self.highlighter.highlight_lines(lines, extension, content.detected_language)
        return item_lines(content, start, end)

    def status_line(self) -> str:
        if self.controller is None:
            return ""
        first, last, total = self.controller.scroll_info()
        arrows = ("↑" if self.controller.can_scroll_up else " ") + ("↓" if self.controller.can_scroll_down else " ")
        suffix = " loading" if self.loading else ""
        return f"{arrows} {first}-{last} of {total}{suffix}"


__all__ = ["FileView", "IMAGE_CHROME_ROWS"]
