"""Background worker that runs one content fetch at a time for a file view."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue

from ..content.request import DEFAULT_TEXT_CHUNK_LINES, DEFAULT_WIDTH_HINT, request, request_table_rows
from ..content.text import MAX_LINE_CHARS
from ..content.types import KIND_DATABASE, ContentError, FileContent, TableRows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentFetchRequest:
    """One content fetch job.

    ``table`` switches the job to a row fetch, where ``position_hint`` is the
    row offset and ``size_hint`` the row limit.
    """

    request_id: int
    path: Path
    kind: str | None
    position_hint: int
    size_hint: int
    width_hint: int = DEFAULT_WIDTH_HINT
    max_line_chars: int = MAX_LINE_CHARS
    table: str | None = None


@dataclass(frozen=True)
class ContentFetchResult:
    """Completed fetch delivered back to the owning view."""

    request: ContentFetchRequest
    content: FileContent | TableRows


def load_content(job: ContentFetchRequest) -> FileContent | TableRows:
    """Run ``job`` synchronously through the content readers."""
    if job.table is not None:
        return request_table_rows(job.path, job.table, job.position_hint, job.size_hint)
    return request(
        job.path,
        job.position_hint,
        job.size_hint,
        job.width_hint,
        kind=job.kind,
        max_line_chars=job.max_line_chars,
    )


class ContentFetcher:
    """Runs at most one fetch at a time; results are drained by the caller.

    There is no cancellation and no queueing: ``schedule`` returns ``None``
    while a fetch is already running.
    """

    def __init__(self, load: Callable[[ContentFetchRequest], FileContent | TableRows] = load_content) -> None:
        self._load = load
        self._lock = threading.Lock()
        self._running = False
        self._next_request_id = 1
        self._results: Queue[ContentFetchResult] = Queue()

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._running

    def _worker(self, job: ContentFetchRequest) -> None:
        try:
            content = self._load(job)
        except Exception as exc:
            logger.exception("fetch %d for %s failed", job.request_id, job.path)
            content = ContentError(
                kind=KIND_DATABASE if job.table is not None else (job.kind or "unknown"),
                message=str(exc) or exc.__class__.__name__,
            )
        logger.debug("fetch %d complete: %s", job.request_id, type(content).__name__)
        with self._lock:
            self._running = False
        self._results.put(ContentFetchResult(request=job, content=content))

    def schedule(
        self,
        path: Path,
        *,
        kind: str | None = None,
        position_hint: int = 0,
        size_hint: int = DEFAULT_TEXT_CHUNK_LINES,
        width_hint: int = DEFAULT_WIDTH_HINT,
        max_line_chars: int = MAX_LINE_CHARS,
        table: str | None = None,
    ) -> int | None:
        """Start a fetch and return its id, or ``None`` when one is in flight."""
        with self._lock:
            if self._running:
                return None
            request_id = self._next_request_id
            self._next_request_id += 1
            self._running = True
        job = ContentFetchRequest(
            request_id=request_id,
            path=Path(path),
            kind=kind,
            position_hint=max(0, position_hint),
            size_hint=size_hint,
            width_hint=width_hint,
            max_line_chars=max_line_chars,
            table=table,
        )
        logger.debug("fetch %d issued: %s kind=%s position=%d table=%s", request_id, path, kind, job.position_hint, table)
        worker = threading.Thread(
            target=self._worker,
            args=(job,),
            name="lazypeek-content-fetch",
            daemon=True,
        )
        worker.start()
        return request_id

    def drain_results(self) -> list[ContentFetchResult]:
        """Drain all completed fetch results without blocking."""
        out: list[ContentFetchResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out

    def wait_result(self, timeout: float | None = None) -> ContentFetchResult | None:
        """Block until the next completion arrives, or ``timeout`` elapses."""
        try:
            return self._results.get(timeout=timeout)
        except Empty:
            return None


__all__ = [
    "ContentFetchRequest",
    "ContentFetchResult",
    "ContentFetcher",
    "load_content",
]
