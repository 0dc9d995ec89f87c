"""Per-line syntax highlighting with a shared, thread-safe lexer cache.

Lexers are resolved once per file extension (or detected language) and kept
in a ``LexerCache`` that many views may populate concurrently. Lines are
sanitized of terminal control bytes before highlighting.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from pygments import highlight as pygments_highlight
from pygments.formatters import TerminalTrueColorFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

DEFAULT_STYLE = "monokai"

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

_EXTENSION_ALIASES = {
    ".h": ("c",),
    ".hpp": ("cpp",),
    ".hxx": ("cpp",),
    ".m": ("objective-c",),
    ".mm": ("objective-c++", "objective-c", "cpp"),
    ".yml": ("yaml",),
    ".tsx": ("tsx", "typescript"),
    ".jsx": ("jsx", "javascript"),
    ".plist": ("xml",),
    ".htm": ("html",),
    ".html": ("html",),
    ".podspec": ("ruby",),
}


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


class ReadPreferringLock:
    """Shared/exclusive lock where readers only wait for an active writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


def _lexer_by_names(names: tuple[str, ...]) -> Lexer | None:
    for name in names:
        try:
            return get_lexer_by_name(name)
        except ClassNotFound:
            continue
    return None


def resolve_lexer_for_extension(extension: str) -> Lexer | None:
    """Find a Pygments lexer for ``extension`` (``".py"``), trying aliases second."""
    if not extension:
        return None
    try:
        return get_lexer_for_filename("file" + extension)
    except ClassNotFound:
        pass
    return _lexer_by_names(_EXTENSION_ALIASES.get(extension.lower(), ()))


class LexerCache:
    """Extension-keyed lexer cache safe for concurrent population.

    Misses are cached too (as ``None``) so unknown extensions are only
    resolved once.
    """

    def __init__(self) -> None:
        self._lock = ReadPreferringLock()
        self._lexers: dict[str, Lexer | None] = {}

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._lexers)

    def _get_or_create(self, key: str, create) -> Lexer | None:
        with self._lock.read():
            if key in self._lexers:
                return self._lexers[key]
        with self._lock.write():
            # Another view may have filled it while we waited.
            if key in self._lexers:
                return self._lexers[key]
            lexer = create()
            self._lexers[key] = lexer
            return lexer

    def lexer_for_extension(self, extension: str) -> Lexer | None:
        extension = extension.lower()
        return self._get_or_create(extension, lambda: resolve_lexer_for_extension(extension))

    def lexer_for_language(self, language: str) -> Lexer | None:
        return self._get_or_create(f"lang:{language}", lambda: _lexer_by_names((language,)))


class SyntaxHighlighter:
    """Highlight single lines into 24-bit ANSI using a shared ``LexerCache``."""

    _valid_styles: set[str] = set()
    _invalid_styles: set[str] = set()

    def __init__(self, style: str = DEFAULT_STYLE, cache: LexerCache | None = None) -> None:
        self.cache = cache if cache is not None else LexerCache()
        self.style = self._normalize_style(style)
        self._formatter = TerminalTrueColorFormatter(style=self.style)

    @classmethod
    def _normalize_style(cls, style: str) -> str:
        """Validate/canonicalize requested style name with cache-backed checks."""
        if style in cls._valid_styles:
            return style
        if style in cls._invalid_styles:
            return DEFAULT_STYLE
        try:
            get_style_by_name(style)
        except ClassNotFound:
            cls._invalid_styles.add(style)
            return DEFAULT_STYLE
        cls._valid_styles.add(style)
        return style

    def _lexer(self, extension: str, detected_language: str | None) -> Lexer | None:
        if detected_language:
            lexer = self.cache.lexer_for_language(detected_language)
            if lexer is not None:
                return lexer
        return self.cache.lexer_for_extension(extension)

    def highlight_line(self, line: str, extension: str, detected_language: str | None = None) -> str:
        """Return ``line`` highlighted, or sanitized but uncolored when no lexer applies."""
        line = sanitize_terminal_text(line)
        if not line.strip():
            return line
        lexer = self._lexer(extension, detected_language)
        if lexer is None:
            return line
        try:
            rendered = pygments_highlight(line, lexer, self._formatter)
        except Exception:
            return line
        rendered = rendered.rstrip("\n")
        return rendered or line

    def highlight_lines(self, lines, extension: str, detected_language: str | None = None) -> list[str]:
        return [self.highlight_line(line, extension, detected_language) for line in lines]
