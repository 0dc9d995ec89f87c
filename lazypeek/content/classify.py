"""Decide which reader handles a path.

Extension rules run first (image, archive, known binary), then a 512-byte
content probe decides between text and binary. Classification never fails:
anything uncertain is binary.
"""

from __future__ import annotations

import codecs
import logging
from pathlib import Path

from .database import is_database
from .types import KIND_ARCHIVE, KIND_BINARY, KIND_DATABASE, KIND_IMAGE, KIND_TEXT

logger = logging.getLogger(__name__)

CLASSIFY_PROBE_BYTES = 512
PRINTABLE_RATIO_MIN = 0.9

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".ico", ".svg"})
ARCHIVE_EXTENSIONS = frozenset({".zip", ".jar", ".war", ".ear", ".ipa", ".apk", ".aar"})
BINARY_EXTENSIONS = frozenset(
    {
        ".exe", ".dll", ".so", ".dylib", ".bin", ".dat", ".cache",
        ".o", ".a", ".lib", ".obj", ".class", ".dex",
        ".pyc", ".pyo", ".wasm",
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flac", ".ogg", ".m4a",
        ".ttf", ".otf", ".woff", ".woff2", ".eot", ".pfb", ".pfm",
    }
)
TEXT_EXTENSIONS = frozenset(
    {
        ".txt", ".md", ".log", ".json", ".xml", ".yaml", ".yml", ".toml",
        ".go", ".js", ".ts", ".py", ".java", ".c", ".cpp", ".h",
        ".swift", ".m", ".mm", ".rb", ".sh", ".bash", ".zsh", ".fish",
        ".css", ".html", ".htm", ".vue", ".jsx", ".tsx", ".rs", ".plist",
        ".gitignore", ".env", ".conf", ".ini", ".csv", ".strings",
        ".podspec", ".gemspec", ".rake", ".gemfile", ".podfile", ".brewfile", ".rakefile",
    }
)

BINARY_PLIST_MAGIC = b"bplist"
BINARY_SIGNATURES = (
    BINARY_PLIST_MAGIC,
    b"\x89PNG\r\n\x1a\n",
    b"\xff\xd8\xff",
    b"GIF87a",
    b"GIF89a",
    b"RIFF",
    b"\x00\x00\x01\x00",
    b"\x00\x00\x02\x00",
    b"MM\x00\x2a",
    b"II\x2a\x00",
    b"PK\x03\x04",
    b"PK\x05\x06",
    b"\xca\xfe\xba\xbe",
    b"\xce\xfa\xed\xfe",
    b"\xcf\xfa\xed\xfe",
    b"\xfe\xed\xfa\xce",
    b"\xfe\xed\xfa\xcf",
    b"SQLite format 3",
    b"\x1f\x8b",
    b"BZh",
    b"\xfd7zXZ\x00",
    b"Rar!",
    b"\x7fELF",
    b"%PDF-",
    b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1",
    b"OggS",
    b"8BPS",
    b"\x00\x00\x00\x0cjP  ",
    b"\x1a\x45\xdf\xa3",
    b"\x00\x00\x00\x14ftyp",
    b"ID3",
)
IMAGE_SIGNATURES = (b"\x89PNG\r\n\x1a\n", b"\xff\xd8\xff", b"GIF87a", b"GIF89a")
ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06")


def file_extension(path: Path) -> str:
    """Lower-cased extension, treating dotfiles like ``.gitignore`` as their own extension."""
    name = path.name
    dot = name.rfind(".")
    if dot < 0:
        return ""
    return name[dot:].lower()


def _read_probe(path: Path) -> bytes | None:
    try:
        with path.open("rb") as handle:
            return handle.read(CLASSIFY_PROBE_BYTES)
    except OSError as exc:
        logger.debug("classify probe failed for %s: %s", path, exc)
        return None


def _is_valid_utf8(sample: bytes) -> bool:
    # A multi-byte sequence cut off at the end of a full probe counts as valid.
    # Only a short read is decoded as final.
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(sample, final=len(sample) < CLASSIFY_PROBE_BYTES)
    except UnicodeDecodeError:
        return False
    return True


def printable_ratio(sample: bytes) -> float:
    """Share of printable ASCII plus ``\\n``/``\\t``/``\\r``; 1.0 for no bytes."""
    if not sample:
        return 1.0
    printable = sum(1 for value in sample if 32 <= value <= 126 or value in (9, 10, 13))
    return printable / len(sample)


def looks_like_text(sample: bytes) -> bool:
    """Return whether probe bytes look like text.

    Known binary signatures (binary plists first among them) and NUL bytes
    reject outright; otherwise the sample must be valid UTF-8 and more than
    90% printable.
    """
    if not sample:
        return True
    if any(sample.startswith(signature) for signature in BINARY_SIGNATURES):
        return False
    if b"\x00" in sample:
        return False
    if not _is_valid_utf8(sample):
        return False
    return printable_ratio(sample) > PRINTABLE_RATIO_MIN


def _sniff_signature_kind(sample: bytes) -> str | None:
    if any(sample.startswith(signature) for signature in IMAGE_SIGNATURES):
        return KIND_IMAGE
    if sample.startswith(b"RIFF") and sample[8:12] == b"WEBP":
        return KIND_IMAGE
    if any(sample.startswith(signature) for signature in ZIP_SIGNATURES):
        return KIND_ARCHIVE
    return None


def classify(path: Path) -> str:
    """Classify ``path`` as text, image, binary, or archive.

    Resolution order (first match wins):
    1. image extension
    2. archive extension
    3. known binary extension
    4. extensionless image/zip signature
    5. probe of the first 512 bytes: text only when the probe looks like text
       and the extension is empty or on the text allowlist
    """
    path = Path(path)
    ext = file_extension(path)
    if ext in IMAGE_EXTENSIONS:
        return KIND_IMAGE
    if ext in ARCHIVE_EXTENSIONS:
        return KIND_ARCHIVE
    if ext in BINARY_EXTENSIONS:
        return KIND_BINARY

    sample = _read_probe(path)
    if sample is None:
        return KIND_BINARY

    if not ext:
        sniffed = _sniff_signature_kind(sample)
        if sniffed is not None:
            return sniffed

    if looks_like_text(sample) and (not ext or ext in TEXT_EXTENSIONS):
        return KIND_TEXT
    return KIND_BINARY


def detect_file_kind(path: Path) -> str:
    """Classify including the database case, which is checked before ``classify``."""
    path = Path(path)
    kind = KIND_DATABASE if is_database(path) else classify(path)
    logger.debug("classified %s as %s", path, kind)
    return kind
