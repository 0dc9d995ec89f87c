"""Zip-family archive manifests and their rendered path trees.

Only entry metadata is read; member contents are never extracted. The tree is
rebuilt from slash-delimited entry names and rendered with box-drawing
connectors, children sorted alphabetically at every level.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .types import ArchiveContent, ArchiveEntry

logger = logging.getLogger(__name__)

ARCHIVE_FORMAT_ZIP = "ZIP"

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE_INDENT = "│   "
SPACE_INDENT = "    "


@dataclass
class ArchiveTreeNode:
    """Directory or file node rebuilt from flat entry names."""

    name: str
    is_dir: bool
    children: dict[str, ArchiveTreeNode] = field(default_factory=dict)

    def sorted_children(self) -> list[ArchiveTreeNode]:
        return [self.children[name] for name in sorted(self.children)]


def _entry_mod_time(info: zipfile.ZipInfo) -> datetime | None:
    try:
        return datetime(*info.date_time)
    except ValueError:
        return None


def read_manifest(path: Path) -> tuple[ArchiveContent | None, str | None, bool]:
    """Read every entry's metadata from a zip archive.

    Returns ``(content, error, is_decode_error)``. Failures never yield a
    partial listing: a container that cannot be parsed is a decode error, a
    file that cannot be opened is an I/O error.
    """
    entries: list[ArchiveEntry] = []
    file_count = 0
    folder_count = 0
    total_size = 0
    compressed_size = 0
    try:
        with zipfile.ZipFile(Path(path)) as archive:
            for info in archive.infolist():
                entry = ArchiveEntry(
                    name=info.filename,
                    size=info.file_size,
                    compressed_size=info.compress_size,
                    mod_time=_entry_mod_time(info),
                    is_dir=info.is_dir(),
                )
                entries.append(entry)
                if entry.is_dir:
                    folder_count += 1
                else:
                    file_count += 1
                    total_size += entry.size
                    compressed_size += entry.compressed_size
    except zipfile.BadZipFile as exc:
        logger.debug("archive %s is not a valid zip: %s", path, exc)
        return None, f"failed to open archive: {exc}", True
    except OSError as exc:
        return None, f"failed to open archive: {exc}", False

    root = build_tree(entries)
    content = ArchiveContent(
        format=ARCHIVE_FORMAT_ZIP,
        entries=tuple(entries),
        file_count=file_count,
        folder_count=folder_count,
        total_size=total_size,
        compressed_size=compressed_size,
        tree_lines=tuple(render_tree(root)),
    )
    return content, None, False


def build_tree(entries: list[ArchiveEntry] | tuple[ArchiveEntry, ...]) -> ArchiveTreeNode:
    """Rebuild the directory hierarchy below a synthetic empty-named root.

    Intermediate segments are always directories; a final segment is a
    directory when its own entry says so. Nodes are shared across entries.
    """
    root = ArchiveTreeNode(name="", is_dir=True)
    for entry in entries:
        parts = entry.name.split("/")
        current = root
        for idx, part in enumerate(parts):
            if not part:
                continue
            is_dir = idx < len(parts) - 1 or entry.is_dir
            child = current.children.get(part)
            if child is None:
                child = ArchiveTreeNode(name=part, is_dir=is_dir)
                current.children[part] = child
            elif is_dir:
                child.is_dir = True
            current = child
    return root


def _render_node(node: ArchiveTreeNode, prefix: str, is_last: bool, out: list[str]) -> None:
    label = node.name + ("/" if node.is_dir else "")
    out.append(prefix + (LAST_BRANCH if is_last else BRANCH) + label)
    child_prefix = prefix + (SPACE_INDENT if is_last else PIPE_INDENT)
    children = node.sorted_children()
    for idx, child in enumerate(children):
        _render_node(child, child_prefix, idx == len(children) - 1, out)


def render_tree(node: ArchiveTreeNode) -> list[str]:
    """Render ``node``'s descendants depth-first; ``node`` itself adds no line."""
    out: list[str] = []
    children = node.sorted_children()
    for idx, child in enumerate(children):
        _render_node(child, "", idx == len(children) - 1, out)
    return out
