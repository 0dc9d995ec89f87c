"""File-view runtime: background fetching, the per-view session, and config.

``FileView`` is imported lazily so that ``lazypeek.runtime.config`` stays
cheap to import on its own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .session import FileView


def __getattr__(name: str):
    if name == "FileView":
        from .session import FileView

        return FileView
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["FileView"]
