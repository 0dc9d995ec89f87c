"""Public package surface for lazypeek.

Exports ``main`` for programmatic CLI invocation. Content readers live in
``lazypeek.content``; navigation state in ``lazypeek.viewport``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
