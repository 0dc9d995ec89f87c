"""Exception classes for callers that prefer raising over error payloads."""

from __future__ import annotations


class ContentReadError(OSError):
    """File missing, unreadable, or failing mid-read."""


class ContentDecodeError(ValueError):
    """Bytes are not a valid image or container for their claimed type."""
