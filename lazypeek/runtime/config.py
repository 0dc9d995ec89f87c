"""Persistent JSON config helpers.

Stores the highlight style and the chunk/page sizes used by file views.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "lazypeek"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH


@dataclass(frozen=True)
class ViewerSettings:
    """Tunables for file views.

    The back-step sizes decide where a chunk is re-based when scrolling up
    past the start of the loaded window.
    """

    style: str = "monokai"
    text_chunk_lines: int = 500
    page_size: int = 20
    text_back_step_lines: int = 200
    binary_back_step_bytes: int = 4_096
    table_rows_chunk: int = 50
    max_line_chars: int = 2_000
    image_min_rows: int = 20


DEFAULT_SETTINGS = ViewerSettings()


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        raw = CONFIG_PATH.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("cannot read config %s: %s", CONFIG_PATH, exc)
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.warning("ignoring malformed config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Any filesystem/serialization error is logged and ignored to keep runtime
    behavior non-fatal when config cannot be written.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("cannot write config %s: %s", CONFIG_PATH, exc)


def _coerce_positive_int(value: object, default: int) -> int:
    """Booleans, non-integers and values below 1 fall back to ``default``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value > 0 else default


def _coerce_style(value: object, default: str) -> str:
    if not isinstance(value, str):
        return default
    stripped = value.strip()
    return stripped if stripped else default


def load_viewer_settings() -> ViewerSettings:
    """Build ``ViewerSettings`` from the ``"viewer"`` config section."""
    section = load_config().get("viewer")
    if not isinstance(section, dict):
        return DEFAULT_SETTINGS

    overrides: dict[str, object] = {}
    for settings_field in fields(ViewerSettings):
        if settings_field.name not in section:
            continue
        default = getattr(DEFAULT_SETTINGS, settings_field.name)
        raw = section[settings_field.name]
        if settings_field.name == "style":
            overrides["style"] = _coerce_style(raw, default)
        else:
            overrides[settings_field.name] = _coerce_positive_int(raw, default)
    return replace(DEFAULT_SETTINGS, **overrides)


def save_style(style: str) -> None:
    """Persist the Pygments style name used for text views."""
    stripped = str(style).strip()
    if not stripped:
        return
    config = load_config()
    section = config.get("viewer")
    if not isinstance(section, dict):
        section = {}
    section["style"] = stripped
    config["viewer"] = section
    save_config(config)
