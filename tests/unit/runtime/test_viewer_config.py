"""Tests for config persistence and viewer-settings sanitization.

Malformed config data must fall back to defaults instead of failing a view.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazypeek.runtime import config


class ViewerConfigTests(unittest.TestCase):
    def test_missing_config_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("lazypeek.runtime.config.CONFIG_PATH", Path(tmp) / "missing.json"):
                self.assertEqual(config.load_config(), {})
                self.assertEqual(config.load_viewer_settings(), config.DEFAULT_SETTINGS)

    def test_malformed_config_is_logged_and_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text("{not json", encoding="utf-8")
            with mock.patch("lazypeek.runtime.config.CONFIG_PATH", config_path):
                with self.assertLogs("lazypeek.runtime.config", level="WARNING"):
                    self.assertEqual(config.load_config(), {})

    def test_non_object_config_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text("[1, 2, 3]", encoding="utf-8")
            with mock.patch("lazypeek.runtime.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(), {})

    def test_viewer_section_is_sanitized_field_by_field(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text(
                json.dumps(
                    {
                        "viewer": {
                            "style": "  dracula ",
                            "page_size": 0,
                            "text_chunk_lines": 100,
                            "table_rows_chunk": True,
                            "max_line_chars": "wide",
                            "text_back_step_lines": 50,
                            "unknown_key": 3,
                        }
                    }
                ),
                encoding="utf-8",
            )
            with mock.patch("lazypeek.runtime.config.CONFIG_PATH", config_path):
                settings = config.load_viewer_settings()

        self.assertEqual(settings.style, "dracula")
        self.assertEqual(settings.page_size, 20)
        self.assertEqual(settings.text_chunk_lines, 100)
        self.assertEqual(settings.table_rows_chunk, 50)
        self.assertEqual(settings.max_line_chars, 2000)
        self.assertEqual(settings.text_back_step_lines, 50)
        self.assertEqual(settings.binary_back_step_bytes, 4096)

    def test_save_style_round_trips_and_keeps_other_keys(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "nested" / "config.json"
            with mock.patch("lazypeek.runtime.config.CONFIG_PATH", config_path):
                config.save_config({"other": 1, "viewer": {"page_size": 30}})
                config.save_style("solarized-dark")

                saved = config.load_config()
                settings = config.load_viewer_settings()

        self.assertEqual(saved["other"], 1)
        self.assertEqual(saved["viewer"], {"page_size": 30, "style": "solarized-dark"})
        self.assertEqual(settings.style, "solarized-dark")
        self.assertEqual(settings.page_size, 30)

    def test_save_failure_is_logged_not_raised(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "file"
            blocker.write_text("x", encoding="utf-8")
            with mock.patch("lazypeek.runtime.config.CONFIG_PATH", blocker / "config.json"):
                with self.assertLogs("lazypeek.runtime.config", level="WARNING"):
                    config.save_config({"a": 1})


if __name__ == "__main__":
    unittest.main()
