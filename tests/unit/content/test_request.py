"""Tests for request dispatch into the content readers."""

from __future__ import annotations

import sqlite3
import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest import mock

from PIL import Image

from lazypeek.content import request, request_table_rows
from lazypeek.content.errors import ContentDecodeError, ContentReadError
from lazypeek.content.types import (
    ERROR_DECODE,
    ERROR_IO,
    KIND_ARCHIVE,
    KIND_DATABASE,
    KIND_IMAGE,
    KIND_TEXT,
    ArchiveContent,
    BinaryContent,
    ContentError,
    DatabaseContent,
    ImageContent,
    TableRows,
    TextContent,
    is_error,
)


class RequestDispatchTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_text_request_uses_position_and_size_hints(self) -> None:
        path = self.root / "app.py"
        path.write_text("".join(f"x = {idx}\n" for idx in range(20)), encoding="utf-8")

        content = request(path, 5, 3)

        self.assertIsInstance(content, TextContent)
        self.assertEqual(content.lines, ("x = 5", "x = 6", "x = 7"))
        self.assertEqual(content.total_lines, 20)
        self.assertEqual(content.start_line, 5)
        self.assertIsNone(content.detected_language)
        self.assertFalse(is_error(content))

    def test_extensionless_json_gets_detected_language(self) -> None:
        path = self.root / "manifest"
        path.write_text('{\n  "name": "demo"\n}\n', encoding="utf-8")

        content = request(path)

        self.assertIsInstance(content, TextContent)
        self.assertEqual(content.detected_language, "json")

    def test_extensionless_svg_is_reported_as_image(self) -> None:
        path = self.root / "logo"
        path.write_text(
            '<?xml version="1.0"?>\n<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 32 16"></svg>\n',
            encoding="utf-8",
        )

        content = request(path)

        self.assertIsInstance(content, ImageContent)
        self.assertEqual((content.format, content.width, content.height), ("svg", 32, 16))

    def test_binary_request_uses_row_position(self) -> None:
        path = self.root / "blob.bin"
        path.write_bytes(bytes(range(256)) * 4)

        content = request(path, 10)

        self.assertIsInstance(content, BinaryContent)
        self.assertEqual(content.chunk_base_offset, 160)
        self.assertEqual(content.end_offset, 1024)
        self.assertEqual(content.total_size, 1024)
        self.assertTrue(content.hex_lines()[0].startswith("000000a0  a0 a1"))

    def test_image_request_uses_size_and_width_hints(self) -> None:
        path = self.root / "pic.png"
        Image.new("RGB", (64, 32), (0, 128, 255)).save(path)

        content = request(path, 0, 24, 80)

        self.assertIsInstance(content, ImageContent)
        self.assertEqual(content.preview.char_width, 76)

    def test_archive_request(self) -> None:
        path = self.root / "lib.jar"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("META-INF/MANIFEST.MF", "Manifest-Version: 1.0\n")

        content = request(path)

        self.assertIsInstance(content, ArchiveContent)
        self.assertEqual(content.tree_lines, ("└── META-INF/", "    └── MANIFEST.MF"))

    def test_database_request_and_table_rows(self) -> None:
        path = self.root / "data.db"
        conn = sqlite3.connect(path)
        conn.execute("CREATE TABLE items (v INTEGER)")
        conn.executemany("INSERT INTO items VALUES (?)", [(idx,) for idx in range(3)])
        conn.commit()
        conn.close()

        content = request(path)
        rows = request_table_rows(path, "items", 1, 50)

        self.assertIsInstance(content, DatabaseContent)
        self.assertEqual(content.tables[0].row_count, 3)
        self.assertIsInstance(rows, TableRows)
        self.assertEqual([row["v"] for row in rows.rows], [1, 2])

    def test_unknown_table_rows_is_content_error(self) -> None:
        path = self.root / "data.db"
        sqlite3.connect(path).close()

        rows = request_table_rows(path, "missing", 0, 50)

        self.assertIsInstance(rows, ContentError)
        self.assertEqual(rows.kind, KIND_DATABASE)


class RequestErrorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_text_file_is_io_error(self) -> None:
        content = request(self.root / "gone.txt", kind=KIND_TEXT)

        self.assertIsInstance(content, ContentError)
        self.assertEqual((content.kind, content.error_type), (KIND_TEXT, ERROR_IO))
        with self.assertRaises(ContentReadError):
            content.raise_for_error()

    def test_invalid_image_is_decode_error(self) -> None:
        path = self.root / "broken.jpg"
        path.write_bytes(b"nope")

        content = request(path)

        self.assertIsInstance(content, ContentError)
        self.assertEqual((content.kind, content.error_type), (KIND_IMAGE, ERROR_DECODE))
        with self.assertRaises(ContentDecodeError):
            content.raise_for_error()

    def test_unopenable_image_path_is_io_error(self) -> None:
        path = self.root / "folder.png"
        path.mkdir()

        content = request(path)

        self.assertIsInstance(content, ContentError)
        self.assertEqual((content.kind, content.error_type), (KIND_IMAGE, ERROR_IO))
        with self.assertRaises(ContentReadError):
            content.raise_for_error()

    def test_invalid_archive_is_decode_error(self) -> None:
        path = self.root / "broken.zip"
        path.write_bytes(b"nope")

        content = request(path)

        self.assertEqual((content.kind, content.error_type), (KIND_ARCHIVE, ERROR_DECODE))

    def test_text_read_failure_carries_partial_lines(self) -> None:
        path = self.root / "flaky.txt"
        path.write_text("a\nb\n", encoding="utf-8")

        with mock.patch("lazypeek.content.request.read_window", return_value=(["a"], 1, "I/O error")):
            content = request(path, kind=KIND_TEXT)

        self.assertIsInstance(content, ContentError)
        self.assertEqual(content.message, "I/O error")
        self.assertEqual(content.partial.lines, ("a",))
        self.assertEqual(content.partial.total_lines, 1)


if __name__ == "__main__":
    unittest.main()
