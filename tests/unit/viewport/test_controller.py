"""Tests for the cursor/viewport/chunk-base state machine.

Fetches are simulated synchronously: every ``FetchRequest`` is answered with
the window a reader would return for that position.
"""

from __future__ import annotations

import random
import unittest

from lazypeek.content.types import ArchiveContent, BinaryContent, TableRows, TextContent
from lazypeek.viewport.controller import (
    ANCHOR_END,
    KEY_DOWN,
    KEY_END,
    KEY_HOME,
    KEY_UP,
    MODE_BYTES,
    MODE_LINES,
    MODE_MANIFEST,
    MODE_ROWS,
    ChunkWindow,
    FetchRequest,
    ViewportController,
    chunk_window_for,
    view_mode_for,
)

KEYS = (KEY_UP, KEY_DOWN, KEY_HOME, KEY_END)


def _window(position: int, chunk: int, total: int) -> ChunkWindow:
    position = max(0, position)
    return ChunkWindow(base_item=position, loaded_items=max(0, min(chunk, total - position)), total_items=total, base_offset=position)


def _text_controller(total: int = 1000, page: int = 20) -> ViewportController:
    controller = ViewportController(MODE_LINES, page, back_step_items=200, end_chunk_items=500)
    controller.open(_window(0, 500, total))
    return controller


def _assert_invariant(test: unittest.TestCase, controller: ViewportController) -> None:
    state = controller.state
    test.assertLessEqual(state.viewport_offset, state.cursor)
    test.assertLess(state.cursor, state.viewport_offset + controller.page_size)


class ChunkedNavigationTests(unittest.TestCase):
    def test_scrolling_inside_loaded_chunk_never_fetches(self) -> None:
        controller = _text_controller()

        for _ in range(499):
            self.assertIsNone(controller.handle_key(KEY_DOWN))

        self.assertEqual(controller.state.cursor, 499)
        self.assertEqual(controller.state.viewport_offset, 480)
        self.assertFalse(controller.loading)

    def test_crossing_chunk_end_fetches_next_chunk_and_resets_viewport(self) -> None:
        controller = _text_controller()
        for _ in range(499):
            controller.handle_key(KEY_DOWN)

        fetch = controller.handle_key(KEY_DOWN)

        self.assertEqual(fetch, FetchRequest(position=500))
        self.assertTrue(controller.loading)
        controller.complete(_window(500, 500, 1000))
        self.assertFalse(controller.loading)
        self.assertEqual((controller.state.cursor, controller.state.viewport_offset), (0, 0))
        self.assertEqual(controller.state.chunk_base_offset, 500)
        self.assertEqual(controller.absolute_cursor, 500)

    def test_input_is_ignored_while_loading(self) -> None:
        controller = _text_controller()
        for _ in range(499):
            controller.handle_key(KEY_DOWN)
        controller.handle_key(KEY_DOWN)
        before = (controller.state.cursor, controller.state.viewport_offset)

        for key in KEYS:
            self.assertIsNone(controller.handle_key(key))

        self.assertEqual((controller.state.cursor, controller.state.viewport_offset), before)
        self.assertTrue(controller.loading)

    def test_crossing_chunk_start_steps_back(self) -> None:
        controller = _text_controller()
        controller.complete(_window(500, 500, 1000))

        fetch = controller.handle_key(KEY_UP)

        self.assertEqual(fetch, FetchRequest(position=300))
        controller.complete(_window(300, 500, 1000))
        self.assertEqual(controller.absolute_cursor, 300)
        self.assertEqual(controller.state.viewport_offset, 0)

    def test_step_back_is_clamped_at_zero(self) -> None:
        controller = _text_controller()
        controller.complete(_window(100, 500, 1000))

        self.assertEqual(controller.handle_key(KEY_UP), FetchRequest(position=0))

    def test_up_at_file_start_does_nothing(self) -> None:
        controller = _text_controller()

        self.assertIsNone(controller.handle_key(KEY_UP))
        self.assertFalse(controller.loading)

    def test_home_fetches_only_when_chunk_is_not_at_start(self) -> None:
        controller = _text_controller()
        for _ in range(30):
            controller.handle_key(KEY_DOWN)
        self.assertIsNone(controller.handle_key(KEY_HOME))
        self.assertEqual((controller.state.cursor, controller.state.viewport_offset), (0, 0))

        controller.complete(_window(500, 500, 1000))
        self.assertEqual(controller.handle_key(KEY_HOME), FetchRequest(position=0))

    def test_end_fetches_final_chunk_and_lands_on_last_item(self) -> None:
        controller = _text_controller()

        fetch = controller.handle_key(KEY_END)

        self.assertEqual(fetch, FetchRequest(position=500, anchor=ANCHOR_END))
        controller.complete(_window(500, 500, 1000))
        self.assertEqual(controller.state.cursor, 499)
        self.assertEqual(controller.state.viewport_offset, 480)
        self.assertEqual(controller.absolute_cursor, 999)

    def test_end_inside_fully_loaded_file_moves_without_fetch(self) -> None:
        controller = _text_controller(total=30)

        self.assertIsNone(controller.handle_key(KEY_END))
        self.assertEqual((controller.state.cursor, controller.state.viewport_offset), (29, 10))

    def test_down_at_end_of_file_does_nothing(self) -> None:
        controller = _text_controller(total=3)
        controller.handle_key(KEY_DOWN)
        controller.handle_key(KEY_DOWN)

        self.assertIsNone(controller.handle_key(KEY_DOWN))
        self.assertEqual(controller.state.cursor, 2)
        self.assertFalse(controller.loading)

    def test_failed_fetch_keeps_previous_window(self) -> None:
        controller = _text_controller()
        for _ in range(499):
            controller.handle_key(KEY_DOWN)
        controller.handle_key(KEY_DOWN)

        controller.fail()

        self.assertFalse(controller.loading)
        self.assertEqual(controller.state.cursor, 499)
        self.assertEqual(controller.state.chunk_base_offset, 0)

    def test_empty_file_has_nothing_to_scroll(self) -> None:
        controller = _text_controller(total=0)

        for key in KEYS:
            self.assertIsNone(controller.handle_key(key))
        self.assertEqual(controller.scroll_info(), (0, 0, 0))

    def test_resize_keeps_cursor_visible(self) -> None:
        controller = _text_controller()
        for _ in range(15):
            controller.handle_key(KEY_DOWN)

        controller.resize(5)

        _assert_invariant(self, controller)
        self.assertEqual(controller.state.cursor, 15)


class ScrollInfoTests(unittest.TestCase):
    def test_scroll_info_reports_absolute_one_based_range(self) -> None:
        controller = _text_controller()

        self.assertEqual(controller.scroll_info(), (1, 20, 1000))
        self.assertFalse(controller.can_scroll_up)
        self.assertTrue(controller.can_scroll_down)

        controller.complete(_window(500, 500, 1000))
        self.assertEqual(controller.scroll_info(), (501, 520, 1000))
        self.assertTrue(controller.can_scroll_up)

    def test_scroll_info_at_end(self) -> None:
        controller = _text_controller(total=30)
        controller.handle_key(KEY_END)

        self.assertEqual(controller.scroll_info(), (11, 30, 30))
        self.assertFalse(controller.can_scroll_down)


class ManifestNavigationTests(unittest.TestCase):
    def _controller(self, count: int = 30, page: int = 10) -> ViewportController:
        controller = ViewportController(MODE_MANIFEST, page)
        controller.open(ChunkWindow(base_item=0, loaded_items=count, total_items=count))
        return controller

    def test_down_moves_viewport_until_last_page(self) -> None:
        controller = self._controller()
        for _ in range(50):
            self.assertIsNone(controller.handle_key(KEY_DOWN))

        self.assertEqual(controller.state.viewport_offset, 20)
        self.assertEqual(controller.state.cursor, 20)

    def test_home_and_end(self) -> None:
        controller = self._controller()

        controller.handle_key(KEY_END)
        self.assertEqual(controller.state.viewport_offset, 20)
        controller.handle_key(KEY_HOME)
        self.assertEqual(controller.state.viewport_offset, 0)
        controller.handle_key(KEY_UP)
        self.assertEqual(controller.state.viewport_offset, 0)

    def test_short_manifest_does_not_scroll(self) -> None:
        controller = self._controller(count=4)

        controller.handle_key(KEY_DOWN)

        self.assertEqual(controller.state.viewport_offset, 0)
        self.assertEqual(controller.scroll_info(), (1, 4, 4))


class ChunkWindowTests(unittest.TestCase):
    def test_text_window(self) -> None:
        content = TextContent(lines=("a", "b"), total_lines=10, start_line=4)

        self.assertEqual(view_mode_for(content), MODE_LINES)
        self.assertEqual(chunk_window_for(content), ChunkWindow(4, 2, 10, 4))

    def test_binary_window_is_measured_in_rows(self) -> None:
        content = BinaryContent(chunk=b"\x00" * 8192, chunk_base_offset=4096, total_size=20_001)

        self.assertEqual(view_mode_for(content), MODE_BYTES)
        self.assertEqual(chunk_window_for(content), ChunkWindow(256, 512, 1251, 4096))

    def test_table_rows_window(self) -> None:
        content = TableRows(table="t", columns=("v",), rows=({"v": 1},), offset=50, total_rows=51)

        self.assertEqual(view_mode_for(content), MODE_ROWS)
        self.assertEqual(chunk_window_for(content), ChunkWindow(50, 1, 51, 50))

    def test_archive_window_counts_tree_lines(self) -> None:
        content = ArchiveContent(
            format="ZIP",
            entries=(),
            file_count=0,
            folder_count=0,
            total_size=0,
            compressed_size=0,
            tree_lines=("└── a",),
        )

        self.assertEqual(view_mode_for(content), MODE_MANIFEST)
        self.assertEqual(chunk_window_for(content), ChunkWindow(0, 1, 1))


class ViewportInvariantTests(unittest.TestCase):
    """Random key sequences interleaved with fetch completions."""

    def _run(self, mode: str, total: int, chunk: int, back_step: int, page: int, seed: int) -> None:
        rng = random.Random(seed)
        controller = ViewportController(mode, page, back_step_items=back_step, end_chunk_items=chunk)
        controller.open(_window(0, chunk, total))
        for _ in range(400):
            fetch = controller.handle_key(rng.choice(KEYS))
            if fetch is not None:
                self.assertTrue(controller.loading)
                if rng.random() < 0.1:
                    controller.fail()
                else:
                    controller.complete(_window(fetch.position, chunk, total))
            self.assertFalse(controller.loading)
            _assert_invariant(self, controller)
            self.assertLessEqual(controller.state.cursor, max(0, controller.state.loaded_item_count - 1))
            self.assertLess(controller.absolute_cursor, max(1, total))

    def test_invariant_holds_for_text_views(self) -> None:
        for seed in range(20):
            self._run(MODE_LINES, total=1234, chunk=500, back_step=200, page=20, seed=seed)

    def test_invariant_holds_for_hex_views(self) -> None:
        for seed in range(20):
            self._run(MODE_BYTES, total=2000, chunk=512, back_step=256, page=17, seed=seed)

    def test_invariant_holds_for_row_views(self) -> None:
        for seed in range(20):
            self._run(MODE_ROWS, total=173, chunk=50, back_step=50, page=7, seed=seed)

    def test_invariant_holds_for_manifest_views(self) -> None:
        for seed in range(20):
            self._run(MODE_MANIFEST, total=45, chunk=45, back_step=1, page=10, seed=seed)

    def test_invariant_holds_when_page_exceeds_chunk(self) -> None:
        for seed in range(10):
            self._run(MODE_LINES, total=90, chunk=30, back_step=10, page=50, seed=seed)


if __name__ == "__main__":
    unittest.main()
