#!/usr/bin/env python3
"""
Tests for editor state sources.
"""

import unittest
from unittest.mock import MagicMock

import fakes  # noqa: F401

from quicklens.editor_state import BufferEditorState, DesktopEditorState, EditorState, token_at


class TestTokenAt(unittest.TestCase):

    def test_word(self):
        self.assertEqual(token_at("explain monads please", 10), "monads")

    def test_dotted_name(self):
        self.assertEqual(token_at("call os.path.join(x)", 8), "os.path.join")

    def test_point_at_word_end(self):
        self.assertEqual(token_at("hello world", 5), "hello")

    def test_trailing_punctuation_dropped(self):
        self.assertEqual(token_at("see example.com.", 8), "example.com")

    def test_url(self):
        text = "docs at https://example.com/a-b here"
        self.assertEqual(token_at(text, 12), "https://example.com/a-b")

    def test_whitespace_only(self):
        self.assertEqual(token_at("a   b", 2), "")

    def test_empty_and_out_of_range(self):
        self.assertEqual(token_at("", 3), "")
        self.assertEqual(token_at("word", 99), "word")


class TestBufferEditorState(unittest.TestCase):

    def test_selection_in_either_direction(self):
        self.assertEqual(BufferEditorState("alpha beta", point=5, mark=0).selection(), "alpha")
        self.assertEqual(BufferEditorState("alpha beta", point=0, mark=5).selection(), "alpha")

    def test_no_region(self):
        self.assertIsNone(BufferEditorState("alpha", point=2).selection())
        self.assertIsNone(BufferEditorState("alpha", point=2, mark=2).selection())

    def test_thing_at_point(self):
        self.assertEqual(BufferEditorState("alpha beta", point=7).thing_at_point(), "beta")
        self.assertIsNone(BufferEditorState("a   b", point=2).thing_at_point())

    def test_viewer_and_anchor(self):
        state = BufferEditorState("x", viewer_text="pdf text", coords=(1, 2))
        self.assertEqual(state.viewer_selection(), "pdf text")
        self.assertEqual(state.anchor(), (1, 2))


class TestDesktopEditorState(unittest.TestCase):

    def test_selection_captured_once(self):
        handler = MagicMock()
        handler.get_selected_text.return_value = "selected"

        state = DesktopEditorState(handler, pointer=(300, 400))
        state.selection()
        state.selection()

        self.assertEqual(state.selection(), "selected")
        handler.get_selected_text.assert_called_once()
        self.assertEqual(state.anchor(), (300, 400))

    def test_word_at_caret_when_nothing_selected(self):
        handler = MagicMock()
        handler.get_selected_text.return_value = ""
        handler.get_word_at_caret.return_value = "caret"

        state = DesktopEditorState(handler)
        self.assertIsNone(state.selection())
        self.assertEqual(state.thing_at_point(), "caret")
        self.assertIsNone(state.viewer_selection())

    def test_caret_word_read_at_construction_only(self):
        handler = MagicMock()
        handler.get_selected_text.return_value = ""
        handler.get_word_at_caret.return_value = "caret"

        state = DesktopEditorState(handler)
        handler.get_word_at_caret.assert_called_once()
        state.thing_at_point()
        state.thing_at_point()
        handler.get_word_at_caret.assert_called_once()

    def test_caret_word_not_read_with_selection(self):
        handler = MagicMock()
        handler.get_selected_text.return_value = "selected"

        DesktopEditorState(handler)
        handler.get_word_at_caret.assert_not_called()


class TestBaseEditorState(unittest.TestCase):

    def test_everything_is_empty(self):
        state = EditorState()
        self.assertIsNone(state.selection())
        self.assertIsNone(state.viewer_selection())
        self.assertIsNone(state.thing_at_point())
        self.assertIsNone(state.anchor())


if __name__ == '__main__':
    unittest.main()
