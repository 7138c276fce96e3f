#!/usr/bin/env python3
"""
Editor state sources for the query builder

An EditorState answers four questions: what is selected, what is selected in
a document viewer, what token sits under the cursor, and where the cursor is
on the host surface. The builder only reads these.
"""

import logging
import re
from typing import Optional, Tuple

# Characters that make up a "thing" at point: words, dotted names, paths, URLs
THING_CHARS = re.compile(r"[\w.\-/:@#~]")


class EditorState:
    """Read-only view of the editor the lookup was triggered from."""

    def selection(self) -> Optional[str]:
        return None

    def viewer_selection(self) -> Optional[str]:
        return None

    def thing_at_point(self) -> Optional[str]:
        return None

    def anchor(self) -> Optional[Tuple[int, int]]:
        return None


def token_at(text: str, point: int) -> str:
    """Return the maximal run of token characters touching point."""
    if not text:
        return ""
    point = max(0, min(point, len(text)))

    start = point
    while start > 0 and THING_CHARS.match(text[start - 1]):
        start -= 1
    end = point
    while end < len(text) and THING_CHARS.match(text[end]):
        end += 1

    # Trailing punctuation is rarely part of the token
    return text[start:end].rstrip(".:-/")


class BufferEditorState(EditorState):
    """
    Editor state backed by an in-memory text buffer.

    Used by the HTTP endpoint, where an editor sends its buffer contents,
    point and mark, and by the CLI.
    """

    def __init__(
        self,
        text: str = "",
        point: int = 0,
        mark: Optional[int] = None,
        viewer_text: Optional[str] = None,
        coords: Optional[Tuple[int, int]] = None
    ):
        self.text = text
        self.point = point
        self.mark = mark
        self.viewer_text = viewer_text
        self.coords = coords

    def selection(self) -> Optional[str]:
        if self.mark is None or self.mark == self.point:
            return None
        start, end = sorted((self.mark, self.point))
        return self.text[start:end]

    def viewer_selection(self) -> Optional[str]:
        return self.viewer_text

    def thing_at_point(self) -> Optional[str]:
        return token_at(self.text, self.point) or None

    def anchor(self) -> Optional[Tuple[int, int]]:
        return self.coords


class DesktopEditorState(EditorState):
    """
    Editor state for whatever application has focus.

    Everything is captured once, at construction, on the thread that builds
    the state. Capturing simulates key presses in the focused window, so the
    word at the caret is only read when nothing is selected.
    """

    def __init__(self, text_handler, pointer: Optional[Tuple[int, int]] = None):
        self.text_handler = text_handler
        self.pointer = pointer
        self._selection = text_handler.get_selected_text()
        self._thing = None if self._selection else text_handler.get_word_at_caret()
        logging.debug(f'Desktop selection: "{self._selection[:50]}"' if self._selection
                      else 'No desktop selection')

    def selection(self) -> Optional[str]:
        return self._selection or None

    def thing_at_point(self) -> Optional[str]:
        return self._thing or None

    def anchor(self) -> Optional[Tuple[int, int]]:
        return self.pointer
