#!/usr/bin/env python3
"""
Text selection and clipboard handler
"""

import logging
import time

import pyperclip
from pynput import keyboard as pykeyboard


class TextHandler:
    """
    Handles text selection capture and clipboard operations.
    """

    def __init__(self):
        self.keyboard = pykeyboard.Controller()
        logging.debug('TextHandler initialized')

    def _tap_with(self, modifiers, key):
        """Press key while holding the given modifiers."""
        for modifier in modifiers:
            self.keyboard.press(modifier)
        try:
            self.keyboard.press(key)
            self.keyboard.release(key)
        finally:
            for modifier in reversed(modifiers):
                self.keyboard.release(modifier)

    def get_selected_text(self, sleep_duration: float = 0.01, max_wait: float = 0.4) -> str:
        """
        Get the currently selected text from any application using polling.

        The clipboard is cleared before the simulated Ctrl+C so that a selection
        identical to the previous clipboard content is still detected. The
        original clipboard content is restored afterwards.

        Args:
            sleep_duration: Short delay before Ctrl+C for stability
            max_wait: Maximum time to wait for clipboard content

        Returns:
            The selected text, or empty string if none
        """
        try:
            clipboard_backup = pyperclip.paste()
        except pyperclip.PyperclipException:
            clipboard_backup = ""

        self.clear_clipboard()
        time.sleep(sleep_duration)

        try:
            self._tap_with([pykeyboard.Key.ctrl], 'c')
        except Exception as e:
            logging.error(f'Failed to simulate Ctrl+C: {e}')
            self.copy_to_clipboard(clipboard_backup)
            return ""

        start_time = time.time()
        selected_text = ""
        while (time.time() - start_time) < max_wait:
            try:
                selected_text = pyperclip.paste()
            except pyperclip.PyperclipException:
                selected_text = ""
            if selected_text:
                break
            time.sleep(0.01)

        self.copy_to_clipboard(clipboard_backup)
        return selected_text

    def get_word_at_caret(self) -> str:
        """
        Select the word under the text caret and capture it.

        Uses Ctrl+Left / Ctrl+Shift+Right, which most text widgets map to
        word movement.
        """
        try:
            self._tap_with([pykeyboard.Key.ctrl], pykeyboard.Key.right)
            self._tap_with([pykeyboard.Key.ctrl], pykeyboard.Key.left)
            self._tap_with([pykeyboard.Key.ctrl, pykeyboard.Key.shift], pykeyboard.Key.right)
        except Exception as e:
            logging.error(f'Failed to select word at caret: {e}')
            return ""
        return self.get_selected_text().strip()

    @staticmethod
    def clear_clipboard():
        """Clear the system clipboard."""
        try:
            pyperclip.copy('')
        except pyperclip.PyperclipException as e:
            logging.error(f'Error clearing clipboard: {e}')

    @staticmethod
    def copy_to_clipboard(text: str) -> bool:
        """
        Copy text to clipboard.

        Args:
            text: Text to copy

        Returns:
            True if successful
        """
        try:
            pyperclip.copy(text)
            return True
        except pyperclip.PyperclipException as e:
            logging.error(f'Failed to copy to clipboard: {e}')
            return False
