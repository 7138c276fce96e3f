#!/usr/bin/env python3
"""
Global keyboard listeners using pynput

HotkeyListener triggers a lookup. ActionKeyListener runs only while a popup
is active and reports every key press, formatted like 'alt+w', to the host
loop.
"""

import logging
import threading
import time
from typing import Callable, Optional, Set

from pynput import keyboard as pykeyboard

from ..loop import HostLoop

MODIFIER_NAMES = {
    pykeyboard.Key.ctrl: "ctrl",
    pykeyboard.Key.ctrl_l: "ctrl",
    pykeyboard.Key.ctrl_r: "ctrl",
    pykeyboard.Key.alt: "alt",
    pykeyboard.Key.alt_l: "alt",
    pykeyboard.Key.alt_r: "alt",
    pykeyboard.Key.alt_gr: "alt",
    pykeyboard.Key.shift: "shift",
    pykeyboard.Key.shift_l: "shift",
    pykeyboard.Key.shift_r: "shift",
    pykeyboard.Key.cmd: "cmd",
    pykeyboard.Key.cmd_l: "cmd",
    pykeyboard.Key.cmd_r: "cmd",
}


class HotkeyListener:
    """
    Global hotkey listener with spam detection.
    """

    def __init__(self, shortcut: str, callback: Callable[[], None]):
        """
        Args:
            shortcut: Hotkey string like 'ctrl+alt+q'
            callback: Function to call when hotkey is triggered
        """
        self.shortcut = shortcut
        self.callback = callback
        self.listener: Optional[pykeyboard.Listener] = None
        self.paused = False
        self.running = False

        # Spam detection
        self.recent_triggers = []
        self.TRIGGER_WINDOW = 1.5  # seconds
        self.MAX_TRIGGERS = 3

    @staticmethod
    def parse_shortcut(shortcut: str) -> str:
        """
        Parse shortcut string to pynput format.
        e.g., 'ctrl+alt+q' -> '<ctrl>+<alt>+q'
        """
        parsed_parts = []
        for part in shortcut.lower().split('+'):
            part = part.strip()
            if len(part) <= 1:
                parsed_parts.append(part)
            else:
                parsed_parts.append(f'<{part}>')
        return '+'.join(parsed_parts)

    def _check_trigger_spam(self) -> bool:
        """Returns True if the hotkey fired too often in the trigger window."""
        current_time = time.time()
        self.recent_triggers.append(current_time)
        self.recent_triggers = [
            t for t in self.recent_triggers
            if current_time - t <= self.TRIGGER_WINDOW
        ]
        return len(self.recent_triggers) >= self.MAX_TRIGGERS

    def _on_activate(self):
        if self.paused:
            logging.debug('Hotkey pressed but listener is paused')
            return

        if self._check_trigger_spam():
            logging.warning('Hotkey spam detected - ignoring trigger')
            return

        logging.debug('Hotkey triggered')
        # Selection capture sends keystrokes, so it must not block the listener
        threading.Thread(target=self.callback, daemon=True).start()

    def start(self):
        if self.running:
            return

        try:
            parsed_shortcut = self.parse_shortcut(self.shortcut)
            hotkey = pykeyboard.HotKey(
                pykeyboard.HotKey.parse(parsed_shortcut),
                self._on_activate
            )

            def for_canonical(f):
                return lambda k: f(self.listener.canonical(k))

            self.listener = pykeyboard.Listener(
                on_press=for_canonical(hotkey.press),
                on_release=for_canonical(hotkey.release)
            )
            self.listener.start()
            self.running = True
            logging.info(f'Hotkey listener started: {self.shortcut}')
        except Exception as e:
            logging.error(f'Failed to start hotkey listener: {e}')
            self.running = False

    def stop(self):
        if self.listener:
            self.listener.stop()
            self.listener = None
        self.running = False
        logging.debug('Hotkey listener stopped')

    def pause(self):
        self.paused = True
        logging.debug('Hotkey listener paused')

    def resume(self):
        self.paused = False
        logging.debug('Hotkey listener resumed')


def format_key(key, modifiers: Set[str]) -> Optional[str]:
    """
    Format a key press with the held modifiers, e.g. 'alt+w' or 'esc'.

    Returns None for modifier keys on their own. Shift is dropped for
    printable characters since the character already reflects it.
    """
    if key in MODIFIER_NAMES:
        return None

    char = getattr(key, "char", None)
    if char:
        name = char.lower()
        held = modifiers - {"shift"}
    elif isinstance(key, pykeyboard.Key):
        name = key.name
        held = set(modifiers)
    else:
        return None

    return "+".join(sorted(held) + [name])


class ActionKeyListener:
    """
    Reports key presses to a handler on the host loop.

    Started when an action session becomes active and stopped when it ends.
    Keys are observed, not suppressed.
    """

    def __init__(self, loop: HostLoop, on_key: Callable[[str], bool]):
        self.loop = loop
        self.on_key = on_key
        self.listener: Optional[pykeyboard.Listener] = None
        self.modifiers: Set[str] = set()

    @property
    def running(self) -> bool:
        return self.listener is not None

    def _on_press(self, key):
        modifier = MODIFIER_NAMES.get(key)
        if modifier:
            self.modifiers.add(modifier)
            return

        name = format_key(key, self.modifiers)
        if name:
            logging.debug(f'Action key: {name}')
            self.loop.call_soon(lambda: self.on_key(name))

    def _on_release(self, key):
        modifier = MODIFIER_NAMES.get(key)
        if modifier:
            self.modifiers.discard(modifier)

    def start(self):
        if self.listener is not None:
            return
        self.modifiers = set()
        try:
            self.listener = pykeyboard.Listener(
                on_press=self._on_press,
                on_release=self._on_release
            )
            self.listener.start()
        except Exception as e:
            logging.error(f'Failed to start action key listener: {e}')
            self.listener = None

    def stop(self):
        listener, self.listener = self.listener, None
        if listener is not None:
            listener.stop()
