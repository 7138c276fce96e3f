#!/usr/bin/env python3
"""
Frameless response popup - Tkinter implementation

Design:
    Catppuccin-inspired colors following the system theme (darkdetect).
    One borderless, topmost window per popup id; showing an id that is
    already on screen replaces its text in place.
"""

import logging
import tkinter as tk
import tkinter.font as tkfont
from typing import Dict, Optional, Tuple

import darkdetect

from ..errors import CapabilityUnavailable
from . import core


# =============================================================================
# Color Palettes (Catppuccin-inspired)
# =============================================================================

class CatppuccinMocha:
    """Dark mode color palette (Catppuccin Mocha)"""
    base = "#1e1e2e"
    surface0 = "#313244"
    overlay0 = "#6c7086"
    text = "#cdd6f4"
    blue = "#89b4fa"


class CatppuccinLatte:
    """Light mode color palette (Catppuccin Latte)"""
    base = "#eff1f5"
    surface0 = "#ccd0da"
    overlay0 = "#9ca0b0"
    text = "#4c4f69"
    blue = "#1e66f5"


def is_dark_mode() -> bool:
    """Check if system is in dark mode."""
    try:
        return bool(darkdetect.isDark())
    except Exception as e:
        logging.debug(f'Theme detection failed: {e}')
        return False


def get_colors(theme_mode: str = "auto"):
    """Get the color palette for a theme mode (auto, dark, light)."""
    if theme_mode == "dark":
        return CatppuccinMocha
    if theme_mode == "light":
        return CatppuccinLatte
    return CatppuccinMocha if is_dark_mode() else CatppuccinLatte


class _PopupWindow:
    """A single frameless popup."""

    PAD_X = 10
    PAD_Y = 8

    def __init__(self, parent: tk.Tk, colors, font: Tuple[str, int]):
        self.root = tk.Toplevel(parent)
        self.root.overrideredirect(True)
        self.root.attributes('-topmost', True)
        self.root.configure(bg=colors.surface0)
        self.hide_after_id = None

        frame = tk.Frame(
            self.root,
            bg=colors.base,
            highlightbackground=colors.blue,
            highlightthickness=1
        )
        frame.pack(fill=tk.BOTH, expand=True)

        self.label = tk.Label(
            frame,
            font=font,
            bg=colors.base,
            fg=colors.text,
            justify=tk.LEFT,
            anchor="nw",
        )
        self.label.pack(padx=self.PAD_X, pady=self.PAD_Y, fill=tk.BOTH, expand=True)

    def destroy(self):
        try:
            self.root.destroy()
        except tk.TclError:
            pass


class TkPopupSurface:
    """Popup surface drawn on the GUI thread's Tk root."""

    OFFSET_Y = 20  # Pixels below the anchor
    MARGIN = 10

    def __init__(self, theme_mode: str = "auto", font: Tuple[str, int] = ("Segoe UI", 10)):
        self.theme_mode = theme_mode
        self.font = font
        self.windows: Dict[str, _PopupWindow] = {}

    def is_available(self) -> bool:
        return core.GUI_RUNNING and core.get_gui_root() is not None

    def origin(self) -> Tuple[int, int]:
        """Offset of the virtual root, added to anchor coordinates."""
        root = core.get_gui_root()
        if root is None:
            return 0, 0
        try:
            return root.winfo_vrootx(), root.winfo_vrooty()
        except tk.TclError:
            return 0, 0

    def show(
        self,
        popup_id: str,
        text: str,
        position: Optional[Tuple[int, int]] = None,
        min_size: Tuple[int, Optional[int]] = (36, 1),
        max_size: Tuple[int, Optional[int]] = (70, None),
        timeout: Optional[float] = None
    ):
        """
        Show or replace a popup.

        Args:
            popup_id: Identifies the popup; one window per id
            text: Text to display
            position: Absolute screen coordinates, or None to center
            min_size: (columns, lines) lower bound
            max_size: (columns, lines) upper bound, None for unbounded
            timeout: Seconds until the popup hides itself, None to stay
        """
        root = core.get_gui_root()
        if root is None:
            raise CapabilityUnavailable("GUI is not running")

        try:
            window = self.windows.get(popup_id)
            if window is None:
                window = _PopupWindow(root, get_colors(self.theme_mode), self.font)
                self.windows[popup_id] = window
            elif window.hide_after_id is not None:
                root.after_cancel(window.hide_after_id)
                window.hide_after_id = None

            char_width = tkfont.Font(root=root, font=self.font).measure("0")
            window.label.configure(
                text=self._clip_lines(text, max_size[1]),
                wraplength=max_size[0] * char_width,
            )
            window.root.update_idletasks()

            if window.label.winfo_reqwidth() < min_size[0] * char_width:
                window.label.configure(width=min_size[0])
            else:
                window.label.configure(width=0)

            self._place(window, position)
            window.root.deiconify()
            window.root.lift()

            if timeout:
                window.hide_after_id = root.after(int(timeout * 1000), lambda: self.hide(popup_id))
        except tk.TclError as e:
            self.hide(popup_id)
            raise CapabilityUnavailable(f"Cannot draw popup: {e}")

    def hide(self, popup_id: str):
        window = self.windows.pop(popup_id, None)
        if window is not None:
            window.destroy()

    @staticmethod
    def _clip_lines(text: str, max_lines: Optional[int]) -> str:
        if not max_lines:
            return text
        lines = text.splitlines()
        if len(lines) <= max_lines:
            return text
        return "\n".join(lines[:max_lines]) + "\n…"

    def _place(self, window: _PopupWindow, position: Optional[Tuple[int, int]]):
        """Set window position at the anchor, kept on screen."""
        popup = window.root
        popup.update_idletasks()
        width = popup.winfo_reqwidth()
        height = popup.winfo_reqheight()
        screen_width = popup.winfo_screenwidth()
        screen_height = popup.winfo_screenheight()

        if position is None:
            x = (screen_width - width) // 2
            y = (screen_height - height) // 2
        else:
            x = position[0]
            y = position[1] + self.OFFSET_Y
            # Adjust if would go off screen
            if x + width > screen_width - self.MARGIN:
                x = screen_width - width - self.MARGIN
            if y + height > screen_height - self.MARGIN:
                y = position[1] - height - self.MARGIN
            x = max(self.MARGIN, x)
            y = max(self.MARGIN, y)

        popup.geometry(f"+{x}+{y}")
