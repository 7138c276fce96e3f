# GUI package for Tkinter interface

from .core import get_gui_status, shutdown_tkinter, start_gui, TkHostLoop

__all__ = [
    'get_gui_status',
    'shutdown_tkinter',
    'start_gui',
    'TkHostLoop',
]
