#!/usr/bin/env python3
"""
GUI core initialization and threading - Tkinter implementation

A single hidden Tk root runs on a daemon thread and acts as the host event
loop. Everything that touches presenter state or Tk widgets is scheduled onto
it through TkHostLoop.
"""

import logging
import queue
import threading
import tkinter as tk
from typing import Callable, Optional

from ..loop import HostLoop, TimerHandle

# GUI state
GUI_THREAD: Optional[threading.Thread] = None
GUI_LOCK = threading.Lock()
GUI_RUNNING = False
GUI_ROOT: Optional[tk.Tk] = None

# Tasks queued from other threads, drained on the GUI thread
GUI_QUEUE: "queue.Queue[Callable[[], None]]" = queue.Queue()
POLL_INTERVAL_MS = 20


def init_tkinter():
    """Initialize the hidden Tkinter root window"""
    global GUI_ROOT

    try:
        GUI_ROOT = tk.Tk()
        GUI_ROOT.withdraw()
        GUI_ROOT.title("QuickLens")
        return True
    except tk.TclError as e:
        logging.error(f'Failed to initialize Tkinter: {e}')
        GUI_ROOT = None
        return False


def quit_gui():
    """Leave the main loop. Runs on the GUI thread."""
    if GUI_ROOT:
        try:
            GUI_ROOT.quit()
        except tk.TclError as e:
            logging.error(f'Failed to stop Tkinter: {e}')


def shutdown_tkinter(timeout: float = 2.0):
    """Stop the GUI thread, which destroys the root on its way out"""
    thread = GUI_THREAD
    if thread is None or not thread.is_alive():
        return
    GUI_QUEUE.put(quit_gui)
    if thread is not threading.current_thread():
        thread.join(timeout)


def destroy_tkinter():
    """Destroy the root window. Runs on the GUI thread."""
    global GUI_ROOT, GUI_RUNNING

    root, GUI_ROOT = GUI_ROOT, None
    GUI_RUNNING = False
    if root is not None:
        try:
            root.destroy()
        except tk.TclError as e:
            logging.error(f'Failed to shutdown Tkinter: {e}')


def process_gui_queue():
    """Run queued tasks, then poll again"""
    if not GUI_ROOT:
        return

    while True:
        try:
            task = GUI_QUEUE.get_nowait()
        except queue.Empty:
            break
        try:
            task()
        except Exception:
            logging.exception('GUI task failed')
        finally:
            GUI_QUEUE.task_done()

    try:
        GUI_ROOT.after(POLL_INTERVAL_MS, process_gui_queue)
    except tk.TclError:
        pass


def gui_main_loop(ready: threading.Event):
    """Main GUI loop running in separate thread"""
    global GUI_RUNNING

    if not init_tkinter():
        GUI_RUNNING = False
        ready.set()
        return

    GUI_RUNNING = True
    ready.set()
    logging.debug('GUI thread started')

    GUI_ROOT.after(POLL_INTERVAL_MS, process_gui_queue)
    try:
        GUI_ROOT.mainloop()
    finally:
        destroy_tkinter()
        logging.debug('GUI thread stopped')


def start_gui(timeout: float = 5.0) -> bool:
    """Ensure GUI thread is running, start if needed. False when Tk cannot start."""
    global GUI_THREAD

    with GUI_LOCK:
        if GUI_RUNNING and GUI_THREAD and GUI_THREAD.is_alive():
            return True

        ready = threading.Event()
        GUI_THREAD = threading.Thread(target=gui_main_loop, args=(ready,), daemon=True)
        GUI_THREAD.start()
        ready.wait(timeout)
        return GUI_RUNNING


def get_gui_root() -> Optional[tk.Tk]:
    return GUI_ROOT


def get_gui_status():
    """Get current GUI status"""
    return {
        "running": GUI_RUNNING,
        "context_created": GUI_ROOT is not None,
    }


class _TkTimer(TimerHandle):
    """Cancellable timer scheduled on the GUI thread."""

    def __init__(self):
        self.after_id = None
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        after_id, self.after_id = self.after_id, None
        root = GUI_ROOT
        if after_id is not None and root is not None:
            def cancel_on_gui():
                try:
                    root.after_cancel(after_id)
                except tk.TclError:
                    pass
            GUI_QUEUE.put(cancel_on_gui)


class TkHostLoop(HostLoop):
    """HostLoop backed by the GUI thread."""

    def call_soon(self, func: Callable[[], None]):
        GUI_QUEUE.put(func)

    def call_later(self, delay: float, func: Callable[[], None]) -> TimerHandle:
        timer = _TkTimer()

        def fire():
            timer.after_id = None
            if not timer.cancelled:
                func()

        def schedule():
            if timer.cancelled or GUI_ROOT is None:
                return
            timer.after_id = GUI_ROOT.after(int(delay * 1000), fire)

        GUI_QUEUE.put(schedule)
        return timer

