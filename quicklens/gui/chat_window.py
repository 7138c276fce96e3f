#!/usr/bin/env python3
"""
Conversation window for escalated lookups

Shows the seeded transcript and lets the user continue the conversation.
Runs on the GUI thread; replies from the client arrive there as well.
"""

import logging
import tkinter as tk
from tkinter import ttk
from typing import Optional

from ..errors import TransportError
from ..session_manager import ChatSession, ConversationManager
from . import core
from .popup import get_colors
from .text_handler import TextHandler

_window_count = 0


class ConversationWindow:
    """A chat window bound to one ChatSession."""

    def __init__(
        self,
        parent: tk.Tk,
        session: ChatSession,
        client,
        manager: ConversationManager,
        theme_mode: str = "auto"
    ):
        global _window_count
        _window_count += 1
        self.window_id = _window_count

        self.session = session
        self.client = client
        self.manager = manager
        self.colors = get_colors(theme_mode)
        self.is_loading = False
        self._destroyed = False

        self.root = tk.Toplevel(parent)
        self._configure_window()
        self._build_ui()
        self._update_chat_display()

    # =========================================================================
    # UI Building
    # =========================================================================

    def _configure_window(self):
        self.root.title(f"Chat - {self.session.name}")
        self.root.minsize(420, 320)
        # Offset windows so they don't stack exactly
        offset = (self.window_id % 5) * 30
        self.root.geometry(f"640x520+{80 + offset}+{80 + offset}")
        self.root.configure(bg=self.colors.base)
        self.root.protocol("WM_DELETE_WINDOW", self._close)

    def _build_ui(self):
        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)

        chat_frame = tk.Frame(self.root, bg=self.colors.base)
        chat_frame.grid(row=0, column=0, sticky=tk.NSEW, padx=12, pady=(12, 6))
        chat_frame.columnconfigure(0, weight=1)
        chat_frame.rowconfigure(0, weight=1)

        self.chat_text = tk.Text(
            chat_frame,
            wrap=tk.WORD,
            font=("Segoe UI", 11),
            bg=self.colors.base,
            fg=self.colors.text,
            insertbackground=self.colors.text,
            relief=tk.FLAT,
            highlightthickness=0,
            padx=10,
            pady=10,
        )
        self.chat_text.grid(row=0, column=0, sticky=tk.NSEW)
        scrollbar = ttk.Scrollbar(chat_frame, orient=tk.VERTICAL, command=self.chat_text.yview)
        scrollbar.grid(row=0, column=1, sticky="ns")
        self.chat_text.configure(yscrollcommand=scrollbar.set)
        self.chat_text.tag_configure("role", foreground=self.colors.blue, font=("Segoe UI", 10, "bold"))

        self.input_text = tk.Text(
            self.root,
            height=3,
            wrap=tk.WORD,
            font=("Segoe UI", 11),
            bg=self.colors.surface0,
            fg=self.colors.text,
            insertbackground=self.colors.text,
            relief=tk.FLAT,
        )
        self.input_text.grid(row=1, column=0, sticky="ew", padx=12, pady=6)
        self.input_text.bind("<Return>", self._on_key_return)

        button_frame = tk.Frame(self.root, bg=self.colors.base)
        button_frame.grid(row=2, column=0, sticky="ew", padx=12, pady=(0, 12))

        self.send_btn = ttk.Button(button_frame, text="Send", command=self._send)
        self.send_btn.pack(side=tk.LEFT)
        ttk.Button(button_frame, text="Copy all", command=self._copy_all).pack(side=tk.LEFT, padx=(6, 0))

        self.status_label = tk.Label(
            button_frame, text="", font=("Segoe UI", 9),
            bg=self.colors.base, fg=self.colors.overlay0
        )
        self.status_label.pack(side=tk.RIGHT)

    def _on_key_return(self, event):
        if event.state & 0x1:  # Shift held
            return None
        self._send()
        return "break"

    def _update_chat_display(self):
        self.chat_text.configure(state=tk.NORMAL)
        self.chat_text.delete("1.0", tk.END)
        for msg in self.session.messages:
            role = "You" if msg["role"] == "user" else "Assistant"
            self.chat_text.insert(tk.END, f"{role}\n", "role")
            self.chat_text.insert(tk.END, f"{msg['content']}\n\n")
        self.chat_text.configure(state=tk.DISABLED)
        self.chat_text.see(tk.END)

    def _update_status(self, text: str):
        if not self._destroyed:
            self.status_label.configure(text=text)

    # =========================================================================
    # Actions
    # =========================================================================

    def _get_conversation_text(self) -> str:
        parts = []
        for msg in self.session.messages:
            role = "You" if msg["role"] == "user" else "Assistant"
            parts.append(f"[{role}]\n{msg['content']}\n")
        return "\n".join(parts)

    def _copy_all(self):
        if TextHandler.copy_to_clipboard(self._get_conversation_text()):
            self._update_status("Copied all")
        else:
            self._update_status("Failed to copy")

    def _send(self):
        if self.is_loading or self._destroyed:
            return

        user_input = self.input_text.get("1.0", tk.END).strip()
        if not user_input:
            self._update_status("Please enter a message")
            return

        self.input_text.delete("1.0", tk.END)
        self.session.add_message("user", user_input)
        self._update_chat_display()
        self.send_pending()

    def send_pending(self):
        """Ask the model to answer the conversation as it stands."""
        self.is_loading = True
        self.send_btn.configure(state=tk.DISABLED)
        self._update_status("Sending...")
        self.client.chat(
            self.session.get_conversation_for_api(),
            self._on_reply,
            backend=self.session.backend,
            model=self.session.model,
        )

    def _on_reply(self, result):
        if self._destroyed:
            return
        self.is_loading = False
        self.send_btn.configure(state=tk.NORMAL)

        if isinstance(result, TransportError):
            logging.error(f'Conversation {self.session.name}: {result}')
            self._update_status(f"Error: {result}")
            return

        self.session.add_message("assistant", result)
        self._update_chat_display()
        self._update_status("")

    def _close(self):
        self._destroyed = True
        self.manager.close(self.session.name)
        try:
            self.root.destroy()
        except tk.TclError:
            pass


def make_conversation_opener(client, manager_ref, theme_mode: str = "auto"):
    """
    Build the opener used by ConversationManager.

    manager_ref is a zero-argument callable returning the manager, since the
    manager is created with the opener.
    """
    def opener(session: ChatSession, auto_send: bool) -> Optional[ConversationWindow]:
        root = core.get_gui_root()
        if root is None:
            logging.warning(f'No GUI for conversation {session.name}')
            return None
        window = ConversationWindow(root, session, client, manager_ref(), theme_mode)
        if auto_send:
            window.send_pending()
        return window

    return opener
