#!/usr/bin/env python3
"""
QuickLens application wiring

Connects the query builder, dispatcher and presenter to the transport, the
popup surface and the input sources. quick() is the single invocation entry
point used by the hotkey, the command line and the HTTP endpoint.
"""

import logging
from typing import Dict, List, Optional

from .api_client import LLMClient
from .config import Settings
from .console import show_message
from .context import ContextStore
from .dispatcher import PendingContext, RequestDispatcher
from .errors import ConfigurationError
from .loop import HostLoop
from .presenter import ResponsePresenter
from .query import CENTERED, Anchor, QueryBuilder, QueryRequest
from .session_manager import ConversationManager


class QuickLensApp:
    """
    Owns one instance of every collaborator.

    Args:
        config, ai_params, keys: As returned by load_config()
        loop: Host loop every callback runs on
        surface: Popup surface, or None for plain-text output only
        key_source: Listener started while a popup accepts action keys
        opener: Conversation window factory for escalation
        client: Transport; built from the configuration when omitted
    """

    def __init__(
        self,
        config: Dict,
        ai_params: Dict,
        keys: Dict[str, List[str]],
        loop: HostLoop,
        surface=None,
        key_source=None,
        clipboard=None,
        opener=None,
        client=None
    ):
        self.config = config
        self.loop = loop
        self.settings = Settings.from_config(config)
        self.client = client or LLMClient(config, ai_params, keys, loop)
        self.context_store = ContextStore(self.settings.context_files)
        self.builder = QueryBuilder(self.settings)
        self.conversations = ConversationManager(opener)
        self.completed = 0
        self.last_result_ok = False

        self.presenter = ResponsePresenter(
            loop,
            surface,
            clipboard,
            self.conversations,
            on_expand=self._on_expand,
            settings=self.settings,
            key_source=key_source,
        )
        self.dispatcher = RequestDispatcher(self.client, self._on_complete, self.context_store)
        self.hotkey_listener = None
        self.text_handler = None

    # ─── Invocation ───────────────────────────────────────────────────────

    def quick(
        self,
        source_text: Optional[str] = None,
        word_count: Optional[int] = None,
        anchor: Optional[Anchor] = None,
        editor_state=None
    ) -> Optional[QueryRequest]:
        """
        Look up source_text, or the text resolved from editor_state.

        Returns the dispatched QueryRequest, or None when there was nothing
        to look up.

        Raises:
            ConfigurationError: before anything is sent
        """
        query = self.builder.build(source_text, word_count, editor_state)
        if not query.source_text.strip():
            show_message("Nothing to look up", level="warning")
            return None

        if anchor is None:
            anchor = self.builder.capture_anchor(editor_state) if editor_state else CENTERED

        self.dispatcher.dispatch(query, anchor)
        return query

    def _on_expand(self, source_text: str, word_budget: int, anchor: Anchor):
        self.quick(source_text, word_budget, anchor)

    def _on_complete(self, result, pending: PendingContext):
        self.completed += 1
        self.last_result_ok = isinstance(result, str)
        self.presenter.handle_result(result, pending)

    # ─── Hotkey ───────────────────────────────────────────────────────────

    def on_hotkey(self):
        """
        Hotkey callback, runs on its own worker thread.

        Capturing the selection or the word at the caret simulates key
        presses, so it happens here. Building and dispatching the query
        happens on the host loop.
        """
        from pynput import mouse

        from .editor_state import DesktopEditorState
        from .gui.text_handler import TextHandler

        if self.text_handler is None:
            self.text_handler = TextHandler()

        pointer = tuple(int(v) for v in mouse.Controller().position)
        editor_state = DesktopEditorState(self.text_handler, pointer)
        self.loop.call_soon(lambda: self._quick_reporting_errors(editor_state))

    def _quick_reporting_errors(self, editor_state):
        try:
            self.quick(editor_state=editor_state)
        except ConfigurationError as e:
            logging.error(f'Lookup not sent: {e}')
            show_message(str(e), level="error")

    def start(self):
        """Start the global hotkey listener."""
        from .gui.hotkey import HotkeyListener

        hotkey = self.config.get("hotkey") or "ctrl+alt+q"
        self.hotkey_listener = HotkeyListener(hotkey, self.on_hotkey)
        self.hotkey_listener.start()

    def stop(self):
        if self.hotkey_listener:
            self.hotkey_listener.stop()
            self.hotkey_listener = None
        if self.presenter.key_source is not None:
            self.presenter.key_source.stop()

    def status(self) -> Dict:
        session = self.presenter.active_session
        return {
            "hotkey": self.config.get("hotkey"),
            "hotkey_running": bool(self.hotkey_listener and self.hotkey_listener.running),
            "popup_active": session is not None,
            "word_count": self.settings.word_count,
            "use_context": self.settings.use_context,
            "context_items": len(self.context_store),
            "conversations": len(self.conversations.list_sessions()),
            "completed": self.completed,
        }


def build_desktop_app(config: Dict, ai_params: Dict, keys: Dict[str, List[str]]) -> Optional[QuickLensApp]:
    """
    Build the app on the Tk GUI thread with popups and action keys.

    Returns None when the GUI cannot start.
    """
    from .gui import core
    from .gui.chat_window import make_conversation_opener
    from .gui.hotkey import ActionKeyListener
    from .gui.popup import TkPopupSurface
    from .gui.text_handler import TextHandler

    if not core.start_gui():
        return None

    loop = core.TkHostLoop()
    theme_mode = config.get("ui_theme_mode") or "auto"
    client = LLMClient(config, ai_params, keys, loop)

    quicklens = QuickLensApp(
        config, ai_params, keys, loop,
        surface=TkPopupSurface(theme_mode),
        clipboard=TextHandler,
        opener=make_conversation_opener(client, lambda: quicklens.conversations, theme_mode),
        client=client,
    )
    quicklens.presenter.key_source = ActionKeyListener(loop, quicklens.presenter.handle_key)
    return quicklens
