#!/usr/bin/env python3
"""
Response presentation and the post-display action window

Each displayed response gets an ActionSession. While a session is active its
action map accepts four inputs (dismiss, expand, copy, escalate); any other
input dismisses the session and falls through untouched. Sessions also end on
timeout, and a newly presented response replaces the active one.

Session lifecycle:
    DISPLAYING -> ACTIVE -> DISMISSED

All methods run on the host loop.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .console import print_response, show_message
from .dispatcher import PendingContext
from .errors import CapabilityUnavailable, ConfigurationError, TransportError
from .loop import HostLoop, TimerHandle
from .query import Anchor, AnchorPosition

POPUP_ID = " *quicklens*"
PLACEHOLDER_TEXT = "Generating..."
EXPAND_FACTOR = 4


class SessionState(Enum):
    DISPLAYING = "displaying"
    ACTIVE = "active"
    DISMISSED = "dismissed"


class Action(Enum):
    DISMISS = "dismiss"
    EXPAND = "expand"
    COPY = "copy"
    ESCALATE = "escalate"


@dataclass
class ActionSession:
    """State for one displayed popup."""
    response_text: str
    pending: PendingContext
    expiry_deadline: float
    state: SessionState = SessionState.DISPLAYING
    timer: Optional[TimerHandle] = None

    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE


KEY_ALIASES = {
    "escape": "esc",
    "return": "enter",
    "control": "ctrl",
    "ctrl_l": "ctrl",
    "ctrl_r": "ctrl",
    "alt_l": "alt",
    "alt_r": "alt",
    "alt_gr": "alt",
    "option": "alt",
    "meta": "alt",
    "shift_l": "shift",
    "shift_r": "shift",
}


def normalize_key(key: str) -> str:
    """Canonical key name: lower case, aliases resolved, modifiers sorted."""
    key = key.strip().lower()
    if key == "+":
        parts = ["+"]
    elif key.endswith("++"):
        parts = key[:-2].split('+') + ["+"]
    else:
        parts = key.split('+')
    parts = [KEY_ALIASES.get(p.strip(), p.strip()) for p in parts if p.strip()]
    if not parts:
        return ""
    *modifiers, main = parts
    return "+".join(sorted(modifiers) + [main])


class ResponsePresenter:
    """
    Renders lookup results and runs the follow-up action window.

    Collaborators:
        surface: popup surface with show()/hide()/is_available()/origin(),
                 or None when no overlay is possible
        clipboard: object with copy_to_clipboard(text)
        conversations: object with unique_name() and open_conversation()
        on_expand: callable(source_text, word_budget, anchor) that starts a
                   new request cycle
        key_source: optional object with start()/stop(), running only while
                    a session is active
    """

    def __init__(
        self,
        loop: HostLoop,
        surface,
        clipboard,
        conversations,
        on_expand: Callable[[str, int, Anchor], None],
        settings,
        key_source=None,
        message_channel: Callable = show_message,
        text_channel: Callable[[str], None] = print_response,
        clock: Callable[[], float] = time.monotonic
    ):
        self.loop = loop
        self.surface = surface
        self.clipboard = clipboard
        self.conversations = conversations
        self.on_expand = on_expand
        self.settings = settings
        self.key_source = key_source
        self.message_channel = message_channel
        self.text_channel = text_channel
        self.clock = clock

        self.action_map: Dict[str, Action] = {
            normalize_key(key): Action(name)
            for name, key in settings.action_keys.items()
        }
        self._session: Optional[ActionSession] = None

    @property
    def active_session(self) -> Optional[ActionSession]:
        if self._session is not None and self._session.active:
            return self._session
        return None

    # ─── Completion ───────────────────────────────────────────────────────

    def handle_result(self, result, pending: PendingContext):
        """Completion handler for the dispatcher."""
        if isinstance(result, str):
            self.present(result, pending)
            return

        error = result if isinstance(result, TransportError) else TransportError(str(result))
        # Popups are reserved for successful content
        self.message_channel(f"Lookup failed: {error}", level="error")

    def present(self, response: str, pending: PendingContext) -> Optional[ActionSession]:
        """
        Show a response. Returns the new ActionSession, or None when the
        response went to the plain-text channel.
        """
        previous = self._session
        if previous is not None and previous.active:
            logging.debug('New response supersedes the active session')
            self._deactivate(previous)

        session = ActionSession(
            response_text=response,
            pending=pending,
            expiry_deadline=self.clock() + self.settings.popup_timeout,
        )

        if not self._render(response, pending.anchor):
            self.text_channel(response)
            return None

        self._install(session)
        return session

    # ─── Rendering ────────────────────────────────────────────────────────

    def screen_position(self, anchor: Anchor) -> Optional[Tuple[int, int]]:
        """Absolute coordinates for an anchor, or None for centered placement."""
        if not isinstance(anchor, AnchorPosition):
            return None
        offset_x, offset_y = self.surface.origin()
        return anchor.x + offset_x, anchor.y + offset_y

    def _render(self, text: str, anchor: Anchor, timeout: Optional[float] = None) -> bool:
        """Show text in the overlay. False when the overlay is unavailable."""
        if self.surface is None or not self.surface.is_available():
            logging.debug('Overlay unavailable, using plain text')
            return False
        try:
            self.surface.show(
                POPUP_ID,
                text,
                position=self.screen_position(anchor),
                min_size=(self.settings.min_width, 1),
                max_size=(self.settings.max_width, None),
                timeout=timeout,
            )
        except CapabilityUnavailable as e:
            logging.debug(f'Overlay unavailable ({e}), using plain text')
            return False
        return True

    def _hide(self):
        if self.surface is not None:
            self.surface.hide(POPUP_ID)

    # ─── Session lifecycle ────────────────────────────────────────────────

    def _install(self, session: ActionSession):
        self._session = session
        session.state = SessionState.ACTIVE
        session.timer = self.loop.call_later(
            self.settings.popup_timeout, lambda: self._expire(session)
        )
        if self.key_source is not None:
            self.key_source.start()
        logging.debug(f'Action session active for {self.settings.popup_timeout}s')

    def _deactivate(self, session: ActionSession):
        """Uninstall the action map. Every terminal transition goes through here."""
        if session.state is SessionState.DISMISSED:
            return
        session.state = SessionState.DISMISSED
        if session.timer is not None:
            session.timer.cancel()
            session.timer = None
        if self.key_source is not None and session is self._session:
            self.key_source.stop()
        logging.debug('Action session dismissed')

    def _expire(self, session: ActionSession):
        if not session.active:
            return
        logging.debug('Action session timed out')
        session.timer = None
        self._hide()
        self._deactivate(session)

    # ─── Input ────────────────────────────────────────────────────────────

    def handle_key(self, key: str) -> bool:
        """
        Feed one input to the active session.

        Returns True when the input was consumed by the action map. Unmapped
        input dismisses the session and is not consumed.
        """
        session = self.active_session
        if session is None:
            return False

        action = self.action_map.get(normalize_key(key))
        if action is None:
            self._hide()
            self._deactivate(session)
            return False

        self.perform(action)
        return True

    def perform(self, action: Action):
        handlers = {
            Action.DISMISS: self.dismiss,
            Action.EXPAND: self.expand,
            Action.COPY: self.copy,
            Action.ESCALATE: self.escalate,
        }
        handlers[action]()

    def dismiss(self):
        session = self.active_session
        if session is None:
            return
        self._hide()
        self._deactivate(session)

    def expand(self):
        """Replace the popup with a placeholder and start a larger lookup."""
        session = self.active_session
        if session is None:
            return
        pending = session.pending
        self._render(PLACEHOLDER_TEXT, pending.anchor, timeout=self.settings.popup_timeout)
        self._deactivate(session)

        try:
            self.on_expand(pending.source_text, pending.word_budget * EXPAND_FACTOR, pending.anchor)
        except ConfigurationError as e:
            self._hide()
            self.message_channel(str(e), level="error")

    def copy(self):
        """Copy the response. The session stays active."""
        session = self.active_session
        if session is None or self.clipboard is None:
            return
        if self.clipboard.copy_to_clipboard(session.response_text):
            self.message_channel("Response copied to clipboard")

    def escalate(self):
        """Hand the query and response over to a new conversation."""
        session = self.active_session
        if session is None:
            return
        self._hide()
        self._deactivate(session)

        name = self.conversations.unique_name()
        seed = [
            {"role": "user", "content": session.pending.source_text},
            {"role": "assistant", "content": session.response_text},
        ]
        self.conversations.open_conversation(
            name, seed, auto_send=False,
            backend=session.pending.backend_override,
            model=session.pending.model_override,
        )
