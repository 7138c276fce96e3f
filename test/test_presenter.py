#!/usr/bin/env python3
"""
Tests for the response presenter and its post-display action window.
"""

import unittest
from unittest.mock import MagicMock

from fakes import FakeLoop, FakeSurface

from quicklens.config import DEFAULT_CONFIG, Settings
from quicklens.dispatcher import PendingContext
from quicklens.errors import ConfigurationError, TransportError
from quicklens.presenter import (
    PLACEHOLDER_TEXT, POPUP_ID, ResponsePresenter, SessionState, normalize_key
)
from quicklens.query import CENTERED, AnchorPosition
from quicklens.session_manager import ConversationManager


def make_pending(text="idempotent", word_budget=12, anchor=CENTERED):
    return PendingContext(source_text=text, word_budget=word_budget, anchor=anchor)


class PresenterTestCase(unittest.TestCase):

    def setUp(self):
        self.loop = FakeLoop()
        self.surface = FakeSurface()
        self.clipboard = MagicMock()
        self.clipboard.copy_to_clipboard.return_value = True
        self.conversations = ConversationManager()
        self.on_expand = MagicMock()
        self.key_source = MagicMock()
        self.messages = MagicMock()
        self.text_channel = MagicMock()
        self.settings = Settings.from_config(DEFAULT_CONFIG)
        self.presenter = self.make_presenter(self.surface)

    def make_presenter(self, surface):
        return ResponsePresenter(
            self.loop,
            surface,
            self.clipboard,
            self.conversations,
            on_expand=self.on_expand,
            settings=self.settings,
            key_source=self.key_source,
            message_channel=self.messages,
            text_channel=self.text_channel,
            clock=lambda: self.loop.now,
        )


class TestPlacement(PresenterTestCase):

    def test_anchored_popup_adds_surface_origin(self):
        self.surface._origin = (10, 20)
        self.presenter.present("answer", make_pending(anchor=AnchorPosition(100, 200)))

        shown = self.surface.shown[-1]
        self.assertEqual(shown["popup_id"], POPUP_ID)
        self.assertEqual(shown["text"], "answer")
        self.assertEqual(shown["position"], (110, 220))

    def test_centered_popup_has_no_position(self):
        self.presenter.present("answer", make_pending(anchor=CENTERED))
        self.assertIsNone(self.surface.shown[-1]["position"])

    def test_width_bounds_from_settings(self):
        self.presenter.present("answer", make_pending())
        shown = self.surface.shown[-1]
        self.assertEqual(shown["min_size"], (36, 1))
        self.assertEqual(shown["max_size"], (70, None))
        self.assertIsNone(shown["timeout"])


class TestFallback(PresenterTestCase):

    def test_unavailable_surface_uses_plain_text(self):
        self.surface.available = False
        session = self.presenter.present("answer", make_pending())

        self.assertIsNone(session)
        self.text_channel.assert_called_once_with("answer")
        self.assertEqual(self.surface.shown, [])
        self.key_source.start.assert_not_called()
        self.assertEqual(self.loop.live_timers(), [])

    def test_capability_error_uses_plain_text(self):
        presenter = self.make_presenter(FakeSurface(fail=True))
        self.assertIsNone(presenter.present("answer", make_pending()))
        self.text_channel.assert_called_once_with("answer")

    def test_no_surface_uses_plain_text(self):
        presenter = self.make_presenter(None)
        presenter.present("answer", make_pending())
        self.text_channel.assert_called_once_with("answer")


class TestFailure(PresenterTestCase):

    def test_transport_error_is_a_message_not_a_popup(self):
        self.presenter.handle_result(TransportError("API error 500"), make_pending())

        self.assertEqual(self.surface.shown, [])
        self.text_channel.assert_not_called()
        args, kwargs = self.messages.call_args
        self.assertIn("API error 500", args[0])
        self.assertEqual(kwargs["level"], "error")
        self.assertIsNone(self.presenter.active_session)

    def test_success_is_presented(self):
        self.presenter.handle_result("answer", make_pending())
        self.assertEqual(self.surface.visible[POPUP_ID], "answer")
        self.assertIsNotNone(self.presenter.active_session)


class TestActionWindow(PresenterTestCase):

    def test_session_becomes_active(self):
        session = self.presenter.present("answer", make_pending())
        self.assertIs(session.state, SessionState.ACTIVE)
        self.assertEqual(session.expiry_deadline, 10)
        self.key_source.start.assert_called_once()
        self.assertEqual(len(self.loop.live_timers()), 1)

    def test_dismiss(self):
        session = self.presenter.present("answer", make_pending())
        self.assertTrue(self.presenter.handle_key("esc"))

        self.assertIs(session.state, SessionState.DISMISSED)
        self.assertIn(POPUP_ID, self.surface.hidden)
        self.key_source.stop.assert_called_once()
        self.assertEqual(self.loop.live_timers(), [])

    def test_expand_multiplies_word_budget(self):
        anchor = AnchorPosition(5, 6)
        session = self.presenter.present("answer", make_pending("monad", 12, anchor))

        self.assertTrue(self.presenter.handle_key("+"))

        self.on_expand.assert_called_once_with("monad", 48, anchor)
        placeholder = self.surface.shown[-1]
        self.assertEqual(placeholder["text"], PLACEHOLDER_TEXT)
        self.assertEqual(placeholder["timeout"], 10)
        self.assertIs(session.state, SessionState.DISMISSED)

    def test_expand_configuration_error_hides_placeholder(self):
        self.on_expand.side_effect = ConfigurationError("backend_override without model_override")
        self.presenter.present("answer", make_pending())
        self.presenter.handle_key("+")

        self.assertNotIn(POPUP_ID, self.surface.visible)
        self.assertEqual(self.messages.call_args[1]["level"], "error")

    def test_copy_keeps_session_active(self):
        session = self.presenter.present("answer", make_pending())
        self.assertTrue(self.presenter.handle_key("alt+w"))

        self.clipboard.copy_to_clipboard.assert_called_once_with("answer")
        self.messages.assert_called_with("Response copied to clipboard")
        self.assertIs(session.state, SessionState.ACTIVE)
        self.assertIs(self.presenter.active_session, session)
        self.assertIn(POPUP_ID, self.surface.visible)

    def test_escalate_opens_seeded_conversation(self):
        self.presenter.present("a pure function", make_pending("idempotent"))
        self.assertTrue(self.presenter.handle_key("alt+enter"))

        conversation = self.conversations.get("*quicklens*")
        self.assertIsNotNone(conversation)
        self.assertEqual(
            conversation.get_conversation_for_api(),
            [
                {"role": "user", "content": "idempotent"},
                {"role": "assistant", "content": "a pure function"},
            ]
        )
        self.assertIsNone(self.presenter.active_session)
        self.assertNotIn(POPUP_ID, self.surface.visible)

    def test_escalations_get_unique_names(self):
        self.presenter.present("one", make_pending())
        self.presenter.handle_key("alt+enter")
        self.presenter.present("two", make_pending())
        self.presenter.handle_key("alt+enter")

        names = [s["name"] for s in self.conversations.list_sessions()]
        self.assertEqual(names, ["*quicklens*", "*quicklens<2>*"])

    def test_escalate_does_not_auto_send(self):
        opener = MagicMock()
        self.conversations.opener = opener
        self.presenter.present("answer", make_pending())
        self.presenter.handle_key("alt+enter")
        self.assertFalse(opener.call_args[0][1])

    def test_unmapped_key_dismisses_and_falls_through(self):
        session = self.presenter.present("answer", make_pending())
        self.assertFalse(self.presenter.handle_key("x"))

        self.assertIs(session.state, SessionState.DISMISSED)
        self.assertNotIn(POPUP_ID, self.surface.visible)
        self.on_expand.assert_not_called()

    def test_keys_are_ignored_without_a_session(self):
        self.assertFalse(self.presenter.handle_key("+"))
        self.on_expand.assert_not_called()


class TestTimeout(PresenterTestCase):

    def test_timeout_hides_popup_and_clears_action_map(self):
        session = self.presenter.present("answer", make_pending())
        self.loop.advance(9)
        self.assertIs(session.state, SessionState.ACTIVE)

        self.loop.advance(1)

        self.assertIs(session.state, SessionState.DISMISSED)
        self.assertNotIn(POPUP_ID, self.surface.visible)
        self.key_source.stop.assert_called_once()
        # Action keys no longer do anything
        self.assertFalse(self.presenter.handle_key("+"))
        self.on_expand.assert_not_called()

    def test_dismissed_session_timer_is_cancelled(self):
        self.presenter.present("answer", make_pending())
        self.presenter.handle_key("esc")
        hidden_before = len(self.surface.hidden)

        self.loop.advance(10)
        self.assertEqual(len(self.surface.hidden), hidden_before)

    def test_copy_does_not_extend_the_timeout(self):
        session = self.presenter.present("answer", make_pending())
        self.loop.advance(5)
        self.presenter.handle_key("alt+w")
        self.loop.advance(5)
        self.assertIs(session.state, SessionState.DISMISSED)


class TestOverlappingCycles(PresenterTestCase):
    """
    Independent request cycles are not ordered or cancelled: whichever
    response arrives last owns the popup. Kept deliberately.
    """

    def test_new_response_replaces_active_session(self):
        first = self.presenter.present("first", make_pending("a"))
        second = self.presenter.present("second", make_pending("b"))

        self.assertIs(first.state, SessionState.DISMISSED)
        self.assertIs(second.state, SessionState.ACTIVE)
        self.assertIs(self.presenter.active_session, second)
        self.assertEqual(self.surface.visible[POPUP_ID], "second")
        self.assertEqual(len(self.loop.live_timers()), 1)

    def test_late_older_response_wins(self):
        older = make_pending("older", 12)
        newer = make_pending("newer", 48)

        self.presenter.handle_result("newer answer", newer)
        self.presenter.handle_result("older answer", older)

        self.assertEqual(self.surface.visible[POPUP_ID], "older answer")
        self.assertIs(self.presenter.active_session.pending, older)

    def test_response_after_dismissal_is_redisplayed(self):
        self.presenter.present("first", make_pending())
        self.presenter.handle_key("esc")
        self.presenter.handle_result("late", make_pending())

        self.assertEqual(self.surface.visible[POPUP_ID], "late")
        self.assertIsNotNone(self.presenter.active_session)

    def test_old_timer_does_not_dismiss_new_session(self):
        self.presenter.present("first", make_pending())
        self.loop.advance(6)
        second = self.presenter.present("second", make_pending())
        self.loop.advance(5)

        self.assertIs(second.state, SessionState.ACTIVE)
        self.assertIn(POPUP_ID, self.surface.visible)


class TestNormalizeKey(unittest.TestCase):

    def test_plain_keys(self):
        self.assertEqual(normalize_key("Esc"), "esc")
        self.assertEqual(normalize_key("escape"), "esc")
        self.assertEqual(normalize_key("+"), "+")

    def test_modifiers_sorted_and_aliased(self):
        self.assertEqual(normalize_key("Alt+W"), "alt+w")
        self.assertEqual(normalize_key("shift+alt+x"), "alt+shift+x")
        self.assertEqual(normalize_key("meta+return"), "alt+enter")

    def test_plus_with_modifier(self):
        self.assertEqual(normalize_key("ctrl++"), "ctrl++")


if __name__ == '__main__':
    unittest.main()
