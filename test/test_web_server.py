#!/usr/bin/env python3
"""
Tests for the HTTP endpoint using Flask's test client.
"""

import unittest
from unittest.mock import MagicMock

import fakes  # noqa: F401

from quicklens import web_server
from quicklens.errors import ConfigurationError
from quicklens.query import CENTERED, AnchorPosition, QueryRequest


class TestWebServer(unittest.TestCase):

    def setUp(self):
        self.quicklens = MagicMock()
        self.quicklens.quick.return_value = QueryRequest("monad", 12, 32)
        self.quicklens.status.return_value = {"completed": 0}
        self.quicklens.conversations.list_sessions.return_value = [{"name": "*quicklens*"}]
        web_server.init_web_server(self.quicklens)
        self.client = web_server.app.test_client()

    def tearDown(self):
        web_server.QUICKLENS = None

    def test_quick_with_text(self):
        response = self.client.post('/quick', json={"text": "monad", "word_count": 12, "x": 5, "y": 6})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.get_json(),
            {"status": "dispatched", "word_budget": 12, "token_budget": 32}
        )
        kwargs = self.quicklens.quick.call_args[1]
        self.assertEqual(kwargs["source_text"], "monad")
        self.assertEqual(kwargs["word_count"], 12)
        self.assertEqual(kwargs["anchor"], AnchorPosition(5, 6))
        self.assertIsNone(kwargs["editor_state"])

    def test_quick_without_coordinates_is_centered(self):
        self.client.post('/quick', json={"text": "monad"})
        self.assertIs(self.quicklens.quick.call_args[1]["anchor"], CENTERED)

    def test_quick_with_buffer(self):
        self.client.post('/quick', json={"buffer": "alpha beta gamma", "point": 10, "mark": 6})

        kwargs = self.quicklens.quick.call_args[1]
        self.assertIsNone(kwargs["source_text"])
        self.assertEqual(kwargs["editor_state"].selection(), "beta")

    def test_configuration_error_is_400(self):
        self.quicklens.quick.side_effect = ConfigurationError("backend_override and model_override must be set together")
        response = self.client.post('/quick', json={"text": "monad"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("set together", response.get_json()["error"])

    def test_nothing_to_look_up_is_400(self):
        self.quicklens.quick.return_value = None
        response = self.client.post('/quick', json={})
        self.assertEqual(response.status_code, 400)

    def test_bad_integer_is_400(self):
        response = self.client.post('/quick', json={"text": "monad", "word_count": "many"})
        self.assertEqual(response.status_code, 400)
        self.quicklens.quick.assert_not_called()

    def test_non_string_text_is_400(self):
        response = self.client.post('/quick', json={"text": 42})
        self.assertEqual(response.status_code, 400)
        self.assertIn("string", response.get_json()["error"])
        self.quicklens.quick.assert_not_called()

    def test_non_object_body_is_400(self):
        response = self.client.post('/quick', json=["monad"])
        self.assertEqual(response.status_code, 400)

    def test_not_running_is_503(self):
        web_server.QUICKLENS = None
        response = self.client.post('/quick', json={"text": "monad"})
        self.assertEqual(response.status_code, 503)

    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["status"], "healthy")
        self.assertEqual(data["app"], {"completed": 0})

    def test_conversations(self):
        response = self.client.get('/conversations')
        self.assertEqual(response.get_json(), [{"name": "*quicklens*"}])


if __name__ == '__main__':
    unittest.main()
