#!/usr/bin/env python3
"""
Tests for the blocking host loop used by the command line.
"""

import threading
import unittest

import fakes  # noqa: F401

from quicklens.loop import BlockingHostLoop


class TestBlockingHostLoop(unittest.TestCase):

    def setUp(self):
        self.loop = BlockingHostLoop()

    def test_call_soon_from_another_thread(self):
        results = []
        worker = threading.Thread(target=lambda: self.loop.call_soon(lambda: results.append("done")))
        worker.start()
        worker.join()

        self.assertTrue(self.loop.run_until(lambda: results, timeout=2))
        self.assertEqual(results, ["done"])

    def test_timers_fire_in_order(self):
        results = []
        self.loop.call_later(0.05, lambda: results.append("second"))
        self.loop.call_later(0.01, lambda: results.append("first"))

        self.assertTrue(self.loop.run_until(lambda: len(results) == 2, timeout=2))
        self.assertEqual(results, ["first", "second"])

    def test_cancelled_timer_does_not_fire(self):
        results = []
        timer = self.loop.call_later(0.01, lambda: results.append("cancelled"))
        self.loop.call_later(0.05, lambda: results.append("kept"))
        timer.cancel()

        self.loop.run_until(lambda: "kept" in results, timeout=2)
        self.assertEqual(results, ["kept"])

    def test_timeout(self):
        self.assertFalse(self.loop.run_until(lambda: False, timeout=0.1))


if __name__ == '__main__':
    unittest.main()
