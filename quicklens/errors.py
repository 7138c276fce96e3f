#!/usr/bin/env python3
"""
Error taxonomy for the quick lookup pipeline.

- ConfigurationError: override mismatch, raised before any request is sent
- TransportError: the LLM backend returned an error instead of text
- CapabilityUnavailable: no floating overlay surface (degrades to plain text)
"""


class QuickLensError(Exception):
    """Base exception for QuickLens."""


class ConfigurationError(QuickLensError):
    """Raised when the invocation settings are inconsistent."""


class TransportError(QuickLensError):
    """Raised (or delivered) when the LLM backend fails to produce text."""

    def __init__(self, message: str, status_code=None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class CapabilityUnavailable(QuickLensError):
    """Raised when the floating overlay surface cannot be used."""
