#!/usr/bin/env python3
"""
Query building: source text resolution, response budgets and anchors
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .config import Settings
from .errors import ConfigurationError


@dataclass(frozen=True)
class QueryRequest:
    """A single lookup request. Immutable once dispatched."""
    source_text: str
    word_budget: int
    token_budget: int
    context_enabled: bool = False
    backend_override: Optional[str] = None
    model_override: Optional[str] = None


@dataclass(frozen=True)
class AnchorPosition:
    """Point near which the popup appears, relative to the host surface."""
    x: int
    y: int


class _Centered:
    """Placement marker for popups centered on the host surface."""

    def __repr__(self):
        return "CENTERED"


CENTERED = _Centered()

Anchor = Union[AnchorPosition, _Centered]


def make_anchor(coords: Optional[Tuple[int, int]]) -> Anchor:
    """Build an anchor from raw coordinates; missing or origin means centered."""
    if coords is None:
        return CENTERED
    x, y = coords
    if x is None or y is None or (int(x), int(y)) == (0, 0):
        return CENTERED
    return AnchorPosition(int(x), int(y))


def compute_token_budget(source_text: str, word_budget: int) -> int:
    """
    Tokens allowed for the response.

    The square root term covers echo and overhead from the input, the linear
    term allows about 2.5 tokens per requested word.
    """
    return math.floor(math.sqrt(len(source_text)) + word_budget * 2.5)


def validate_overrides(backend: Optional[str], model: Optional[str]):
    """Backend and model overrides must be set together or not at all."""
    if bool(backend) != bool(model):
        missing = "model_override" if backend else "backend_override"
        raise ConfigurationError(
            f"backend_override and model_override must be set together ({missing} is missing)"
        )


class QueryBuilder:
    """Builds QueryRequests from explicit text or from editor state."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def resolve_source_text(self, editor_state) -> str:
        """
        Pick the text to look up. First match wins:
        active selection, document viewer selection, token at cursor.
        """
        for source in ("selection", "viewer_selection", "thing_at_point"):
            text = getattr(editor_state, source)()
            if text and text.strip():
                logging.debug(f'Source text from {source}: "{text[:50]}"')
                return text
        return ""

    def capture_anchor(self, editor_state) -> Anchor:
        return make_anchor(editor_state.anchor())

    def build(
        self,
        source_text: Optional[str] = None,
        word_count: Optional[int] = None,
        editor_state=None
    ) -> QueryRequest:
        """
        Build a request.

        Args:
            source_text: Explicit text; skips editor state resolution
            word_count: Overrides the configured word budget
            editor_state: EditorState used when no explicit text is given

        Raises:
            ConfigurationError: if only one of backend/model override is set
        """
        settings = self.settings
        validate_overrides(settings.backend_override, settings.model_override)

        if source_text is None:
            source_text = self.resolve_source_text(editor_state) if editor_state else ""

        word_budget = settings.word_count if word_count is None else int(word_count)

        return QueryRequest(
            source_text=source_text,
            word_budget=word_budget,
            token_budget=compute_token_budget(source_text, word_budget),
            context_enabled=settings.use_context,
            backend_override=settings.backend_override,
            model_override=settings.model_override,
        )
