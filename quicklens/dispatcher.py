#!/usr/bin/env python3
"""
Request dispatch for quick lookups

One dispatch is one independent request cycle. Nothing here cancels or
orders cycles: a slow older request that completes after a newer one is
still delivered.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import TransportError
from .query import Anchor, QueryRequest

SYSTEM_INSTRUCTION = "Explain in {word_budget} words or fewer."


@dataclass(frozen=True)
class PendingContext:
    """Correlates a deferred response with the request that produced it."""
    source_text: str
    word_budget: int
    anchor: Anchor
    backend_override: Optional[str] = None
    model_override: Optional[str] = None
    started_at: float = field(default_factory=time.time, compare=False)


class RequestDispatcher:
    """
    Issues lookups to the LLM client and routes results to a completion
    handler as handler(result, pending), where result is a str or a
    TransportError.
    """

    def __init__(self, client, on_complete: Callable, context_store=None):
        self.client = client
        self.on_complete = on_complete
        self.context_store = context_store

    def dispatch(self, query: QueryRequest, anchor: Anchor) -> PendingContext:
        """Send the request and return immediately."""
        pending = PendingContext(
            source_text=query.source_text,
            word_budget=query.word_budget,
            anchor=anchor,
            backend_override=query.backend_override,
            model_override=query.model_override,
        )

        context_blocks = None
        if query.context_enabled and self.context_store is not None:
            context_blocks = self.context_store.blocks()

        self.log_request_start(query, context_blocks)

        self.client.request(
            query.source_text,
            system_instruction=SYSTEM_INSTRUCTION.format(word_budget=query.word_budget),
            context_blocks=context_blocks,
            callback=self._handle_result,
            backend=query.backend_override,
            model=query.model_override,
            max_tokens=query.token_budget,
            context=pending,
        )
        return pending

    def _handle_result(self, result, pending: PendingContext):
        if not isinstance(result, (str, TransportError)):
            result = TransportError(str(result))
        self.log_request_complete(result, pending)
        self.on_complete(result, pending)

    @staticmethod
    def log_request_start(query: QueryRequest, context_blocks: Optional[list]):
        backend = query.backend_override or "default"
        model = query.model_override or "default"
        logging.info(
            f'[LOOKUP] {len(query.source_text)} chars | backend: {backend} | model: {model} | '
            f'words: {query.word_budget} | max tokens: {query.token_budget} | '
            f'context blocks: {len(context_blocks) if context_blocks else 0}'
        )

    @staticmethod
    def log_request_complete(result, pending: PendingContext):
        elapsed = time.time() - pending.started_at
        if isinstance(result, str):
            logging.info(f'[SUCCESS] {len(result)} chars, {pending.word_budget} words ({elapsed:.1f}s)')
        else:
            logging.error(f'[FAILED] {result} ({elapsed:.1f}s)')
