#!/usr/bin/env python3
"""
Ambient cross-document context

Items added here are attached to lookups as system-level context blocks when
use_context is enabled. They are never mixed into the looked-up text.
"""

import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterable, List, Optional


class ContextStore:
    """Ordered, named collection of context items (files or literal text)."""

    def __init__(self, files: Optional[Iterable[str]] = None):
        # name -> (kind, value); kind is "file" or "text"
        self._items: "OrderedDict[str, tuple]" = OrderedDict()
        self._lock = threading.Lock()
        for path in files or []:
            self.add_file(path)

    def add_file(self, path: str) -> str:
        """Track a file. Its contents are read each time blocks() is built."""
        resolved = str(Path(path).expanduser())
        with self._lock:
            self._items[resolved] = ("file", resolved)
        logging.debug(f'Context file added: {resolved}')
        return resolved

    def add_text(self, name: str, text: str) -> str:
        with self._lock:
            self._items[name] = ("text", text)
        logging.debug(f'Context text added: {name} ({len(text)} chars)')
        return name

    def remove(self, name: str) -> bool:
        with self._lock:
            return self._items.pop(name, None) is not None

    def clear(self):
        with self._lock:
            self._items.clear()

    def names(self) -> List[str]:
        with self._lock:
            return list(self._items.keys())

    def __len__(self):
        with self._lock:
            return len(self._items)

    def _read(self, kind: str, value: str) -> Optional[str]:
        if kind == "text":
            return value
        try:
            return Path(value).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logging.warning(f'Skipping context file {value}: {e}')
            return None

    def blocks(self) -> List[str]:
        """Render every readable item as a fenced block headed by its name."""
        with self._lock:
            items = list(self._items.items())

        blocks = []
        for name, (kind, value) in items:
            content = self._read(kind, value)
            if content is None:
                continue
            blocks.append(f"In {name}:\n\n```\n{content.rstrip()}\n```")
        return blocks

    def to_dict(self) -> Dict[str, str]:
        with self._lock:
            return {name: kind for name, (kind, _) in self._items.items()}
