#!/usr/bin/env python3
"""
Conversation sessions created by escalating a quick lookup

Sessions live in memory only. Each escalation gets a fresh, uniquely named
session; the GUI layer decides how to show it.
"""

import logging
import threading
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Dict, List, Optional

BASE_NAME = "*quicklens*"


class ChatSession:
    """Represents a conversation seeded from a quick lookup"""

    def __init__(self, name, backend=None, model=None):
        self.session_id = str(uuid.uuid4())[:8]
        self.name = name
        self.backend = backend
        self.model = model
        self.created_at = datetime.now().isoformat()
        self.updated_at = self.created_at
        self.messages = []

    def add_message(self, role, content):
        """Add a message to the session"""
        self.messages.append({
            "role": role,
            "content": content,
            "timestamp": datetime.now().isoformat()
        })
        self.updated_at = datetime.now().isoformat()

    def get_conversation_for_api(self):
        """Convert session messages to API format"""
        return [{"role": msg["role"], "content": msg["content"]} for msg in self.messages]

    def to_dict(self):
        return {
            "session_id": self.session_id,
            "name": self.name,
            "backend": self.backend,
            "model": self.model,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "messages": self.messages,
        }


class ConversationManager:
    """
    Conversation collaborator for escalation.

    open_conversation() creates the session and hands it to the opener
    (the conversation window) which takes over from there.
    """

    def __init__(self, opener: Optional[Callable[[ChatSession, bool], None]] = None):
        self.opener = opener
        self.sessions: "OrderedDict[str, ChatSession]" = OrderedDict()
        self.lock = threading.Lock()

    def unique_name(self, base: str = BASE_NAME) -> str:
        """First free name in the series base, base<2>, base<3>, ..."""
        with self.lock:
            if base not in self.sessions:
                return base
            n = 2
            while f"{base}<{n}>" in self.sessions:
                n += 1
            return f"{base}<{n}>"

    def open_conversation(
        self,
        name: str,
        seed_messages: List[Dict],
        auto_send: bool = False,
        backend: Optional[str] = None,
        model: Optional[str] = None
    ) -> ChatSession:
        """
        Create a conversation pre-seeded with messages.

        Args:
            name: Unique conversation name
            seed_messages: Messages with 'role' and 'content'
            auto_send: Whether the opener should immediately send the seed
            backend, model: Where follow-ups go, None for the defaults
        """
        session = ChatSession(name, backend, model)
        for msg in seed_messages:
            session.add_message(msg["role"], msg["content"])

        with self.lock:
            self.sessions[name] = session

        logging.debug(f'Opened conversation {name} with {len(seed_messages)} message(s)')
        if self.opener:
            self.opener(session, auto_send)
        return session

    def get(self, name: str) -> Optional[ChatSession]:
        with self.lock:
            return self.sessions.get(name)

    def close(self, name: str):
        with self.lock:
            self.sessions.pop(name, None)

    def list_sessions(self) -> List[Dict]:
        with self.lock:
            return [
                {
                    "name": s.name,
                    "session_id": s.session_id,
                    "messages": len(s.messages),
                    "updated_at": s.updated_at,
                }
                for s in self.sessions.values()
            ]
