"""
Conversation — per-session chat history and retrieval-augmented answers.

Public API
----------
- :class:`ConversationService` — answers one user message for one session.
- :class:`SessionHistory` / :class:`SessionStore` — turn storage.
- :class:`Turn` — a single ``(role, text)`` entry.
"""

from pdf_rag.conversation.history import SessionHistory, SessionStore, Turn
from pdf_rag.conversation.service import ConversationService

__all__ = [
    "ConversationService",
    "SessionHistory",
    "SessionStore",
    "Turn",
]
