"""Conversation service — retrieval-augmented answers over a session history."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pdf_rag.conversation.prompts import build_model_input, format_context
from pdf_rag.errors import ModelInvocationError

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from pdf_rag.conversation.history import SessionHistory
    from pdf_rag.retrieval.retriever import SemanticRetriever

logger = logging.getLogger(__name__)


def _content_text(content: object) -> str:
    """Flatten a message ``content`` (str or list of parts) to plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return ""


class ConversationService:
    """Answers user messages, optionally grounding them in retrieved chunks.

    Parameters
    ----------
    llm:
        Chat model invoked with the full history plus the new prompt.
    retriever:
        Retriever used when a request asks for retrieval. ``None`` disables
        retrieval entirely.
    """

    def __init__(self, llm: BaseChatModel, retriever: SemanticRetriever | None = None) -> None:
        self._llm = llm
        self._retriever = retriever

    async def handle(self, history: SessionHistory, user_message: str, use_retrieval: bool = False) -> str:
        """Run one exchange and return the assistant's text.

        History is only updated after the model produced a non-empty answer,
        so a failed exchange can be retried without leaving stale turns.

        Raises
        ------
        ModelInvocationError
            When the model call fails or returns empty content.
        """
        context = await self._retrieve_context(user_message) if use_retrieval else None

        async with history.lock:
            messages = build_model_input(history.to_messages(), user_message, context)
            try:
                response = await self._llm.ainvoke(messages)
            except Exception as exc:
                logger.exception("Model invocation failed")
                raise ModelInvocationError("Model invocation failed.") from exc

            text = _content_text(getattr(response, "content", None))
            if not text.strip():
                raise ModelInvocationError("Model returned an empty response.")

            history.append_exchange(user_message, text)
        return text

    async def _retrieve_context(self, message: str) -> str | None:
        if self._retriever is None:
            logger.warning("Retrieval requested but no retriever is configured")
            return None
        try:
            results = await self._retriever.search(message)
        except Exception:
            logger.error("Retrieval of context failed", exc_info=True)
            return None
        if not results:
            logger.info("Retrieval returned no context for the message")
            return None
        logger.debug("Retrieved context: %s", [r.citation.short_ref() for r in results])
        return format_context(results)
