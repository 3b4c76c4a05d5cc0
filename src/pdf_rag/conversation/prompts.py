"""Prompt assembly for the conversation service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from pdf_rag.retrieval.models import RetrievalResult


def format_context(results: list[RetrievalResult]) -> str:
    """Chunk texts in ranked order, one per line."""
    return "\n".join(r.content for r in results)


def build_user_prompt(message: str, context: str | None = None) -> str:
    """Build the user turn sent to the model, optionally with a context block."""
    prompt = f"User question: {message}."
    if context:
        prompt += f"\n\nContext:\n{context}"
    return prompt


def build_model_input(history: list[BaseMessage], message: str, context: str | None = None) -> list[BaseMessage]:
    """Replay *history* verbatim and append the new prompt."""
    return [*history, HumanMessage(content=build_user_prompt(message, context))]
