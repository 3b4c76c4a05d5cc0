"""Chat-model factory for the conversation service.

:class:`~pdf_rag.conversation.service.ConversationService` only needs an
object with ``ainvoke(messages)``; this module builds the production one
from :class:`~pdf_rag.config.Settings`. Tests pass a LangChain fake instead.

``LLM_BASE_URL`` switches from the OpenAI API to any OpenAI-compatible
``/v1/chat/completions`` server (vLLM, Ollama, a gateway).
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_openai import ChatOpenAI

from pdf_rag.config import Settings, settings

logger = logging.getLogger(__name__)


def get_llm(config: Settings = settings) -> ChatOpenAI:
    """Return the chat model that answers ``/messages`` requests."""
    options: dict[str, Any] = {
        "model": config.llm_model_name,
        "temperature": config.llm_temperature,
        "max_tokens": config.llm_max_tokens,
        "api_key": config.openai_api_key,
    }
    if config.llm_base_url:
        options["base_url"] = config.llm_base_url
        # Self-hosted servers ignore the key but the client rejects an empty one.
        options["api_key"] = config.openai_api_key or "EMPTY"

    logger.info(
        "Chat model %s via %s",
        config.llm_model_name,
        config.llm_base_url or "OpenAI API",
    )
    return ChatOpenAI(**options)
