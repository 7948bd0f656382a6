"""LLM adapter layer - a single OpenAI-compatible chat-completion contract."""

from ai_gateway.adapters.llm.base import AbstractLLMClient, LLMCompletion
from ai_gateway.adapters.llm.factory import (
    create_llm_client,
    is_llm_configured,
    load_llm_settings,
)
from ai_gateway.adapters.llm.openai_client import OpenAIChatClient

__all__ = [
    "AbstractLLMClient",
    "LLMCompletion",
    "OpenAIChatClient",
    "create_llm_client",
    "is_llm_configured",
    "load_llm_settings",
]
