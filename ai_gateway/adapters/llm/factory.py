"""Factory for building the LLM client from environment configuration."""

from ai_gateway.adapters.llm.base import AbstractLLMClient
from ai_gateway.adapters.llm.openai_client import OpenAIChatClient
from ai_gateway.core.config import LLMSettings


def load_llm_settings() -> LLMSettings:
    """Read LLM settings from the current process environment.

    A fresh instance is built on every call so configuration is read at call
    time rather than frozen at import.
    """
    return LLMSettings()


def is_llm_configured(llm_settings: LLMSettings | None = None) -> bool:
    """Return True iff API key, endpoint URL and model are all non-empty.

    Args:
        llm_settings: Settings to inspect; read from the environment if omitted.
    """
    cfg = llm_settings or load_llm_settings()
    return bool(cfg.api_key and cfg.api_url and cfg.model)


def create_llm_client(llm_settings: LLMSettings | None = None) -> AbstractLLMClient:
    """Instantiate the OpenAI-compatible client.

    Missing configuration is not an error here: the returned client reports
    ``is_configured() == False`` and refuses to make network calls.

    Args:
        llm_settings: Settings to use; read from the environment if omitted.

    Returns:
        AbstractLLMClient: Client instance.
    """
    cfg = llm_settings or load_llm_settings()
    return OpenAIChatClient(
        api_key=cfg.api_key,
        api_url=cfg.api_url,
        model=cfg.model,
        timeout_seconds=cfg.timeout_seconds,
    )
