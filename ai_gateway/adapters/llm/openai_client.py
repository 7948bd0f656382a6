"""OpenAI-compatible chat-completion client adapter."""

from __future__ import annotations

import logging

import httpx
from openai import APIStatusError, AsyncOpenAI
from openai.types.chat import ChatCompletion

from ai_gateway.adapters.llm.base import DEFAULT_MAX_TOKENS, AbstractLLMClient, LLMCompletion

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7


def _read_error_body(exc: APIStatusError) -> str:
    try:
        return exc.response.text
    except Exception:
        return "Unknown error"


class OpenAIChatClient(AbstractLLMClient):
    """Client for OpenAI-compatible providers (OpenAI, Groq, OpenRouter, ...).

    Uses the official OpenAI Python SDK with async support. Requests go to the
    configured endpoint URL exactly as given (path and query included), since
    providers and proxies do not all expose ``.../chat/completions``. Retries
    are disabled: a failed call is reported once and the caller decides what
    to do.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        api_url: str | None,
        model: str | None,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        The SDK client is only built when the configuration is complete, so an
        unconfigured instance can exist without touching the network stack.

        Args:
            api_key: Provider bearer credential.
            api_url: Full chat-completions endpoint URL.
            model: Model identifier.
            timeout_seconds: Timeout for the whole request in seconds.
            http_client: Transport override, mainly for tests.
        """
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.client: AsyncOpenAI | None = None

        if self.is_configured():
            self.client = AsyncOpenAI(
                api_key=api_key,
                base_url=api_url,
                timeout=timeout_seconds,
                max_retries=0,
                http_client=http_client,
            )

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_url and self.model)

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> LLMCompletion:
        """Run one chat completion and return the trimmed assistant text.

        Args:
            prompt: User message content.
            max_tokens: Upper bound on generated tokens.

        Returns:
            LLMCompletion: Text on success; empty text plus a reason on failure.
        """
        if self.client is None or not self.is_configured():
            logger.error(
                "llm.not_configured",
                extra={"hint": "set LLM_API_KEY, LLM_API_URL and LLM_MODEL"},
            )
            return LLMCompletion.failure("not_configured")

        # CancelledError is a BaseException and propagates, aborting the request.
        try:
            # An absolute URL is used verbatim by the SDK instead of being
            # joined to base_url.
            response = await self.client.post(
                self.api_url,
                cast_to=ChatCompletion,
                body={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "max_tokens": max_tokens,
                    "temperature": TEMPERATURE,
                },
            )
            choices = getattr(response, "choices", None) or []
            message = getattr(choices[0], "message", None) if choices else None
            content = getattr(message, "content", None)
        except APIStatusError as exc:
            logger.error(
                "llm.api_error",
                extra={
                    "status_code": exc.status_code,
                    "error_body": _read_error_body(exc),
                    "model": self.model,
                },
            )
            return LLMCompletion.failure(f"http_{exc.status_code}")
        except Exception as exc:
            logger.error(
                "llm.request_failed",
                extra={
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                    "model": self.model,
                },
            )
            return LLMCompletion.failure("request_failed")

        if not isinstance(content, str):
            return LLMCompletion(text="")
        return LLMCompletion(text=content.strip())

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()
