"""LLM client dependencies for FastAPI routes.

The client lives on ``app.state``. It is rebuilt when the LLM environment
changes, so provider configuration is effectively read per request. Both
dependencies are coroutines: they run on the event loop, one at a time, so
the check-and-swap on ``app.state`` needs no lock.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import Depends, Request

from ai_gateway.adapters.llm.base import AbstractLLMClient
from ai_gateway.adapters.llm.factory import create_llm_client, load_llm_settings
from ai_gateway.core.errors import LLMNotConfiguredAppError

logger = logging.getLogger(__name__)


async def _close_after(client: AbstractLLMClient, delay: float) -> None:
    try:
        await asyncio.sleep(delay)
    finally:
        await client.aclose()


def retire_llm_client(state: Any, client: AbstractLLMClient, grace_seconds: float) -> None:
    """Close a replaced client once calls already using it have timed out.

    Args:
        state: ``app.state`` holding the ``llm_close_tasks`` set.
        client: Client that is no longer handed out.
        grace_seconds: Delay before closing; the old request timeout.
    """
    tasks: set[asyncio.Task[None]] = state.llm_close_tasks
    task = asyncio.create_task(_close_after(client, grace_seconds))
    tasks.add(task)
    task.add_done_callback(tasks.discard)


async def close_llm_clients(state: Any) -> None:
    """Close the current client and every retired one still pending."""
    tasks: set[asyncio.Task[None]] = getattr(state, "llm_close_tasks", set())
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    client = getattr(state, "llm_client", None)
    if client is not None:
        await client.aclose()


async def get_llm_client(request: Request) -> AbstractLLMClient:
    """Return the application's LLM client, rebuilding it on config change."""

    state = request.app.state
    llm_settings = load_llm_settings()

    client: AbstractLLMClient | None = getattr(state, "llm_client", None)
    previous_config = getattr(state, "llm_config", None)
    if client is None or previous_config != llm_settings:
        replaced = client
        client = create_llm_client(llm_settings)
        state.llm_client = client
        state.llm_config = llm_settings
        logger.info(
            "llm.client_built",
            extra={"model": llm_settings.model, "configured": client.is_configured()},
        )
        if replaced is not None:
            retire_llm_client(state, replaced, previous_config.timeout_seconds)
    return client


async def require_llm_client(
    client: AbstractLLMClient = Depends(get_llm_client),
) -> AbstractLLMClient:
    """Dependency that rejects the request when the provider is not configured.

    Raises:
        LLMNotConfiguredAppError: If key, endpoint or model is missing.
    """

    if not client.is_configured():
        raise LLMNotConfiguredAppError(
            code="llm_not_configured",
            message="AI service not configured",
        )
    return client
