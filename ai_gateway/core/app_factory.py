"""Application factory for the FastAPI app.

This is the composition root: it owns the shared rate limiter and the LLM
client, and hands them to request handlers through ``app.state``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from ai_gateway.adapters.rate_limit.base import AbstractRateLimiter
from ai_gateway.api.routes import ai_router, health_router
from ai_gateway.core.config import settings
from ai_gateway.core.exception_handlers import setup_exception_handlers
from ai_gateway.core.llm import close_llm_clients
from ai_gateway.core.logging import configure_logging
from ai_gateway.core.middleware import request_id_middleware
from ai_gateway.core.rate_limit import build_rate_limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_llm_clients(app.state)


def create_app(rate_limiter: AbstractRateLimiter | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to share between handlers; built from settings
            when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="AI Admission Gateway",
        description=(
            "Admission control, prompt sanitization and an OpenAI-compatible "
            "LLM client in front of the site's AI writing helpers."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    if rate_limiter is None:
        rate_limiter = build_rate_limiter(settings.app)
    app.state.rate_limiter = rate_limiter
    app.state.llm_client = None
    app.state.llm_config = None
    app.state.llm_close_tasks = set()

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(ai_router, prefix="/v1")
    app.include_router(health_router)

    logger.info(
        "app.created",
        extra={
            "app_env": settings.app_env,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
            "rate_limit_requests": settings.app.rate_limit_requests,
            "rate_limit_window_ms": settings.app.rate_limit_window_ms,
        },
    )
    return app
