from __future__ import annotations

from fastapi import APIRouter

from ai_gateway.adapters.llm.factory import is_llm_configured

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    The process is healthy even without LLM configuration; ``llm_configured``
    tells operators whether AI endpoints will answer 503.

    Returns:
        dict: ``{"status": "ok", "llm_configured": bool}``.
    """

    return {"status": "ok", "llm_configured": is_llm_configured()}
