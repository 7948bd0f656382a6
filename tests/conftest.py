"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports ai_gateway settings,
so no .env file is read and the LLM client starts out configured.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")

os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("LLM_API_URL", "https://llm.example.test/v1/chat/completions")
os.environ.setdefault("LLM_MODEL", "llama-3.2-3b-instruct")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ai_gateway.adapters.llm.base import AbstractLLMClient, LLMCompletion
from ai_gateway.core.app_factory import create_app
from ai_gateway.core.llm import get_llm_client


class FakeLLMClient(AbstractLLMClient):
    """In-process stand-in for the provider that records prompts."""

    def __init__(self, reply: str = "", *, configured: bool = True) -> None:
        self.reply = reply
        self.configured = configured
        self.prompts: list[str] = []
        self.max_tokens: list[int] = []
        self.closed = False

    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, prompt: str, *, max_tokens: int = 500) -> LLMCompletion:
        self.prompts.append(prompt)
        self.max_tokens.append(max_tokens)
        if not self.reply:
            return LLMCompletion.failure("request_failed")
        return LLMCompletion(text=self.reply.strip())

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient(reply="Climate change threatens small island nations.")


@pytest.fixture
def app(fake_llm: FakeLLMClient) -> Iterator[FastAPI]:
    """Fresh app per test so each one gets an empty rate limiter."""
    application = create_app()
    application.dependency_overrides[get_llm_client] = lambda: fake_llm
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
