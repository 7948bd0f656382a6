from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

DEFAULT_MAX_TOKENS = 500


@dataclass(frozen=True)
class LLMCompletion:
	"""Outcome of a chat-completion call.

	Attributes:
		text: Trimmed assistant text ("" when the call failed or was skipped).
		error: Short machine-readable failure reason, None on success.
	"""

	text: str
	error: str | None = None

	@property
	def ok(self) -> bool:
		return self.error is None

	@classmethod
	def failure(cls, reason: str) -> "LLMCompletion":
		return cls(text="", error=reason)


class AbstractLLMClient(ABC):
	"""Interface for clients that turn a single prompt into plain text."""

	@abstractmethod
	def is_configured(self) -> bool:
		"""Return True when the provider key, endpoint and model are all set."""
		...

	@abstractmethod
	async def complete(
		self,
		prompt: str,
		*,
		max_tokens: int = DEFAULT_MAX_TOKENS,
	) -> LLMCompletion:
		"""Send ``prompt`` as a single user message.

		Implementations must never raise for provider or transport failures;
		they report them through ``LLMCompletion.error`` instead.

		Args:
			prompt: Text to send, already sanitized by the caller.
			max_tokens: Upper bound on generated tokens.

		Returns:
			LLMCompletion: Generated text or a failure reason.
		"""
		...

	async def call(self, prompt: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
		"""Return the generated text, or "" on any failure."""
		completion = await self.complete(prompt, max_tokens=max_tokens)
		return completion.text

	async def aclose(self) -> None:
		"""Release network resources held by the client."""
		return None
