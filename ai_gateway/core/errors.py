"""Application-level exception types.

Admission denials and suspected injections are ordinary return values inside
services, not exceptions. These types cover the failures that the HTTP layer
turns into error responses; each carries the status it maps to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code (logged, not returned).
        message: Human-readable error message returned as ``error``.
        details: Extra response fields, e.g. a hint for the client.
    """

    status_code: ClassVar[int] = 400

    code: str
    message: str
    details: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when a request body is well-formed but unusable."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when the caller is over its admission quota."""

    status_code: ClassVar[int] = 429

    headers: dict[str, str] = field(default_factory=dict)


class LLMAppError(AppError):
    """Raised when the provider produced no usable text."""

    status_code: ClassVar[int] = 500


class LLMNotConfiguredAppError(LLMAppError):
    """Raised when the provider key, endpoint or model is missing."""

    status_code: ClassVar[int] = 503
