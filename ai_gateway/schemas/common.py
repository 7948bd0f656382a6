"""Shapes shared by several AI endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


def is_blank(value: Any) -> bool:
    """Return True unless ``value`` is a string with non-whitespace content."""
    return not isinstance(value, str) or not value.strip()


class BookmarkInput(BaseModel):
    """A passage the student bookmarked from a background guide.

    Older clients send the passage as ``text``; newer ones as ``content``.
    """

    id: str | None = None
    content: str | None = None
    text: str | None = None
    category: str | None = None

    @property
    def body(self) -> str:
        return self.content or self.text or ""


class OptionalPaperContext(BaseModel):
    """Paper context where every field may be missing."""

    country: str | None = Field(default=None, description="Delegation the student represents.")
    committee: str | None = Field(default=None, description="Committee name.")
    topic: str | None = Field(default=None, description="Committee topic.")
