"""Pydantic schemas for the bookmark classification and summary endpoints."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, Field, model_validator

from ai_gateway.schemas.common import BookmarkInput, OptionalPaperContext, is_blank


class ClassifyBookmarkRequest(BaseModel):
    """Request body for ``POST /v1/ai/classify-bookmark``."""

    text: str = Field(..., description="Bookmarked passage to classify.")

    @model_validator(mode="before")
    @classmethod
    def check_text_present(cls, data: Any) -> Any:
        if isinstance(data, dict) and is_blank(data.get("text")):
            raise ValueError("No text provided")
        return data


class ClassifyBookmarkResponse(BaseModel):
    """Research category of a bookmark."""

    failure_message: ClassVar[str] = "Classification failed"

    category: str = "other"
    confidence: float = 0
    error: str | None = None


class SummarizeBookmarksRequest(BaseModel):
    """Request body for ``POST /v1/ai/summarize-bookmarks``."""

    bookmarks: list[BookmarkInput]
    context: OptionalPaperContext | None = None

    @model_validator(mode="before")
    @classmethod
    def check_bookmarks_present(cls, data: Any) -> Any:
        if isinstance(data, dict):
            bookmarks = data.get("bookmarks")
            if not isinstance(bookmarks, list) or not bookmarks:
                raise ValueError("Need at least 1 bookmark to summarize")
        return data


class SummarizeBookmarksResponse(BaseModel):
    """Casual one or two sentence summary of the selected bookmarks."""

    failure_message: ClassVar[str] = "Summarization failed"

    summary: str = ""
    error: str | None = None
