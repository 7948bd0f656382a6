"""Pydantic schemas for the idea checking endpoint."""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ai_gateway.schemas.common import BookmarkInput, is_blank

SupportLevel = Literal["well-supported", "partially-supported", "not-supported"]


class ComprehensionAnswers(BaseModel):
    """Research notes the student wrote in the comprehension layer."""

    model_config = ConfigDict(populate_by_name=True)

    key_statistics: str | None = Field(default=None, alias="keyStatistics")
    present_state: str | None = Field(default=None, alias="presentState")
    past_positions: str | None = Field(default=None, alias="pastPositions")
    country_interests: str | None = Field(default=None, alias="countryInterests")


class CheckIdeaRequest(BaseModel):
    """Request body for ``POST /v1/ai/check-idea``."""

    model_config = ConfigDict(populate_by_name=True)

    idea: str = Field(..., description="Claim the student wants to make.")
    bookmarks: list[BookmarkInput] = Field(
        default_factory=list,
        description="Bookmarked research to check the idea against.",
    )
    comprehension_answers: ComprehensionAnswers | None = Field(
        default=None,
        alias="comprehensionAnswers",
    )

    @model_validator(mode="before")
    @classmethod
    def check_idea_present(cls, data: Any) -> Any:
        if isinstance(data, dict) and is_blank(data.get("idea")):
            raise ValueError("No idea provided")
        return data


class MatchingBookmark(BaseModel):
    """A bookmark the model cited, with its one-line justification."""

    bookmark: BookmarkInput
    explanation: str


class CheckIdeaResponse(BaseModel):
    """Which bookmarks back the idea, and what is still missing."""

    model_config = ConfigDict(populate_by_name=True)

    failure_message: ClassVar[str] = "Idea checking failed"

    matching_bookmarks: list[MatchingBookmark] = Field(
        default_factory=list,
        alias="matchingBookmarks",
    )
    suggestions: str = ""
    support_level: SupportLevel | None = Field(default=None, alias="supportLevel")
    error: str | None = None
