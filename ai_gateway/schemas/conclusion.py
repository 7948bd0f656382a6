"""Pydantic schemas for the conclusion drafting endpoint."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ai_gateway.schemas.common import OptionalPaperContext, is_blank


class PaperSections(BaseModel):
    """Sections the student already finished in the final draft layer."""

    model_config = ConfigDict(populate_by_name=True)

    background_facts: str | None = Field(default=None, alias="backgroundFacts")
    position_statement: str | None = Field(default=None, alias="positionStatement")
    solution_proposal: str | None = Field(default=None, alias="solutionProposal")


class DraftConclusionRequest(BaseModel):
    """Request body for ``POST /v1/ai/draft-conclusion``."""

    sections: PaperSections
    context: OptionalPaperContext | None = None

    @model_validator(mode="before")
    @classmethod
    def check_sections_present(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        sections = data.get("sections")
        if isinstance(sections, BaseModel):
            sections = sections.model_dump(by_alias=True)
        if not isinstance(sections, dict):
            raise ValueError("No sections provided")
        fields = ("backgroundFacts", "positionStatement", "solutionProposal")
        if all(is_blank(sections.get(name)) for name in fields):
            raise ValueError("Need at least one completed section to draft conclusion")
        return data


class DraftConclusionResponse(BaseModel):
    """Two or three sentence conclusion in the student's voice."""

    failure_message: ClassVar[str] = "Conclusion drafting failed"

    draft: str = ""
    error: str | None = None
