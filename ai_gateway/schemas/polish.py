"""Pydantic schemas for the text polishing endpoint."""

from __future__ import annotations

from typing import Any, ClassVar, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ai_gateway.schemas.common import is_blank

TransformType = Literal[
    "bullets-to-paragraph",
    "expand-sentence",
    "formalize",
    "combine-solutions",
]

TargetLayer = Literal["ideaFormation", "paragraphComponents"]

VALID_TRANSFORMS: tuple[str, ...] = get_args(TransformType)


class PaperContext(BaseModel):
    """Which paper the text belongs to."""

    country: str = Field(..., description="Delegation the student represents.")
    committee: str = Field(..., description="Committee name.")
    topic: str = Field(..., description="Committee topic.")


class PriorContext(BaseModel):
    """Earlier answers from the writer, used as reference data in the prompt."""

    model_config = ConfigDict(populate_by_name=True)

    why_important: str | None = Field(default=None, alias="whyImportant")
    key_events: str | None = Field(default=None, alias="keyEvents")
    country_position: str | None = Field(default=None, alias="countryPosition")
    past_actions: str | None = Field(default=None, alias="pastActions")
    proposed_solutions: str | None = Field(default=None, alias="proposedSolutions")


class PolishTextRequest(BaseModel):
    """Request body for ``POST /v1/ai/polish-text``."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., description="Auto-filled text to polish.")
    context: PaperContext
    transform_type: TransformType = Field(..., alias="transformType")
    prior_context: PriorContext | None = Field(default=None, alias="priorContext")
    target_layer: TargetLayer | None = Field(default=None, alias="targetLayer")

    @model_validator(mode="before")
    @classmethod
    def check_required_fields(cls, data: Any) -> Any:
        """Reject incomplete bodies with the message the writer UI shows."""
        if not isinstance(data, dict):
            return data
        if is_blank(data.get("text")):
            raise ValueError("No text provided")
        context = data.get("context")
        if isinstance(context, BaseModel):
            context = context.model_dump()
        if not isinstance(context, dict) or not all(
            context.get(name) for name in ("country", "committee", "topic")
        ):
            raise ValueError("Missing context (country, committee, or topic)")
        transform = data.get("transformType", data.get("transform_type"))
        if transform not in VALID_TRANSFORMS:
            raise ValueError("Invalid transform type")
        return data


class PolishTextResponse(BaseModel):
    """Polished text, or an empty string with a reason when it was withheld."""

    model_config = ConfigDict(populate_by_name=True)

    failure_message: ClassVar[str] = "AI processing failed"

    polished_text: str = Field("", alias="polishedText")
    error: str | None = Field(
        default=None,
        description="Set when the request failed or the text was withheld.",
    )
