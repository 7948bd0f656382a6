from fastapi import APIRouter, Depends

from ai_gateway.adapters.llm.base import AbstractLLMClient
from ai_gateway.core.llm import require_llm_client
from ai_gateway.core.rate_limit import rate_limit
from ai_gateway.schemas.bookmarks import (
    ClassifyBookmarkRequest,
    ClassifyBookmarkResponse,
    SummarizeBookmarksRequest,
    SummarizeBookmarksResponse,
)
from ai_gateway.schemas.conclusion import DraftConclusionRequest, DraftConclusionResponse
from ai_gateway.schemas.idea_check import CheckIdeaRequest, CheckIdeaResponse
from ai_gateway.schemas.polish import PolishTextRequest, PolishTextResponse
from ai_gateway.services.bookmark_classifier_service import BookmarkClassifierService
from ai_gateway.services.bookmark_summary_service import BookmarkSummaryService
from ai_gateway.services.conclusion_service import ConclusionService
from ai_gateway.services.idea_check_service import IdeaCheckService
from ai_gateway.services.polish_service import PolishService

router = APIRouter(tags=["AI"])

# Requests per client per minute; all routes draw on one window per client.
POLISH_TEXT_QUOTA = 20
CHECK_IDEA_QUOTA = 20
CLASSIFY_BOOKMARK_QUOTA = 30
DRAFT_CONCLUSION_QUOTA = 15
SUMMARIZE_BOOKMARKS_QUOTA = 20


def _admission(max_requests: int) -> list:
    # Order matters: an unconfigured service answers 503 without using quota.
    return [Depends(require_llm_client), Depends(rate_limit(max_requests=max_requests))]


@router.post(
    "/ai/polish-text",
    response_model=PolishTextResponse,
    response_model_exclude_none=True,
    dependencies=_admission(POLISH_TEXT_QUOTA),
)
async def polish_text(
    payload: PolishTextRequest,
    llm: AbstractLLMClient = Depends(require_llm_client),
) -> PolishTextResponse:
    """Polish auto-filled text for the position paper writer.

    Args:
        payload: Draft text, paper context and requested transform.
        llm: Configured LLM client.

    Returns:
        PolishTextResponse: ``polishedText`` plus ``error`` when the input or
            the model output was rejected.

    Raises:
        LLMNotConfiguredAppError: 503 when the provider is not configured.
        RateLimitAppError: 429 when the client is over quota.
        LLMAppError: 500 when the provider returned no text.
    """
    return await PolishService(llm).polish(payload)


@router.post(
    "/ai/check-idea",
    response_model=CheckIdeaResponse,
    response_model_exclude_none=True,
    dependencies=_admission(CHECK_IDEA_QUOTA),
)
async def check_idea(
    payload: CheckIdeaRequest,
    llm: AbstractLLMClient = Depends(require_llm_client),
) -> CheckIdeaResponse:
    """Check whether the student's bookmarks support an idea.

    Returns:
        CheckIdeaResponse: Cited bookmarks, gaps to consider and a support level.
    """
    return await IdeaCheckService(llm).check(payload)


@router.post(
    "/ai/classify-bookmark",
    response_model=ClassifyBookmarkResponse,
    response_model_exclude_none=True,
    dependencies=_admission(CLASSIFY_BOOKMARK_QUOTA),
)
async def classify_bookmark(
    payload: ClassifyBookmarkRequest,
    llm: AbstractLLMClient = Depends(require_llm_client),
) -> ClassifyBookmarkResponse:
    """Classify a bookmarked passage into a research category."""
    return await BookmarkClassifierService(llm).classify(payload)


@router.post(
    "/ai/draft-conclusion",
    response_model=DraftConclusionResponse,
    response_model_exclude_none=True,
    dependencies=_admission(DRAFT_CONCLUSION_QUOTA),
)
async def draft_conclusion(
    payload: DraftConclusionRequest,
    llm: AbstractLLMClient = Depends(require_llm_client),
) -> DraftConclusionResponse:
    """Draft a short conclusion from the finished paper sections."""
    return await ConclusionService(llm).draft(payload)


@router.post(
    "/ai/summarize-bookmarks",
    response_model=SummarizeBookmarksResponse,
    response_model_exclude_none=True,
    dependencies=_admission(SUMMARIZE_BOOKMARKS_QUOTA),
)
async def summarize_bookmarks(
    payload: SummarizeBookmarksRequest,
    llm: AbstractLLMClient = Depends(require_llm_client),
) -> SummarizeBookmarksResponse:
    """Summarize selected bookmarks in one or two casual sentences."""
    return await BookmarkSummaryService(llm).summarize(payload)
