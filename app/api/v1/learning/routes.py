"""Learning API endpoints: admin feedback, learning context and pipeline status."""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from app.api.v1.learning.constants import FEEDBACK_FAILED_DETAIL
from app.dependencies import AdminUser, Extractor, FeedbackProcessor
from app.schemas.learning import (
    FeedbackData,
    FeedbackResponse,
    FeedbackSubmit,
    LearningContextResponse,
    LearningStatusResponse,
)
from app.services.feedback_processor import FeedbackRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/feedback", response_model=FeedbackResponse)
async def submit_feedback(
    payload: FeedbackSubmit,
    admin: AdminUser,
    processor: FeedbackProcessor,
) -> FeedbackResponse:
    """Submit positive, negative or edit feedback for an article."""
    result = await processor.process_feedback(
        FeedbackRequest(
            content_item_id=payload.content_item_id,
            feedback_type=payload.feedback_type,
            admin_id=admin.user_id,
            edited_content=payload.edited_content,
            notes=payload.notes,
        )
    )

    if result.is_validation_error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    if result.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    if not result.success or result.feedback_type is None:
        logger.warning("Feedback submission failed", extra={"admin_id": admin.user_id, "error": result.error})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error or FEEDBACK_FAILED_DETAIL,
        )

    return FeedbackResponse(
        data=FeedbackData(
            learning_data_id=result.learning_data_id,
            feedback_type=result.feedback_type.value,
        ),
        message=result.message,
    )


@router.get("/context", response_model=LearningContextResponse)
async def get_learning_context(
    _admin: AdminUser,
    extractor: Extractor,
    keyword: str = Query(..., min_length=1),
    locale: str = Query("en"),
    category: str | None = Query(None),
) -> LearningContextResponse:
    """Preview the learning context a generation request would receive."""
    context = await extractor.build_learning_context(keyword, locale, category)
    return LearningContextResponse(
        learning_context=context.learning_context,
        patterns=context.patterns,
        recommendations=context.recommendations,
    )


@router.get("/status", response_model=LearningStatusResponse)
async def get_learning_status(_admin: AdminUser, extractor: Extractor) -> LearningStatusResponse:
    """Last learning run and processed/high-performer counts."""
    pipeline_status = await extractor.pipeline_status()
    return LearningStatusResponse(
        last_run=pipeline_status.last_run,
        total_processed=pipeline_status.total_processed,
        total_high_performers=pipeline_status.total_high_performers,
    )
