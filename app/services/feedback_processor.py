"""Admin feedback on individual articles, turned into learning data."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.best_effort import run_best_effort
from app.core.exceptions import FeedbackValidationError
from app.repositories.contracts import (
    ContentItemRepository,
    FeedbackLogRepository,
    LearningDataRepository,
)
from app.repositories.records import (
    ContentItem,
    FeedbackLogEntry,
    FeedbackType,
    LearningDataRecord,
    LearningSource,
)
from app.services.content_analysis import analyze_content, extract_excerpt

logger = logging.getLogger(__name__)

EDIT_SCORE = 80
POSITIVE_SCORE = 75

NOT_FOUND_MESSAGE = "Content item not found"
NEGATIVE_MESSAGE = "Negative feedback recorded (no learning data created)"
CREATED_MESSAGE = "Feedback processed and learning data created"


@dataclass(slots=True)
class FeedbackRequest:
    content_item_id: str | None
    feedback_type: str | None
    admin_id: str
    edited_content: str | None = None
    notes: str | None = None


@dataclass(slots=True)
class FeedbackResult:
    success: bool
    feedback_type: FeedbackType | None = None
    learning_data_id: str | None = None
    error: str | None = None
    error_field: str | None = None
    not_found: bool = False

    @property
    def is_validation_error(self) -> bool:
        return self.error_field is not None

    @property
    def message(self) -> str:
        if not self.success:
            return self.error or "Failed to process feedback"
        if self.feedback_type is FeedbackType.NEGATIVE:
            return NEGATIVE_MESSAGE
        return CREATED_MESSAGE


def validate_feedback(request: FeedbackRequest) -> FeedbackType:
    """Check required fields and return the parsed feedback type."""
    if not (request.content_item_id or "").strip():
        raise FeedbackValidationError("content_item_id", "content_item_id is required")

    try:
        feedback_type = FeedbackType(request.feedback_type)
    except ValueError:
        raise FeedbackValidationError(
            "feedback_type",
            "Invalid feedback_type. Must be positive, negative, or edit",
        ) from None

    if feedback_type is FeedbackType.EDIT and not (request.edited_content or "").strip():
        raise FeedbackValidationError(
            "edited_content",
            "edited_content is required when feedback_type is edit",
        )
    return feedback_type


class ManualFeedbackProcessor:
    """Validates admin feedback and stores positive/edit signals as learning data.

    Negative feedback is audited but never becomes learning data.
    """

    def __init__(
        self,
        *,
        content_items: ContentItemRepository,
        learning_data: LearningDataRepository,
        feedback_logs: FeedbackLogRepository | None = None,
    ) -> None:
        self.content_items = content_items
        self.learning_data = learning_data
        self.feedback_logs = feedback_logs

    async def process_feedback(self, request: FeedbackRequest) -> FeedbackResult:
        try:
            feedback_type = validate_feedback(request)
        except FeedbackValidationError as e:
            return FeedbackResult(success=False, error=e.message, error_field=e.field)

        content_item_id = (request.content_item_id or "").strip()
        try:
            item = await self.content_items.get(content_item_id)
            if item is None:
                return FeedbackResult(
                    success=False,
                    feedback_type=feedback_type,
                    error=NOT_FOUND_MESSAGE,
                    not_found=True,
                )

            learning_data_id: str | None = None
            record = self._learning_record(item, feedback_type, request)
            if record is not None:
                learning_data_id = await self.learning_data.add(record)
        except Exception as e:
            logger.warning(
                "Feedback processing failed",
                extra={"content_item_id": content_item_id, "feedback_type": feedback_type.value, "error": str(e)},
            )
            return FeedbackResult(success=False, feedback_type=feedback_type, error=str(e))

        logger.info(
            "Feedback processed",
            extra={
                "content_item_id": content_item_id,
                "feedback_type": feedback_type.value,
                "learning_data_id": learning_data_id,
                "admin_id": request.admin_id,
            },
        )
        await self._write_audit_log(
            FeedbackLogEntry(
                admin_id=request.admin_id,
                content_item_id=content_item_id,
                feedback_type=feedback_type,
                notes=request.notes,
                learning_data_id=learning_data_id,
            )
        )
        return FeedbackResult(success=True, feedback_type=feedback_type, learning_data_id=learning_data_id)

    @staticmethod
    def _learning_record(
        item: ContentItem,
        feedback_type: FeedbackType,
        request: FeedbackRequest,
    ) -> LearningDataRecord | None:
        if feedback_type is FeedbackType.NEGATIVE:
            return None

        if feedback_type is FeedbackType.EDIT:
            content = request.edited_content or ""
            source_type = LearningSource.MANUAL_EDIT
            score = EDIT_SCORE
            suffix = f" | Admin notes: {request.notes}" if request.notes else ""
        else:
            content = item.content or ""
            source_type = LearningSource.USER_FEEDBACK
            score = POSITIVE_SCORE
            suffix = " | Positive admin feedback"

        analysis = analyze_content(
            item.title or "",
            content,
            locale=item.locale,
            keyword=item.target_keyword or "",
        )
        return LearningDataRecord(
            source_type=source_type,
            content_item_id=item.id,
            locale=item.locale,
            category=item.category or "general",
            content_excerpt=extract_excerpt(content),
            title_pattern=analysis.title_pattern,
            writing_style_notes=analysis.writing_style + suffix,
            seo_patterns=analysis.seo_patterns,
            performance_score=score,
            feedback_type=feedback_type,
            created_by=request.admin_id,
        )

    async def _write_audit_log(self, entry: FeedbackLogEntry) -> None:
        if self.feedback_logs is None:
            return
        await run_best_effort(
            self.feedback_logs.add(entry),
            operation_name="admin_feedback_log",
            log_context={"content_item_id": entry.content_item_id},
        )
