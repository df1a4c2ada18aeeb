"""Learning feedback and context schemas."""

from pydantic import BaseModel, Field


class FeedbackSubmit(BaseModel):
    """Admin feedback on one article.

    Fields are optional here so that missing values are reported as
    field-specific 400 errors by the feedback processor.
    """

    content_item_id: str | None = None
    feedback_type: str | None = None
    edited_content: str | None = None
    notes: str | None = Field(default=None, max_length=2000)


class FeedbackData(BaseModel):
    learning_data_id: str | None
    feedback_type: str


class FeedbackResponse(BaseModel):
    success: bool = True
    data: FeedbackData
    message: str


class LearningContextResponse(BaseModel):
    learning_context: str
    patterns: list[str]
    recommendations: list[str]


class LearningStatusResponse(BaseModel):
    last_run: str | None
    total_processed: int
    total_high_performers: int
