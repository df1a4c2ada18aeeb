"""Prompt preview schemas."""

from pydantic import BaseModel, Field


class PromptPreviewRequest(BaseModel):
    keyword: str = Field(..., min_length=1, max_length=255)
    locale: str = "en"
    category: str | None = None
    target_word_count: int = Field(default=1800, ge=300, le=10000)
    include_learning: bool = True
    include_factual_context: bool = True


class PromptMetadataResponse(BaseModel):
    version: str
    locale: str
    category: str
    content_type: str
    search_intent: str
    target_word_count: int
    factual_context_included: bool
    learning_included: bool


class PromptPreviewResponse(BaseModel):
    system_prompt: str
    user_prompt: str
    metadata: PromptMetadataResponse
