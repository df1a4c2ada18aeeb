"""Prompt preview endpoint."""

from fastapi import APIRouter

from app.dependencies import AdminUser, Assembler
from app.schemas.prompts import PromptMetadataResponse, PromptPreviewRequest, PromptPreviewResponse
from app.services.prompt_builder import PromptRequest

router = APIRouter()


@router.post("/preview", response_model=PromptPreviewResponse)
async def preview_prompt(
    payload: PromptPreviewRequest,
    _admin: AdminUser,
    assembler: Assembler,
) -> PromptPreviewResponse:
    """Assemble the prompt a generation request would send, without generating."""
    prompt = await assembler.assemble_prompt_context(
        PromptRequest(
            keyword=payload.keyword,
            locale=payload.locale,
            category=payload.category,
            target_word_count=payload.target_word_count,
            include_learning=payload.include_learning,
            include_factual_context=payload.include_factual_context,
        )
    )
    return PromptPreviewResponse(
        system_prompt=prompt.system_prompt,
        user_prompt=prompt.user_prompt,
        metadata=PromptMetadataResponse(**prompt.metadata.as_dict()),
    )
