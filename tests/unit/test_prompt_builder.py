"""Unit tests for prompt assembly and keyword analysis."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.repositories.records import LearningDataRecord, LearningSource
from app.services.learning_extractor import LearningContext, LearningDataExtractor
from app.services.prompt_builder import (
    DEFAULT_SEARCH_INTENT,
    PROMPT_VERSION,
    ContentType,
    PromptAssembler,
    PromptRequest,
    analyze_content_type,
    analyze_search_intent,
    build_simple_prompt,
)

LEARNING_XML = "<learning_data>\n  <high_performer index=\"1\"></high_performer>\n</learning_data>"


def _learning(context: LearningContext | None = None, error: Exception | None = None) -> SimpleNamespace:
    mock = AsyncMock(return_value=context or LearningContext(), side_effect=error)
    return SimpleNamespace(build_learning_context=mock)


def _factual(text: str = "", error: Exception | None = None) -> SimpleNamespace:
    return SimpleNamespace(build_context=AsyncMock(return_value=text, side_effect=error))


@pytest.mark.parametrize(
    ("keyword", "expected"),
    [
        ("rhinoplasty cost korea", ContentType.PRICING),
        ("best dermatology clinic seoul", ContentType.COMPARISON),
        ("how to book a dental clinic", ContentType.PROCEDURAL),
        ("complete korea medical tourism", ContentType.GUIDE),
        ("dental implant faq", ContentType.FAQ),
        ("korean skin care", ContentType.INFORMATIONAL),
    ],
)
def test_analyze_content_type_first_match_wins(keyword: str, expected: ContentType) -> None:
    assert analyze_content_type(keyword) is expected


def test_analyze_search_intent() -> None:
    assert analyze_search_intent("rhinoplasty cost").startswith("Transactional - User wants pricing")
    assert analyze_search_intent("top clinics").startswith("Commercial Investigation")
    assert analyze_search_intent("book appointment").startswith("Transactional - User ready")
    assert analyze_search_intent("skin care") == DEFAULT_SEARCH_INTENT


@pytest.mark.asyncio
async def test_reference_blocks_precede_instructions_in_fixed_order() -> None:
    assembler = PromptAssembler(
        learning_extractor=_learning(LearningContext(learning_context=LEARNING_XML)),
        factual_context=_factual("Hospital A: JCI accredited"),
    )

    prompt = await assembler.assemble_prompt_context(
        PromptRequest(keyword="rhinoplasty cost korea", locale="ja", category="plastic-surgery")
    )

    text = prompt.user_prompt
    positions = [
        text.index('<document source="factual-context">'),
        text.index('<document source="learning-context">'),
        text.index('<document source="category-knowledge">'),
        text.index('<document source="locale-guidelines">'),
        text.index("</reference_documents>"),
        text.index('## TARGET KEYWORD: "rhinoplasty cost korea"'),
        text.index("## CONTENT SPECIFICATIONS"),
        text.index("## GENERATION INSTRUCTIONS"),
    ]
    assert positions == sorted(positions)
    assert text.startswith("<reference_documents>")
    assert "### Pricing Content Requirements" in text
    assert "LINE as the primary contact method" in text
    assert prompt.metadata.factual_context_included is True
    assert prompt.metadata.learning_included is True
    assert prompt.metadata.content_type is ContentType.PRICING
    assert prompt.metadata.version == PROMPT_VERSION
    assert "<reference_documents>" in prompt.system_prompt


@pytest.mark.asyncio
async def test_empty_learning_context_is_omitted() -> None:
    learning = _learning(LearningContext())
    assembler = PromptAssembler(learning_extractor=learning)

    prompt = await assembler.assemble_prompt_context(PromptRequest(keyword="korean skin care", locale="en"))

    assert 'source="learning-context"' not in prompt.user_prompt
    assert 'source="factual-context"' not in prompt.user_prompt
    assert prompt.metadata.learning_included is False
    learning.build_learning_context.assert_awaited_once_with("korean skin care", "en", None)


@pytest.mark.asyncio
async def test_collaborator_failures_drop_their_blocks_only() -> None:
    assembler = PromptAssembler(
        learning_extractor=_learning(error=RuntimeError("db down")),
        factual_context=_factual(error=TimeoutError("slow")),
    )

    prompt = await assembler.assemble_prompt_context(
        PromptRequest(keyword="dental implant faq", locale="ko", category="dental")
    )

    assert 'source="learning-context"' not in prompt.user_prompt
    assert 'source="factual-context"' not in prompt.user_prompt
    assert 'source="category-knowledge"' in prompt.user_prompt
    assert prompt.metadata.factual_context_included is False
    assert prompt.metadata.learning_included is False


@pytest.mark.asyncio
async def test_disabled_collaborators_are_not_called() -> None:
    learning = _learning(LearningContext(learning_context=LEARNING_XML))
    factual = _factual("facts")
    assembler = PromptAssembler(learning_extractor=learning, factual_context=factual)

    prompt = await assembler.assemble_prompt_context(
        PromptRequest(
            keyword="korean skin care",
            locale="en",
            include_learning=False,
            include_factual_context=False,
        )
    )

    learning.build_learning_context.assert_not_awaited()
    factual.build_context.assert_not_awaited()
    assert prompt.metadata.learning_included is False


@pytest.mark.asyncio
async def test_unknown_locale_and_category_fall_back() -> None:
    prompt = await PromptAssembler().assemble_prompt_context(
        PromptRequest(keyword="korean skin care", locale="xx", category="orthopedics", target_word_count=2200)
    )

    assert prompt.metadata.locale == "en"
    assert prompt.metadata.category == "general"
    assert "2200+ words" in prompt.user_prompt
    assert prompt.metadata.as_dict()["content_type"] == "informational"


def test_simple_prompt_uses_locale_currency_and_messenger() -> None:
    system, user = build_simple_prompt("rhinoplasty cost", "ko", "plastic-surgery")

    assert "Price ranges in KRW" in user
    assert "CTA using KakaoTalk" in user
    assert "1500+ words" in user
    assert "<reference_documents>" not in user
    assert system.startswith("You are GetCareKorea")


def _eye_record(item_id: str, category: str, score: int) -> LearningDataRecord:
    return LearningDataRecord(
        source_type=LearningSource.HIGH_PERFORMER,
        content_item_id=item_id,
        locale="en",
        category=category,
        content_excerpt=f"Excerpt for {item_id}",
        performance_score=score,
    )


@pytest.mark.asyncio
async def test_learning_lookup_uses_article_category_outside_registry(
    content_items, performance_records, learning_data
) -> None:
    learning_data.records.extend(
        [
            _eye_record("eye-1", "ophthalmology", 60),
            _eye_record("eye-2", "ophthalmology", 55),
            _eye_record("eye-3", "ophthalmology", 50),
            _eye_record("dental-1", "dental", 99),
        ]
    )
    extractor = LearningDataExtractor(
        content_items=content_items,
        performance_records=performance_records,
        learning_data=learning_data,
    )

    prompt = await PromptAssembler(learning_extractor=extractor).assemble_prompt_context(
        PromptRequest(keyword="lasik surgery korea", locale="en", category="ophthalmology")
    )

    assert prompt.metadata.learning_included is True
    assert prompt.metadata.category == "general"
    assert "Excerpt for eye-3" in prompt.user_prompt
    assert "<category>dental</category>" not in prompt.user_prompt
