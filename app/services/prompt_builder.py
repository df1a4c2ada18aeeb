"""Assemble generation prompts from reference material and task instructions.

Reference material (factual context, learning context, category knowledge,
locale guidelines) is placed first, each block tagged with its source, and
the task instructions follow. Failures in the learning or factual
collaborators drop that block instead of failing the prompt.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Protocol

from app.services.learning_extractor import LearningDataExtractor
from app.services.locale_guidelines import (
    ContentCategory,
    Locale,
    get_locale_guideline,
    render_category_knowledge,
    render_locale_guidelines,
)

logger = logging.getLogger(__name__)

PROMPT_VERSION = "3.1"
DEFAULT_TARGET_WORD_COUNT = 1800
SIMPLE_TARGET_WORD_COUNT = 1500


class ContentType(str, Enum):
    INFORMATIONAL = "informational"
    PROCEDURAL = "procedural"
    COMPARISON = "comparison"
    PRICING = "pricing"
    GUIDE = "guide"
    FAQ = "faq"


class ReferenceSource(str, Enum):
    FACTUAL_CONTEXT = "factual-context"
    LEARNING_CONTEXT = "learning-context"
    CATEGORY_KNOWLEDGE = "category-knowledge"
    LOCALE_GUIDELINES = "locale-guidelines"


class FactualContextProvider(Protocol):
    """Supplies verified facts (hospitals, procedures, prices) for a keyword."""

    async def build_context(self, keyword: str, locale: str) -> str:
        """Return a text block, or an empty string when nothing is relevant."""


# First match wins; order matters.
_CONTENT_TYPE_RULES: tuple[tuple[ContentType, re.Pattern[str]], ...] = (
    (
        ContentType.PRICING,
        re.compile(r"cost|price|how much|가격|비용|費用|价格|ราคา|стоимость", re.IGNORECASE),
    ),
    (
        ContentType.COMPARISON,
        re.compile(r"vs|versus|comparison|compare|best|top|비교|對比|对比|เปรียบเทียบ|сравнение", re.IGNORECASE),
    ),
    (
        ContentType.PROCEDURAL,
        re.compile(r"how to|steps|process|guide|방법|過程|过程|วิธี|как", re.IGNORECASE),
    ),
    (
        ContentType.GUIDE,
        re.compile(r"guide|complete|ultimate|everything|가이드|指南|คู่มือ|руководство", re.IGNORECASE),
    ),
    (ContentType.FAQ, re.compile(r"faq|questions|q&a", re.IGNORECASE)),
)

_SEARCH_INTENT_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(r"cost|price|how much|가격|비용", re.IGNORECASE),
        "Transactional - User wants pricing information to make a decision",
    ),
    (
        re.compile(r"best|top|recommended|추천", re.IGNORECASE),
        "Commercial Investigation - User comparing options before decision",
    ),
    (
        re.compile(r"how to|what is|guide|방법", re.IGNORECASE),
        "Informational - User seeking to learn and understand",
    ),
    (
        re.compile(r"book|appointment|contact|예약", re.IGNORECASE),
        "Transactional - User ready to take action",
    ),
)
DEFAULT_SEARCH_INTENT = "Informational - User researching the topic"

CONTENT_TYPE_DESCRIPTIONS: dict[ContentType, str] = {
    ContentType.INFORMATIONAL: "Informational - Standard E-E-A-T structure",
    ContentType.PROCEDURAL: "Procedural - HowTo Schema recommended, step-by-step format",
    ContentType.COMPARISON: "Comparison - Table format recommended, vs structure",
    ContentType.PRICING: "Pricing - Specific ranges required, cost comparison tables",
    ContentType.GUIDE: "Comprehensive Guide - Long-form, detailed coverage",
    ContentType.FAQ: "FAQ-focused - Q&A format, Schema.org FAQ markup",
}

_TYPE_INSTRUCTIONS: dict[ContentType, str] = {
    ContentType.INFORMATIONAL: "",
    ContentType.PROCEDURAL: """
### Procedural Content Requirements:
- Include HowTo Schema-ready steps
- Number all steps sequentially with a clear name and description
- Include time estimates where relevant
""",
    ContentType.COMPARISON: """
### Comparison Content Requirements:
- Create at least 2 comparison tables
- Compare Korea vs the reader's home country on price, quality and recovery time
- Acknowledge pros AND cons of each option
""",
    ContentType.PRICING: """
### Pricing Content Requirements:
- Provide SPECIFIC price ranges (not "affordable")
- Show prices in the locale currency and USD
- Include a "What's included" breakdown and a "hidden costs" section
""",
    ContentType.GUIDE: """
### Comprehensive Guide Requirements:
- Minimum 2500 words
- Include a table of contents
- Use progressive detail (overview, then specifics)
""",
    ContentType.FAQ: """
### FAQ Content Requirements:
- Minimum 10 FAQ items using exact search-query phrasing
- Answers of 50-80 words each
- Mark Schema.org FAQPage ready
""",
}

SYSTEM_PROMPT = """You are GetCareKorea's expert medical tourism content strategist, combining deep expertise in Korean healthcare with proven SEO/AEO optimization techniques.

## PRIMARY MISSION
Create genuinely helpful, people-first content that demonstrates real Experience, Expertise, Authoritativeness, and Trustworthiness (E-E-A-T). Medical topics are YMYL (Your Money Your Life) content.

## RULES
- Be transparent about costs: provide ranges, not single figures
- Acknowledge limitations and individual variation
- Never make unverifiable medical claims
- Answer the searcher's question in the first paragraph
- Return a single JSON object with title, excerpt, content (markdown), meta_title, meta_description and faq_schema"""

REFERENCE_DOCUMENTS_GUIDE = """
## USING REFERENCE DOCUMENTS
Reference documents are provided in <reference_documents> at the TOP of the prompt. Each <document> carries a source attribute:

| Source | How to use |
|--------|------------|
| factual-context | Quote specific hospital names, prices, procedures |
| learning-context | Adopt proven title structures, writing patterns and recommendations |
| category-knowledge | Include domain-specific expertise and facts |
| locale-guidelines | Apply cultural and language nuances |

Before writing, extract the citations you will use. Attribute claims to their source document."""


@dataclass(slots=True)
class PromptRequest:
    keyword: str
    locale: str
    category: str | None = None
    target_word_count: int = DEFAULT_TARGET_WORD_COUNT
    content_type: ContentType | None = None
    include_learning: bool = True
    include_factual_context: bool = True


@dataclass(slots=True)
class PromptMetadata:
    version: str
    locale: str
    category: str
    content_type: ContentType
    search_intent: str
    target_word_count: int
    factual_context_included: bool
    learning_included: bool

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["content_type"] = self.content_type.value
        return data


@dataclass(slots=True)
class AssembledPrompt:
    system_prompt: str
    user_prompt: str
    metadata: PromptMetadata


def analyze_content_type(keyword: str) -> ContentType:
    for content_type, pattern in _CONTENT_TYPE_RULES:
        if pattern.search(keyword):
            return content_type
    return ContentType.INFORMATIONAL


def analyze_search_intent(keyword: str) -> str:
    for pattern, intent in _SEARCH_INTENT_RULES:
        if pattern.search(keyword):
            return intent
    return DEFAULT_SEARCH_INTENT


def reference_block(source: ReferenceSource, body: str) -> str:
    return f'<document source="{source.value}">\n{body.strip()}\n</document>'


def _content_specifications(
    keyword: str,
    content_type: ContentType,
    target_word_count: int,
) -> str:
    return "\n".join(
        [
            "## CONTENT SPECIFICATIONS",
            f"- **Target Word Count**: {target_word_count}+ words",
            f"- **Content Type**: {CONTENT_TYPE_DESCRIPTIONS[content_type]}",
            f"- **Primary Search Intent**: {analyze_search_intent(keyword)}",
            f"- **Prompt Version**: {PROMPT_VERSION}",
        ]
    )


def generation_instructions(content_type: ContentType, locale: str) -> str:
    messenger = get_locale_guideline(locale).messenger
    base = f"""## GENERATION INSTRUCTIONS

Generate a comprehensive, E-E-A-T optimized article that:
1. IMMEDIATELY answers what the user is searching for (Featured Snippet optimization)
2. Includes SPECIFIC data, prices, and timelines
3. Optimizes for both traditional SEO and Answer Engine Optimization (AEO)

### Content Must Include:
- Quick Answer Box (40-60 words) right after the introduction
- At least ONE comparison table (Korea vs. other countries)
- 5-7 FAQ items in Schema-ready Q&A format
- Specific price ranges with currency and year
- Clear CTA with {messenger} as the primary contact method
"""
    return base + _TYPE_INSTRUCTIONS[content_type] + "\nReturn ONLY the JSON object. No markdown code blocks around it."


class PromptAssembler:
    """Builds the system/user prompt pair for one generation request."""

    def __init__(
        self,
        *,
        learning_extractor: LearningDataExtractor | None = None,
        factual_context: FactualContextProvider | None = None,
    ) -> None:
        self.learning_extractor = learning_extractor
        self.factual_context = factual_context

    async def _factual_block(self, keyword: str, locale: str) -> str | None:
        if self.factual_context is None:
            return None
        try:
            text = await self.factual_context.build_context(keyword, locale)
        except Exception as e:
            logger.warning("Factual context failed; omitting", extra={"keyword": keyword, "error": str(e)})
            return None
        return text if text and text.strip() else None

    async def _learning_block(self, keyword: str, locale: str, category: str | None) -> str | None:
        if self.learning_extractor is None:
            return None
        try:
            context = await self.learning_extractor.build_learning_context(keyword, locale, category)
        except Exception as e:
            logger.warning("Learning context failed; omitting", extra={"keyword": keyword, "error": str(e)})
            return None
        return None if context.is_empty else context.learning_context

    async def assemble_prompt_context(self, request: PromptRequest) -> AssembledPrompt:
        locale = Locale.resolve(request.locale).value
        category = ContentCategory.resolve(request.category).value
        content_type = request.content_type or analyze_content_type(request.keyword)

        blocks: list[str] = []
        factual = (
            await self._factual_block(request.keyword, locale) if request.include_factual_context else None
        )
        if factual:
            blocks.append(reference_block(ReferenceSource.FACTUAL_CONTEXT, factual))

        # Learning data is matched on the article's own category, not the registry slug.
        learning = None
        if request.include_learning:
            learning = await self._learning_block(request.keyword, locale, request.category)
        if learning:
            blocks.append(reference_block(ReferenceSource.LEARNING_CONTEXT, learning))

        blocks.append(reference_block(ReferenceSource.CATEGORY_KNOWLEDGE, render_category_knowledge(category)))
        blocks.append(reference_block(ReferenceSource.LOCALE_GUIDELINES, render_locale_guidelines(locale)))

        user_prompt = "\n\n".join(
            [
                "<reference_documents>\n" + "\n\n".join(blocks) + "\n</reference_documents>",
                f'## TARGET KEYWORD: "{request.keyword}"',
                _content_specifications(request.keyword, content_type, request.target_word_count),
                generation_instructions(content_type, locale),
            ]
        )

        metadata = PromptMetadata(
            version=PROMPT_VERSION,
            locale=locale,
            category=category,
            content_type=content_type,
            search_intent=analyze_search_intent(request.keyword),
            target_word_count=request.target_word_count,
            factual_context_included=bool(factual),
            learning_included=bool(learning),
        )
        logger.info("Prompt assembled", extra=metadata.as_dict())
        return AssembledPrompt(
            system_prompt=SYSTEM_PROMPT + "\n" + REFERENCE_DOCUMENTS_GUIDE,
            user_prompt=user_prompt,
            metadata=metadata,
        )


def build_simple_prompt(
    keyword: str,
    locale: str,
    category: str | None = None,
    target_word_count: int = SIMPLE_TARGET_WORD_COUNT,
) -> tuple[str, str]:
    """Synchronous (system, user) prompt without reference documents."""
    guideline = get_locale_guideline(locale)
    content_type = analyze_content_type(keyword)
    user_prompt = f"""## TARGET KEYWORD: "{keyword}"

{render_category_knowledge(category)}

{render_locale_guidelines(locale)}

## CONTENT SPECIFICATIONS
- **Target Word Count**: {target_word_count}+ words
- **Content Type**: {CONTENT_TYPE_DESCRIPTIONS[content_type]}
- **Search Intent**: {analyze_search_intent(keyword)}

## INSTRUCTIONS
Create E-E-A-T optimized content with:
1. Quick answer in first 50 words
2. Comparison table (Korea vs others)
3. 5+ FAQ items
4. Price ranges in {guideline.currency}
5. CTA using {guideline.messenger}

Return JSON only. No code blocks."""
    return SYSTEM_PROMPT, user_prompt
