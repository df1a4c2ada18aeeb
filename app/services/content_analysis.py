"""Heuristic analysis of article text for reusable title, style and SEO traits."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from app.services.locale_guidelines import Locale

_YEAR_RE = re.compile(r"20\d{2}")
_NUMBER_RE = re.compile(r"\d+")
_PRICE_RE = re.compile(r"\$|cost|price|가격|비용|費用|价格", re.IGNORECASE)
_GUIDE_RE = re.compile(r"guide|complete|ultimate|가이드|완벽|指南", re.IGNORECASE)

_SENTENCE_SPLIT_RE = re.compile(r"[.!?。！？]")
_BULLET_RE = re.compile(r"^\s*[-•*]\s", re.MULTILINE)
_NUMBERED_RE = re.compile(r"^\s*\d+\.\s", re.MULTILINE)
_QUESTION_RE = re.compile(r"\?\s*\n")
_BOLD_RE = re.compile(r"\*\*[^*]+\*\*")
_POLITE_JA_RE = re.compile(r"です|ます")

_H2_RE = re.compile(r"^##\s+(.+)$", re.MULTILINE)
_H3_RE = re.compile(r"^###\s+.+$", re.MULTILINE)
_TABLE_ROW_RE = re.compile(r"\|.*\|.*\|")
_FAQ_RE = re.compile(r"^###?\s*(?:Q:|FAQ|질문|問題)", re.MULTILINE | re.IGNORECASE)
_MESSENGER_RE = re.compile(r"whatsapp|\bline\b|wechat|kakao", re.IGNORECASE)
_CONSULTATION_RE = re.compile(r"free consultation|무료 상담|免費諮詢|免费咨询|無料相談", re.IGNORECASE)

_STATS_RE = re.compile(r"\d+%|\$[\d,]+|\d+\+?\s*(?:years?|patients?|clinics?)", re.IGNORECASE)
_KEY_PHRASES = (
    ("world-class reputation", re.compile(r"world.*(?:class|leading|renowned)", re.IGNORECASE)),
    ("top-rated providers", re.compile(r"top.*(?:rated|ranked)", re.IGNORECASE)),
    ("board certification", re.compile(r"board.certified", re.IGNORECASE)),
    ("JCI accreditation", re.compile(r"JCI.*(?:accredited|certified)", re.IGNORECASE)),
)

_HEADING_LINE_RE = re.compile(r"^#+\s+.+$", re.MULTILINE)
_BLANK_RUN_RE = re.compile(r"\n{3,}")

STANDARD = "standard"
EXCERPT_MAX_LENGTH = 1000


@dataclass(slots=True)
class ContentAnalysis:
    title_pattern: str
    writing_style: str
    seo_patterns: dict[str, Any] = field(default_factory=dict)
    key_insights: list[str] = field(default_factory=list)


def _first_keyword_token(keyword: str) -> str:
    tokens = keyword.lower().split()
    return tokens[0] if tokens else ""


def analyze_title_pattern(title: str, keyword: str) -> str:
    """Comma-separated title traits, or "standard"."""
    patterns: list[str] = []
    first_token = _first_keyword_token(keyword)
    if first_token and title.lower().startswith(first_token):
        patterns.append("keyword-first")
    if _YEAR_RE.search(title):
        patterns.append("includes-year")
    if _NUMBER_RE.search(title):
        patterns.append("includes-number")
    if _PRICE_RE.search(title):
        patterns.append("price-focused")
    if _GUIDE_RE.search(title):
        patterns.append("comprehensive-guide")
    return ", ".join(patterns) or STANDARD


def analyze_writing_style(content: str, locale: str | None) -> str:
    """Comma-separated writing-style traits, or "standard"."""
    styles: list[str] = []
    sentences = _SENTENCE_SPLIT_RE.split(content)
    average_length = sum(len(sentence) for sentence in sentences) / len(sentences)
    if average_length < 50:
        styles.append("concise-sentences")
    elif average_length > 100:
        styles.append("detailed-sentences")

    if _BULLET_RE.search(content) or _NUMBERED_RE.search(content):
        styles.append("uses-lists")
    if _QUESTION_RE.search(content):
        styles.append("uses-questions")
    if _BOLD_RE.search(content):
        styles.append("uses-bold-emphasis")
    if Locale.resolve(locale) is Locale.JA and _POLITE_JA_RE.search(content):
        styles.append("polite-form")

    return ", ".join(styles) or STANDARD


def analyze_seo_patterns(content: str, keyword: str) -> dict[str, Any]:
    lowered = content.lower()
    first_token = _first_keyword_token(keyword)
    h2_headings = [heading.strip() for heading in _H2_RE.findall(content)]
    heading_patterns = h2_headings[:5]

    placements: list[str] = []
    if first_token:
        if first_token in lowered[:500]:
            placements.append("intro")
        if any(first_token in heading.lower() for heading in h2_headings):
            placements.append("headings")
        if first_token in lowered[-500:]:
            placements.append("conclusion")

    cta_style = STANDARD
    if _MESSENGER_RE.search(content):
        cta_style = "messenger-focused"
    if _CONSULTATION_RE.search(content):
        cta_style = "consultation-focused"

    # Roughly three table rows (header, divider, body) per table.
    table_count = len(_TABLE_ROW_RE.findall(content)) // 3

    return {
        "title_structure": heading_patterns[0] if heading_patterns else STANDARD,
        "heading_patterns": heading_patterns,
        "h2_count": len(h2_headings),
        "h3_count": len(_H3_RE.findall(content)),
        "keyword_placement": placements,
        "cta_style": cta_style,
        "content_length": len(content),
        "faq_count": len(_FAQ_RE.findall(content)),
        "table_count": table_count,
    }


def extract_key_insights(content: str) -> list[str]:
    """Up to five notable statistics and credibility phrases."""
    insights = [match.group(0) for match in _STATS_RE.finditer(content)][:3]
    insights.extend(label for label, pattern in _KEY_PHRASES if pattern.search(content))
    return insights[:5]


def analyze_content(
    title: str,
    content: str,
    *,
    locale: str | None,
    keyword: str,
) -> ContentAnalysis:
    return ContentAnalysis(
        title_pattern=analyze_title_pattern(title, keyword),
        writing_style=analyze_writing_style(content, locale),
        seo_patterns=analyze_seo_patterns(content, keyword),
        key_insights=extract_key_insights(content),
    )


def extract_excerpt(content: str, max_length: int = EXCERPT_MAX_LENGTH) -> str:
    """Heading-free excerpt cut on sentence boundaries."""
    cleaned = _BLANK_RUN_RE.sub("\n\n", _HEADING_LINE_RE.sub("", content)).strip()
    if len(cleaned) <= max_length:
        return cleaned

    excerpt = ""
    for sentence in _SENTENCE_SPLIT_RE.split(cleaned[: max_length + 200]):
        if len(excerpt) + len(sentence) + 1 > max_length:
            break
        excerpt += sentence + "."

    return excerpt.strip() or cleaned[:max_length]
