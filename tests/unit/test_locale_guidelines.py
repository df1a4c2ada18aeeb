"""Unit tests for locale and category lookups."""

from __future__ import annotations

import pytest

from app.services.locale_guidelines import (
    ContentCategory,
    Locale,
    get_category_knowledge,
    get_locale_guideline,
    render_category_knowledge,
    render_locale_guidelines,
)


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("ko", Locale.KO),
        ("zh-tw", Locale.ZH_TW),
        (" JA ", Locale.JA),
        ("de", Locale.EN),
        ("", Locale.EN),
        (None, Locale.EN),
    ],
)
def test_locale_resolve_falls_back_to_english(code: str | None, expected: Locale) -> None:
    assert Locale.resolve(code) is expected


def test_category_resolve_normalizes_and_falls_back() -> None:
    assert ContentCategory.resolve("Plastic_Surgery") is ContentCategory.PLASTIC_SURGERY
    assert ContentCategory.resolve("orthopedics") is ContentCategory.GENERAL
    assert ContentCategory.resolve(None) is ContentCategory.GENERAL


def test_every_locale_and_category_has_an_entry() -> None:
    for locale in Locale:
        assert get_locale_guideline(locale.value).language
    for category in ContentCategory:
        assert get_category_knowledge(category.value).display_name


def test_unknown_locale_renders_english_guidelines() -> None:
    assert render_locale_guidelines("xx") == render_locale_guidelines("en")
    assert render_locale_guidelines("ko").startswith("## LOCALE: Korean (ko)")
    assert "KakaoTalk" in render_locale_guidelines("ko")


def test_category_knowledge_render_includes_heading() -> None:
    rendered = render_category_knowledge("dental")

    assert rendered.startswith("## CATEGORY: Dental / Oral Care")
    assert render_category_knowledge("unknown").startswith("## CATEGORY: General Medical Tourism")
