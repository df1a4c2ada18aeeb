"""Locale guidance and category knowledge used when assembling prompts.

Both registries are keyed by enums and resolve unknown codes to an explicit
fallback entry (English guidance, general medical-tourism knowledge).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Locale(str, Enum):
    EN = "en"
    KO = "ko"
    JA = "ja"
    ZH_TW = "zh-TW"
    ZH_CN = "zh-CN"
    TH = "th"
    MN = "mn"
    RU = "ru"

    @classmethod
    def resolve(cls, code: str | None) -> "Locale":
        """Map a locale code to a Locale, defaulting to English."""
        if code:
            for member in cls:
                if member.value.lower() == code.strip().lower():
                    return member
        return cls.EN


class ContentCategory(str, Enum):
    PLASTIC_SURGERY = "plastic-surgery"
    DERMATOLOGY = "dermatology"
    DENTAL = "dental"
    HEALTH_CHECKUP = "health-checkup"
    GENERAL = "general"

    @classmethod
    def resolve(cls, code: str | None) -> "ContentCategory":
        """Map a category slug to a ContentCategory, defaulting to general."""
        if code:
            normalized = code.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.GENERAL


@dataclass(frozen=True, slots=True)
class LocaleGuideline:
    language: str
    messenger: str
    messenger_cta: str
    communication_style: str
    cost_attitude: str
    trust_signals: tuple[str, ...]
    currency: str
    learning_recommendation: str | None = None


@dataclass(frozen=True, slots=True)
class PriceBenchmark:
    procedure: str
    price_range: str
    note: str | None = None


@dataclass(frozen=True, slots=True)
class CategoryKnowledge:
    display_name: str
    eeat_signals: tuple[str, ...]
    must_cover_topics: tuple[str, ...]
    price_benchmarks: tuple[PriceBenchmark, ...]
    typical_recovery: str
    risk_disclaimer: str
    common_faqs: tuple[str, ...] = ()


LOCALE_GUIDELINES: dict[Locale, LocaleGuideline] = {
    Locale.EN: LocaleGuideline(
        language="English",
        messenger="WhatsApp",
        messenger_cta="Get Free Consultation via WhatsApp",
        communication_style="Direct, facts-first, logical flow with a short patient story",
        cost_attitude="Wants exact numbers upfront and clear pricing",
        trust_signals=("Before/after photos", "Specific numbers", "Credentials", "Patient testimonials"),
        currency="USD",
    ),
    Locale.KO: LocaleGuideline(
        language="Korean",
        messenger="KakaoTalk",
        messenger_cta="카카오톡으로 무료 상담",
        communication_style="Polite and concise, practical details first",
        cost_attitude="Compares clinic prices closely, expects itemized quotes",
        trust_signals=("Specialist certification", "Case volume", "Real reviews"),
        currency="KRW",
    ),
    Locale.JA: LocaleGuideline(
        language="Japanese",
        messenger="LINE",
        messenger_cta="LINEで無料相談",
        communication_style="Polite and detailed, addresses anxieties carefully",
        cost_attitude="Balances quality and price; distrusts prices that look too low",
        trust_signals=("Case count", "Case photos", "Qualifications", "Japanese-language support"),
        currency="JPY",
        learning_recommendation="Use 敬語 (polite form) throughout",
    ),
    Locale.ZH_TW: LocaleGuideline(
        language="Traditional Chinese (Taiwan)",
        messenger="LINE",
        messenger_cta="LINE免費諮詢",
        communication_style="Warm and reassuring, emphasizes natural results",
        cost_attitude="Sensitive to price but prioritizes safety",
        trust_signals=("Hospital reputation", "Doctor credentials", "Privacy protection"),
        currency="TWD",
        learning_recommendation="Emphasize safety and reputation signals",
    ),
    Locale.ZH_CN: LocaleGuideline(
        language="Simplified Chinese",
        messenger="WeChat",
        messenger_cta="微信免费咨询",
        communication_style="Direct but friendly, stresses value and results",
        cost_attitude="Seeks value for money, willing to pay for good outcomes",
        trust_signals=("Real cases", "Expert qualifications", "Hospital grade"),
        currency="CNY",
        learning_recommendation="Highlight value-for-money comparisons",
    ),
    Locale.TH: LocaleGuideline(
        language="Thai",
        messenger="LINE",
        messenger_cta="ปรึกษาฟรีผ่าน LINE",
        communication_style="Friendly and upbeat, references Korean pop culture",
        cost_attitude="Budget-aware, responds to package deals",
        trust_signals=("Celebrity-style results", "Reviews", "Thai-speaking coordinators"),
        currency="THB",
        learning_recommendation="Reference K-beauty and Korean drama trends",
    ),
    Locale.MN: LocaleGuideline(
        language="Mongolian",
        messenger="WhatsApp",
        messenger_cta="WhatsApp-аар үнэгүй зөвлөгөө авах",
        communication_style="Respectful and practical, covers travel logistics",
        cost_attitude="Compares total trip cost including travel",
        trust_signals=("Hospital accreditation", "Doctor experience", "Aftercare"),
        currency="MNT",
    ),
    Locale.RU: LocaleGuideline(
        language="Russian",
        messenger="WhatsApp",
        messenger_cta="Бесплатная консультация через WhatsApp",
        communication_style="Thorough and technical, values clinical detail",
        cost_attitude="Expects transparent pricing with what is included",
        trust_signals=("Clinical statistics", "Equipment", "Surgeon experience"),
        currency="RUB",
        learning_recommendation="Provide detailed technical explanations",
    ),
}


CATEGORY_KNOWLEDGE: dict[ContentCategory, CategoryKnowledge] = {
    ContentCategory.PLASTIC_SURGERY: CategoryKnowledge(
        display_name="Plastic Surgery / Cosmetic Procedures",
        eeat_signals=(
            "Korean plastic surgeons complete 6+ years of specialized training after medical school",
            "Korean Association of Plastic Surgeons (KAPS) maintains strict standards",
            "Korea performs over 1 million cosmetic procedures annually",
        ),
        must_cover_topics=(
            "Procedure techniques popular in Korea (non-incisional vs incisional)",
            "Recovery timeline with a realistic day-by-day breakdown",
            "Anesthesia options and hospital stay requirements",
        ),
        price_benchmarks=(
            PriceBenchmark("Rhinoplasty", "$2,500-$8,000 USD", "Varies by complexity"),
            PriceBenchmark("Double Eyelid Surgery", "$1,500-$4,000 USD", "Non-incisional vs incisional"),
            PriceBenchmark("Jaw Reduction", "$5,000-$12,000 USD", "V-line surgery"),
        ),
        typical_recovery="1-2 weeks for most procedures, 4-6 weeks for full recovery",
        risk_disclaimer=(
            "All surgical procedures carry risks including infection, scarring, asymmetry, and "
            "anesthesia complications. Results vary by individual."
        ),
        common_faqs=(
            "How much does [procedure] cost in Korea?",
            "How long is the recovery time for [procedure]?",
            "Is [procedure] safe in Korea?",
        ),
    ),
    ContentCategory.DERMATOLOGY: CategoryKnowledge(
        display_name="Dermatology / Skin Treatments",
        eeat_signals=(
            "Korean dermatology pioneered combination laser protocols",
            "KFDA (Korean FDA) approved treatments and devices",
            "Many treatments developed specifically for Asian skin types",
        ),
        must_cover_topics=(
            "Popular treatments: Rejuran, laser toning, PDRN",
            "Maintenance schedules and return visit recommendations",
            "Pre and post-treatment skincare routines",
        ),
        price_benchmarks=(
            PriceBenchmark("Laser Toning (per session)", "$100-$300 USD"),
            PriceBenchmark("Rejuran Healer", "$300-$600 USD"),
            PriceBenchmark("Ultherapy (full face)", "$1,500-$3,500 USD"),
        ),
        typical_recovery="Most treatments: 0-3 days, laser resurfacing: 5-7 days",
        risk_disclaimer=(
            "Skin treatments may cause temporary redness, swelling, or sensitivity. "
            "Results vary based on skin type and condition."
        ),
        common_faqs=(
            "How many sessions do I need for [treatment]?",
            "Is [treatment] suitable for my skin type?",
        ),
    ),
    ContentCategory.DENTAL: CategoryKnowledge(
        display_name="Dental / Oral Care",
        eeat_signals=(
            "Same-day ceramic crowns and digital scanning are widely available",
            "Korean dentists complete 6 years of dental school plus residency",
            "Korea is a leader in dental implant technology",
        ),
        must_cover_topics=(
            "All-on-4/All-on-6 implant systems",
            "Warranty and follow-up care for international patients",
            "Number of trips required",
        ),
        price_benchmarks=(
            PriceBenchmark("Dental Implant (single)", "$1,000-$2,500 USD", "Including crown"),
            PriceBenchmark("All-on-4", "$8,000-$15,000 USD", "Per arch"),
            PriceBenchmark("Zirconia Crown", "$500-$1,000 USD"),
        ),
        typical_recovery="Implants: 3-6 months healing before final crown, crowns: same day to 2 weeks",
        risk_disclaimer=(
            "Dental procedures may involve risks such as infection, nerve damage, or implant failure. "
            "Always choose accredited dental clinics."
        ),
        common_faqs=(
            "How long do dental implants last?",
            "How many trips to Korea do I need for implants?",
        ),
    ),
    ContentCategory.HEALTH_CHECKUP: CategoryKnowledge(
        display_name="Health Checkup / Preventive Care",
        eeat_signals=(
            "Highest MRI/CT scanner density in OECD countries",
            "Samsung Medical Center and Asan Medical Center rank globally",
            "Same-day or next-day comprehensive results available",
        ),
        must_cover_topics=(
            "Executive vs comprehensive checkup differences",
            "English report translation services",
            "Follow-up consultation process",
        ),
        price_benchmarks=(
            PriceBenchmark("Basic Health Checkup", "$300-$800 USD"),
            PriceBenchmark("Comprehensive Checkup", "$1,000-$2,500 USD"),
            PriceBenchmark("PET-CT Cancer Screening", "$1,000-$2,000 USD"),
        ),
        typical_recovery="No recovery needed, results within 1-3 days",
        risk_disclaimer=(
            "Health checkups are diagnostic and may require follow-up tests or treatments."
        ),
        common_faqs=(
            "What does a comprehensive health checkup include?",
            "Can I get results in English?",
        ),
    ),
    ContentCategory.GENERAL: CategoryKnowledge(
        display_name="General Medical Tourism",
        eeat_signals=(
            "Over 500,000 international patients visit Korea annually",
            "Korea Health Industry Development Institute (KHIDI) oversight",
            "Government-backed international patient protection programs",
        ),
        must_cover_topics=(
            "Medical visa (C-3-3) requirements",
            "Interpreter and coordinator services",
            "Accommodation near medical districts",
        ),
        price_benchmarks=(
            PriceBenchmark("Medical Interpreter (per day)", "$100-$200 USD"),
            PriceBenchmark("Recovery Accommodation (per night)", "$80-$200 USD"),
        ),
        typical_recovery="Varies by treatment type",
        risk_disclaimer=(
            "All medical procedures carry some risk. Choose accredited facilities and ensure "
            "clear communication with your medical team."
        ),
        common_faqs=(
            "Do I need a visa for medical treatment in Korea?",
            "How do I choose the right clinic or hospital?",
        ),
    ),
}


def get_locale_guideline(code: str | None) -> LocaleGuideline:
    return LOCALE_GUIDELINES[Locale.resolve(code)]


def get_category_knowledge(code: str | None) -> CategoryKnowledge:
    return CATEGORY_KNOWLEDGE[ContentCategory.resolve(code)]


def render_locale_guidelines(code: str | None) -> str:
    """Locale guidance as a markdown section."""
    locale = Locale.resolve(code)
    guideline = LOCALE_GUIDELINES[locale]
    lines = [
        f"## LOCALE: {guideline.language} ({locale.value})",
        f"- Write entirely in {guideline.language}",
        f"- Communication style: {guideline.communication_style}",
        f"- Cost attitude: {guideline.cost_attitude}",
        f"- Trust signals: {', '.join(guideline.trust_signals)}",
        f"- Primary currency: {guideline.currency} (also show USD)",
        f"- CTA: \"{guideline.messenger_cta}\" via {guideline.messenger}",
    ]
    return "\n".join(lines)


def render_category_knowledge(code: str | None) -> str:
    """Category knowledge as a markdown section with a price table."""
    knowledge = get_category_knowledge(code)
    parts = [f"## CATEGORY: {knowledge.display_name}", "", "### E-E-A-T Signals (MUST Include)"]
    parts.extend(f"{index}. {signal}" for index, signal in enumerate(knowledge.eeat_signals, start=1))
    parts.extend(["", "### Topics to Cover"])
    parts.extend(f"- {topic}" for topic in knowledge.must_cover_topics)
    parts.extend(
        [
            "",
            "### Price Benchmarks",
            "| Procedure | Price Range | Note |",
            "|-----------|-------------|------|",
        ]
    )
    parts.extend(
        f"| {benchmark.procedure} | {benchmark.price_range} | {benchmark.note or '-'} |"
        for benchmark in knowledge.price_benchmarks
    )
    if knowledge.common_faqs:
        parts.extend(["", "### Common FAQ Questions"])
        parts.extend(f"- {question}" for question in knowledge.common_faqs)
    parts.extend(
        [
            "",
            f"### Recovery\n- Typical: {knowledge.typical_recovery}",
            "",
            f"### Required Disclaimer\n\"{knowledge.risk_disclaimer}\"",
        ]
    )
    return "\n".join(parts)
