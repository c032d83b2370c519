"""Score listings for social-media-marketing relevance and tag their skills."""
from __future__ import annotations

import math

from gigscout.log import get_logger

log = get_logger(__name__)

MIN_SCORE = 0
MAX_SCORE = 10

HIGH_VALUE_KEYWORDS: list[str] = [
    "social media marketing", "instagram marketing", "facebook marketing",
    "tiktok marketing", "youtube marketing", "linkedin marketing",
    "social media strategy", "community management", "influencer marketing",
]

MEDIUM_VALUE_KEYWORDS: list[str] = [
    "social media", "content marketing", "digital marketing",
    "paid social", "social advertising", "brand management",
    "engagement strategy", "social analytics",
]

LOW_VALUE_KEYWORDS: list[str] = [
    "marketing", "content", "creative", "brand", "campaigns",
    "analytics", "engagement", "growth", "advertising",
]

# Off-topic signals: engineering roles scraped by broad marketing searches
NEGATIVE_KEYWORDS: list[str] = [
    "engineer", "developer", "backend", "frontend", "software",
    "technical", "coding", "programming", "qa", "devops",
]

# (keywords, weight); a keyword counts once however often it appears
KEYWORD_TIERS: list[tuple[list[str], float]] = [
    (HIGH_VALUE_KEYWORDS, 2.0),
    (MEDIUM_VALUE_KEYWORDS, 1.5),
    (LOW_VALUE_KEYWORDS, 1.0),
    (NEGATIVE_KEYWORDS, -2.0),
]

TITLE_PRIMARY_PHRASE = "social media"
TITLE_PRIMARY_BONUS = 1.0
TITLE_CATEGORY_WORD = "marketing"
TITLE_CATEGORY_BONUS = 0.5

SKILL_VOCABULARY: list[str] = [
    "Instagram", "Facebook", "TikTok", "YouTube", "LinkedIn",
    "Twitter", "Pinterest", "Snapchat", "Content Creation",
    "Paid Advertising", "Analytics", "Community Management",
    "Influencer Relations", "SEO", "SEM", "Google Ads",
    "Facebook Ads", "Hootsuite", "Buffer", "Sprout Social",
    "Canva", "Adobe Creative Suite", "Video Editing",
]


def _normalize(s: str | None) -> str:
    return (s or "").lower()


def _full_text(title: str, description: str, company: str) -> str:
    return f"{_normalize(title)} {_normalize(description)} {_normalize(company)}"


def score_breakdown(title: str, description: str = "", company: str = "") -> dict[str, list[str]]:
    """Keywords matched per tier plus any title bonuses, for explaining a score."""
    text = _full_text(title, description, company)
    names = ("high", "medium", "low", "negative")
    out: dict[str, list[str]] = {
        name: [kw for kw in keywords if kw in text]
        for name, (keywords, _) in zip(names, KEYWORD_TIERS)
    }
    title_norm = _normalize(title)
    out["title"] = [
        phrase for phrase in (TITLE_PRIMARY_PHRASE, TITLE_CATEGORY_WORD)
        if phrase in title_norm
    ]
    return out


def raw_score(title: str, description: str = "", company: str = "") -> float:
    """Unclamped weighted keyword sum."""
    text = _full_text(title, description, company)
    score = 0.0
    for keywords, weight in KEYWORD_TIERS:
        score += weight * sum(1 for kw in keywords if kw in text)

    title_norm = _normalize(title)
    if TITLE_PRIMARY_PHRASE in title_norm:
        score += TITLE_PRIMARY_BONUS
    if TITLE_CATEGORY_WORD in title_norm:
        score += TITLE_CATEGORY_BONUS
    return score


def score_listing(title: str, description: str = "", company: str = "") -> int:
    """Relevance score in [0, 10]: clamped, then rounded half-up."""
    score = raw_score(title, description, company)
    clamped = max(float(MIN_SCORE), min(float(MAX_SCORE), score))
    return int(math.floor(clamped + 0.5))


def extract_skills(description: str | None) -> list[str]:
    """Vocabulary skills mentioned in *description*, in vocabulary order."""
    text = _normalize(description)
    if not text:
        return []
    return [skill for skill in SKILL_VOCABULARY if skill.lower() in text]
