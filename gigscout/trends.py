"""Week-over-week market statistics for the weekly trends email."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from gigscout.log import get_logger
from gigscout.models import Listing
from gigscout.repository import listings_between, listings_since
from gigscout.store import Store

log = get_logger(__name__)

DEFAULT_AVG_RATE = 75
DEFAULT_REMOTE_PERCENT = 67
DEFAULT_LAST_WEEK_REMOTE_PERCENT = 60
TOP_N = 5

BASE_RECOMMENDATIONS: list[str] = [
    "Focus on building a strong portfolio showcasing Instagram and TikTok content",
    "Consider specializing in video content creation as demand is growing",
    "Remote opportunities are abundant - expand your search globally",
]

_CANNED_SKILLS: list[dict] = [
    {"name": "Instagram Marketing", "count": 15, "growth": 20},
    {"name": "TikTok Content", "count": 12, "growth": 25},
    {"name": "Facebook Ads", "count": 10, "growth": 15},
    {"name": "Content Creation", "count": 8, "growth": 10},
    {"name": "Analytics", "count": 6, "growth": 5},
]

_CANNED_COMPANIES: list[dict] = [
    {"name": "TechStart Inc", "job_count": 5},
    {"name": "GrowthCo", "job_count": 4},
    {"name": "InnovateLabs", "job_count": 3},
]


@dataclass
class TrendReport:
    total_jobs: int
    job_growth: int
    avg_rate: int
    rate_change: int
    remote_percent: int
    remote_growth: int
    top_skills: list[dict] = field(default_factory=list)
    top_companies: list[dict] = field(default_factory=list)
    insights: dict[str, str] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)
    fallback: bool = False


def _js_round(x: float) -> int:
    """Half-up rounding, so -12.5 → -12 and 12.5 → 13."""
    return int((x + 0.5) // 1)


def percent_change(current: float, previous: float) -> int:
    return _js_round((current - previous) / previous * 100)


def average_hourly_rate(listings: list[Listing]) -> int:
    hourly = [(l.rate_min + l.rate_max) / 2 for l in listings if l.rate_type == "hourly"]
    if not hourly:
        return DEFAULT_AVG_RATE
    return _js_round(sum(hourly) / len(hourly))


def remote_percent(listings: list[Listing], default: int = DEFAULT_REMOTE_PERCENT) -> int:
    if not listings:
        return default
    return _js_round(sum(1 for l in listings if l.remote_allowed) / len(listings) * 100)


def skill_counts(listings: list[Listing]) -> Counter:
    counts: Counter = Counter()
    for l in listings:
        counts.update(l.skills)
    return counts


def top_skills(this_week: list[Listing], last_week: list[Listing]) -> list[dict]:
    if not this_week:
        return [dict(s) for s in _CANNED_SKILLS]
    current = skill_counts(this_week)
    previous = skill_counts(last_week)
    out = []
    for name, count in current.most_common(TOP_N):
        prior = previous.get(name, 0)
        growth = percent_change(count, prior) if prior else 100
        out.append({"name": name, "count": count, "growth": growth})
    return out


def top_companies(listings: list[Listing]) -> list[dict]:
    if not listings:
        return [dict(c) for c in _CANNED_COMPANIES]
    counts = Counter(l.company for l in listings)
    return [{"name": name, "job_count": n} for name, n in counts.most_common(TOP_N)]


def build_insights(skills: list[dict], avg_rate: int, remote_pct: int) -> dict[str, str]:
    top_skill = skills[0]["name"] if skills else "Instagram Marketing"
    direction = "increased" if avg_rate > DEFAULT_AVG_RATE else "remained stable"
    return {
        "platform_focus": f"{top_skill} continues to dominate job requirements",
        "industry_demand": "E-commerce and SaaS companies showing highest demand",
        "rate_trends": f"Average hourly rates {direction} at ${avg_rate}/hour",
        "geography": f"{remote_pct}% of opportunities offer remote work options",
    }


def build_recommendations(listings: list[Listing]) -> list[str]:
    recs = list(BASE_RECOMMENDATIONS)
    counts = skill_counts(listings)
    if counts:
        skill, _ = counts.most_common(1)[0]
        recs.append(f"Consider upskilling in {skill} - it's currently in high demand")
    return recs


def compute_trends(this_week: list[Listing], last_week: list[Listing]) -> TrendReport:
    job_growth = percent_change(len(this_week), len(last_week)) if last_week else 100

    avg_rate = average_hourly_rate(this_week)
    last_avg_rate = average_hourly_rate(last_week)
    rate_change = percent_change(avg_rate, last_avg_rate) if last_avg_rate > 0 else 0

    remote_pct = remote_percent(this_week)
    last_remote_pct = remote_percent(last_week, DEFAULT_LAST_WEEK_REMOTE_PERCENT)

    skills = top_skills(this_week, last_week)
    return TrendReport(
        total_jobs=len(this_week),
        job_growth=job_growth,
        avg_rate=avg_rate,
        rate_change=rate_change,
        remote_percent=remote_pct,
        remote_growth=remote_pct - last_remote_pct,
        top_skills=skills,
        top_companies=top_companies(this_week),
        insights=build_insights(skills, avg_rate, remote_pct),
        recommendations=build_recommendations(this_week),
    )


def default_trends() -> TrendReport:
    """Well-formed stand-in used when the store cannot be read."""
    skills = [
        {"name": "Instagram Marketing", "count": 45, "growth": 15},
        {"name": "TikTok Content", "count": 38, "growth": 22},
        {"name": "Facebook Ads", "count": 32, "growth": 8},
        {"name": "Content Creation", "count": 28, "growth": 12},
        {"name": "Analytics", "count": 24, "growth": 6},
    ]
    return TrendReport(
        total_jobs=156,
        job_growth=12,
        avg_rate=78,
        rate_change=5,
        remote_percent=67,
        remote_growth=8,
        top_skills=skills,
        top_companies=[
            {"name": "TechStart Inc", "job_count": 8},
            {"name": "GrowthCo", "job_count": 6},
            {"name": "InnovateLabs", "job_count": 5},
        ],
        insights={
            "platform_focus": "Instagram Marketing continues to dominate job requirements",
            "industry_demand": "E-commerce and SaaS companies showing highest demand",
            "rate_trends": "Average hourly rates increased to $78/hour",
            "geography": "67% of opportunities offer remote work options",
        },
        recommendations=BASE_RECOMMENDATIONS
        + ["Consider upskilling in TikTok Content - it's currently in high demand"],
        fallback=True,
    )


def weekly_trends(store: Store, now: datetime) -> TrendReport:
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)
    try:
        this_week = listings_since(store, week_ago)
        last_week = listings_between(store, two_weeks_ago, week_ago)
        return compute_trends(this_week, last_week)
    except Exception as exc:
        log.error("Error generating weekly trends: %s", exc)
        return default_trends()
