from datetime import timedelta

import pytest

from conftest import MONDAY_0830
from gigscout.email_templates import (
    daily_digest_subject,
    format_rate,
    format_time_ago,
    render_daily_digest,
    render_perfect_match,
    render_weekly_trends,
)
from gigscout.models import UserEmailPreference
from gigscout.trends import default_trends

EVIL = "<script>alert(1)</script>"
ESCAPED = "&lt;script&gt;alert(1)&lt;/script&gt;"


@pytest.fixture
def pref():
    return UserEmailPreference(user_id="u1", email="maya@example.com", skills=["Instagram"])


@pytest.mark.parametrize(
    "rate_type, lo, hi, expected",
    [
        ("hourly", 50, 80, "$50-80/hour"),
        ("hourly", 60, 60, "$60/hour"),
        ("hourly", 12.5, 20, "$12.50-20/hour"),
        ("monthly", 4000, 5000, "$4000/month"),
        ("project", 500, 900, "$500 project"),
    ],
)
def test_format_rate(make_listing, rate_type, lo, hi, expected):
    listing = make_listing(rate_type=rate_type, rate_min=lo, rate_max=hi)
    assert format_rate(listing) == expected


@pytest.mark.parametrize(
    "age, expected",
    [
        (timedelta(minutes=30), "just now"),
        (timedelta(hours=5), "5 hours ago"),
        (timedelta(hours=30), "1 day ago"),
        (timedelta(hours=100), "4 days ago"),
    ],
)
def test_format_time_ago(age, expected):
    assert format_time_ago(MONDAY_0830 - age, MONDAY_0830) == expected


def test_format_time_ago_unknown():
    assert format_time_ago(None, MONDAY_0830) == "recently"


def test_perfect_match_body(pref, make_listing):
    listing = make_listing(date_posted=MONDAY_0830 - timedelta(hours=3), remote_allowed=True)
    html = render_perfect_match(pref, listing, app_url="https://app.test", now=MONDAY_0830)
    assert "Hi <strong>maya</strong>" in html
    assert "9/10 Match" in html
    assert "$50-80/hour" in html
    assert "3 hours ago" in html
    assert "<strong>Location:</strong> Remote" in html
    assert 'href="https://example.com/gig/1"' in html
    assert "https://app.test/settings" in html


def test_perfect_match_without_skills_says_so(pref, make_listing):
    html = render_perfect_match(pref, make_listing(skills=[]), now=MONDAY_0830)
    assert "Not specified" in html


def test_perfect_match_escapes_listing_text(pref, make_listing):
    html = render_perfect_match(pref, make_listing(title=EVIL, company=EVIL), now=MONDAY_0830)
    assert EVIL not in html
    assert html.count(ESCAPED) == 2


def test_daily_digest_escapes_listing_text(pref, make_listing):
    html = render_daily_digest(pref, [make_listing(title=EVIL, company=EVIL)])
    assert EVIL not in html
    assert html.count(ESCAPED) == 2


def test_weekly_trends_escapes_company_names(pref):
    trends = default_trends()
    trends.top_companies = [{"name": EVIL, "job_count": 3}]
    html = render_weekly_trends(pref, trends)
    assert EVIL not in html
    assert f"{ESCAPED}: 3 listings" in html


def test_daily_digest_summary(pref, make_listing):
    listings = [
        make_listing(relevance_score=9, rate_min=50, rate_max=70),
        make_listing(relevance_score=5, rate_min=90, rate_max=110, skills=["Canva"]),
    ]
    html = render_daily_digest(pref, listings)
    assert "<strong>2</strong> new gigs" in html
    assert "<strong>1</strong> perfect matches" in html
    assert "average <strong>$80/hour</strong>" in html
    assert "top skills: Instagram, TikTok, Canva" in html
    assert daily_digest_subject(listings).endswith("2 New Jobs")


def test_daily_digest_without_hourly_listings_uses_default_average(pref, make_listing):
    listings = [make_listing(rate_type="monthly", rate_min=4000, rate_max=5000)]
    html = render_daily_digest(pref, listings)
    assert "average <strong>$75/hour</strong>" in html
    assert "$4000/month" in html


def test_weekly_trends_highlights_trending_user_skills(pref):
    html = render_weekly_trends(pref, default_trends())
    assert "your skills in <strong>Instagram</strong> are in demand" in html
    assert "Instagram Marketing: 45 listings (+15%)" in html


def test_weekly_trends_without_trending_user_skills():
    pref = UserEmailPreference(user_id="u2", email="sam@example.com", skills=["Pinterest"])
    html = render_weekly_trends(pref, default_trends())
    assert "Good news" not in html
    assert "Hi <strong>sam</strong>" in html


def test_weekly_trends_signs_negative_changes(pref):
    trends = default_trends()
    trends.job_growth = -20
    html = render_weekly_trends(pref, trends)
    assert "listings (-20%)" in html
    assert "avg hourly (+5%)" in html
