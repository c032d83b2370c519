"""HTML bodies and subjects for the three alert emails."""
from __future__ import annotations

from datetime import datetime
from html import escape

from gigscout.models import Listing, UserEmailPreference, utcnow
from gigscout.trends import TrendReport, average_hourly_rate, skill_counts

_BRAND = "#2D5A5A"
_WRAP_OPEN = (
    "<div style=\"font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;"
    "max-width:600px;margin:0 auto;padding:16px;color:#333\">"
)
_WRAP_CLOSE = "</div>"
_DESCRIPTION_PREVIEW = 300


def format_rate(listing: Listing) -> str:
    lo, hi = _num(listing.rate_min), _num(listing.rate_max)
    if listing.rate_type == "hourly":
        return f"${lo}/hour" if lo == hi else f"${lo}-{hi}/hour"
    if listing.rate_type == "monthly":
        return f"${lo}/month"
    return f"${lo} project"


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def format_time_ago(when: datetime | None, now: datetime | None = None) -> str:
    if when is None:
        return "recently"
    hours = int(((now or utcnow()) - when).total_seconds() // 3600)
    if hours < 1:
        return "just now"
    if hours < 24:
        return f"{hours} hours ago"
    if hours < 48:
        return "1 day ago"
    return f"{hours // 24} days ago"


def _header(title: str, subtitle: str) -> str:
    return (
        f'<div style="background:{_BRAND};color:#fff;padding:24px 16px;text-align:center;border-radius:8px 8px 0 0">'
        f'<h1 style="margin:0;font-size:24px">{escape(title)}</h1>'
        f'<p style="margin:8px 0 0;opacity:0.9">{escape(subtitle)}</p></div>'
    )


def _footer(app_url: str) -> str:
    return (
        '<hr style="border:none;border-top:1px solid #e0e0e0;margin:20px 0 8px">'
        '<p style="font-size:11px;color:#999">You are receiving this because of your GigScout email '
        f'preferences. <a href="{escape(app_url)}/settings" style="color:{_BRAND}">Manage alerts</a></p>'
    )


def _skill_tags(skills: list[str]) -> str:
    if not skills:
        skills = ["Not specified"]
    return "".join(
        '<span style="background:#e5e7eb;color:#374151;padding:4px 10px;border-radius:12px;'
        f'font-size:12px;margin:2px 4px 2px 0;display:inline-block">{escape(s)}</span>'
        for s in skills
    )


def _location(listing: Listing) -> str:
    return "Remote" if listing.remote_allowed else escape(listing.location)


def perfect_match_subject(listing: Listing) -> str:
    return f"\U0001F3AF Perfect Match Found: {listing.title}"


def render_perfect_match(
    pref: UserEmailPreference,
    listing: Listing,
    *,
    app_url: str = "https://gigscout.com",
    now: datetime | None = None,
) -> str:
    desc = listing.description or ""
    preview = desc[:_DESCRIPTION_PREVIEW] + ("..." if len(desc) > _DESCRIPTION_PREVIEW else "")
    return f"""{_WRAP_OPEN}
{_header("Perfect Match Found!", "A new opportunity matches your preferences")}
<p>Hi <strong>{escape(pref.display_name)}</strong>,</p>
<p>We found a gig that is a perfect match for your skills and preferences:</p>
<div style="background:#f8f9fa;padding:20px;border-radius:8px;border-left:5px solid {_BRAND}">
<h2 style="margin:0 0 8px;color:{_BRAND}">{escape(listing.title)}</h2>
<p style="margin:0 0 8px"><span style="background:#10b981;color:#fff;padding:4px 12px;border-radius:12px;font-weight:bold">{listing.relevance_score}/10 Match</span></p>
<div><strong>Company:</strong> {escape(listing.company)}</div>
<div><strong>Location:</strong> {_location(listing)}</div>
<div><strong>Rate:</strong> {escape(format_rate(listing))}</div>
<div><strong>Posted:</strong> {format_time_ago(listing.date_posted, now)}</div>
<div style="margin:12px 0"><strong>Skills:</strong><br>{_skill_tags(listing.skills)}</div>
<p style="line-height:1.6">{escape(preview)}</p>
</div>
<p><a href="{escape(listing.external_url)}" style="background:{_BRAND};color:#fff;padding:12px 24px;text-decoration:none;border-radius:6px;display:inline-block">View Opportunity</a></p>
{_footer(app_url)}
{_WRAP_CLOSE}"""


def daily_digest_subject(listings: list[Listing]) -> str:
    return f"\U0001F4EC Your Daily Opportunity Digest - {len(listings)} New Jobs"


def _digest_row(listing: Listing) -> str:
    return (
        '<tr>'
        f'<td style="border-bottom:1px solid #eee;padding:8px"><a href="{escape(listing.external_url)}" '
        f'style="color:{_BRAND};font-weight:bold">{escape(listing.title)}</a><br>'
        f'<span style="color:#666;font-size:13px">{escape(listing.company)} &middot; {_location(listing)}</span></td>'
        f'<td style="border-bottom:1px solid #eee;padding:8px;white-space:nowrap">{escape(format_rate(listing))}</td>'
        f'<td style="border-bottom:1px solid #eee;padding:8px;text-align:center">{listing.relevance_score}/10</td>'
        '</tr>'
    )


def render_daily_digest(
    pref: UserEmailPreference,
    listings: list[Listing],
    *,
    app_url: str = "https://gigscout.com",
) -> str:
    top = ", ".join(name for name, _ in skill_counts(listings).most_common(3)) or "Various skills"
    perfect = sum(1 for l in listings if l.relevance_score >= 8)
    rows = "\n".join(_digest_row(l) for l in listings)
    return f"""{_WRAP_OPEN}
{_header("Your Daily Digest", f"{len(listings)} new opportunities from the last 24 hours")}
<p>Hi <strong>{escape(pref.display_name)}</strong>,</p>
<p><strong>{len(listings)}</strong> new gigs &middot; <strong>{perfect}</strong> perfect matches &middot;
average <strong>${average_hourly_rate(listings)}/hour</strong> &middot; top skills: {escape(top)}</p>
<table style="border-collapse:collapse;width:100%;font-size:14px">
<tr><th style="text-align:left;padding:8px;background:#f5f7fa">Opportunity</th>
<th style="text-align:left;padding:8px;background:#f5f7fa">Rate</th>
<th style="padding:8px;background:#f5f7fa">Match</th></tr>
{rows}
</table>
<p><a href="{escape(app_url)}" style="color:{_BRAND}">See all opportunities</a></p>
{_footer(app_url)}
{_WRAP_CLOSE}"""


def weekly_trends_subject() -> str:
    return "\U0001F4CA Weekly Market Trends & Insights"


def _signed(n: int) -> str:
    return f"+{n}%" if n >= 0 else f"{n}%"


def render_weekly_trends(
    pref: UserEmailPreference,
    trends: TrendReport,
    *,
    app_url: str = "https://gigscout.com",
) -> str:
    skills = "\n".join(
        f'<li>{escape(s["name"])}: {s["count"]} listings ({_signed(s["growth"])})</li>'
        for s in trends.top_skills
    )
    companies = "\n".join(
        f'<li>{escape(c["name"])}: {c["job_count"]} listings</li>' for c in trends.top_companies
    )
    insights = "\n".join(f"<li>{escape(text)}</li>" for text in trends.insights.values())
    recs = "\n".join(f"<li>{escape(text)}</li>" for text in trends.recommendations)

    # Personal touch: the reader's own skills that are trending this week
    trending = {s["name"].lower() for s in trends.top_skills}
    yours = [s for s in pref.skills if any(s.lower() in t for t in trending)]
    personal = (
        f"<p>Good news: your skills in <strong>{escape(', '.join(yours))}</strong> are in demand this week.</p>"
        if yours else ""
    )

    return f"""{_WRAP_OPEN}
{_header("Weekly Market Trends", "What changed in the social media gig market")}
<p>Hi <strong>{escape(pref.display_name)}</strong>,</p>
{personal}
<table style="width:100%;text-align:center;margin:12px 0"><tr>
<td><strong style="font-size:20px">{trends.total_jobs}</strong><br>listings ({_signed(trends.job_growth)})</td>
<td><strong style="font-size:20px">${trends.avg_rate}</strong><br>avg hourly ({_signed(trends.rate_change)})</td>
<td><strong style="font-size:20px">{trends.remote_percent}%</strong><br>remote ({_signed(trends.remote_growth)})</td>
</tr></table>
<h3 style="color:{_BRAND}">Top skills</h3>
<ul>{skills}</ul>
<h3 style="color:{_BRAND}">Most active companies</h3>
<ul>{companies}</ul>
<h3 style="color:{_BRAND}">Insights</h3>
<ul>{insights}</ul>
<h3 style="color:{_BRAND}">Recommendations</h3>
<ul>{recs}</ul>
{_footer(app_url)}
{_WRAP_CLOSE}"""
