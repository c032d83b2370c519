"""
Email notification engine.

Three independent checks, each guarded by the email log so re-running them is
safe:

* perfect match: listings scored 8+ in the last 2 hours, per matching user;
* daily digest: once per local day, during the digest hour;
* weekly trends: once per ISO week, on the trends weekday and hour.

A log row is written only after a successful send, so a failed send is retried
by the next pass.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from gigscout.config import Settings
from gigscout.email_sender import EmailSink
from gigscout.email_templates import (
    daily_digest_subject,
    perfect_match_subject,
    render_daily_digest,
    render_perfect_match,
    render_weekly_trends,
    weekly_trends_subject,
)
from gigscout.log import get_logger
from gigscout.models import (
    DAILY_DIGEST,
    EMAIL_TYPES,
    PERFECT_MATCH,
    WEEKLY_TRENDS,
    EmailLogEntry,
    EmailMessage,
    Listing,
    UserEmailPreference,
)
from gigscout.repository import (
    email_logs_since,
    has_email_log,
    listings_since,
    preferences_with,
    record_email,
)
from gigscout.store import Store
from gigscout.trends import weekly_trends

log = get_logger(__name__)


def matches_preferences(listing: Listing, pref: UserEmailPreference) -> bool:
    """Skill overlap (user skill inside a listing skill) and rate bounds.

    Empty skill lists and unset or zero rate bounds do not constrain.
    """
    if pref.skills:
        listing_skills = [s.lower() for s in listing.skills]
        wanted = [s.lower() for s in pref.skills]
        if not any(w in s for s in listing_skills for w in wanted):
            return False
    if pref.min_rate and listing.rate_min < pref.min_rate:
        return False
    if pref.max_rate and listing.rate_max > pref.max_rate:
        return False
    return True


class NotificationEngine:
    def __init__(
        self,
        store: Store,
        sink: EmailSink,
        settings: Settings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.sink = sink
        self.settings = settings or Settings()
        self.tz = ZoneInfo(self.settings.timezone)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        """Current time in the configured timezone."""
        return self._clock().astimezone(self.tz)

    def _users(self, flag: str) -> list[UserEmailPreference] | None:
        try:
            users = preferences_with(self.store, flag)
        except Exception as exc:
            log.error("Error fetching users for %s: %s", flag, exc)
            return None
        log.info("Found %d user(s) with %s enabled", len(users), flag)
        return users

    def _deliver(
        self,
        pref: UserEmailPreference,
        email_type: str,
        subject: str,
        html_body: str,
        *,
        listing_id: Any = None,
    ) -> bool:
        message = EmailMessage(
            from_addr=self.settings.from_email,
            to=pref.email,
            subject=subject,
            html_body=html_body,
            reply_to=self.settings.reply_to_email,
        )
        try:
            result = self.sink.send(message)
        except Exception as exc:
            log.error("Sending %s to %s raised: %s", email_type, pref.email, exc)
            return False
        if not result.success:
            log.warning("Sending %s to %s failed: %s", email_type, pref.email, result.error)
            return False

        entry = EmailLogEntry(
            user_id=pref.user_id,
            email_type=email_type,
            listing_id=listing_id,
            provider_message_id=result.provider_message_id,
            sent_at=self._clock(),
        )
        try:
            record_email(self.store, entry)
        except Exception as exc:
            # Sent but unrecorded: the next pass may send a duplicate
            log.error("Error logging %s for %s: %s", email_type, pref.user_id, exc)
        return True

    # ── Perfect match ────────────────────────────────────────────────────

    def check_perfect_matches(self) -> int:
        log.info("Checking for perfect matches...")
        users = self._users("perfect_match_alerts")
        if not users:
            return 0

        now = self.now()
        since = now - timedelta(hours=self.settings.perfect_match_window_hours)
        sent = 0
        for pref in users:
            if not pref.email:
                log.debug("User %s has no email address, skipping", pref.user_id)
                continue
            try:
                sent += self._perfect_matches_for(pref, since, now)
            except Exception as exc:
                log.error("Perfect match check failed for user %s: %s", pref.user_id, exc)
        log.info("Perfect match alerts sent: %d", sent)
        return sent

    def _perfect_matches_for(self, pref: UserEmailPreference, since: datetime, now: datetime) -> int:
        matches = listings_since(self.store, since, min_score=self.settings.perfect_match_min_score)
        log.debug("Found %d perfect match(es) for %s", len(matches), pref.email)
        sent = 0
        for listing in matches:
            if has_email_log(self.store, pref.user_id, PERFECT_MATCH, listing_id=listing.id):
                continue
            if not matches_preferences(listing, pref):
                continue
            log.info("Sending perfect match alert for: %s", listing.title)
            html_body = render_perfect_match(pref, listing, app_url=self.settings.app_url, now=now)
            if self._deliver(pref, PERFECT_MATCH, perfect_match_subject(listing), html_body,
                             listing_id=listing.id):
                sent += 1
        return sent

    # ── Daily digest ─────────────────────────────────────────────────────

    def check_daily_digest(self, *, force: bool = False) -> int:
        """Send today's digest during the digest hour; *force* skips the hour gate."""
        now = self.now()
        if not force and now.hour != self.settings.digest_hour:
            log.debug("Daily digest: hour %d is outside the send window", now.hour)
            return 0

        log.info("Time for daily digests!")
        users = self._users("daily_digest")
        if not users:
            return 0

        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        since = now - timedelta(hours=24)
        sent = 0
        for pref in users:
            if not pref.email:
                continue
            try:
                if has_email_log(self.store, pref.user_id, DAILY_DIGEST, since=day_start):
                    continue
                listings = listings_since(self.store, since, min_score=self.settings.digest_min_score)
                listings.sort(key=lambda l: l.relevance_score, reverse=True)
                listings = listings[: self.settings.digest_limit]
                if not listings:
                    log.info("No digest-worthy listings for %s, skipping", pref.email)
                    continue
                log.info("Sending daily digest with %d opportunities to %s", len(listings), pref.email)
                html_body = render_daily_digest(pref, listings, app_url=self.settings.app_url)
                if self._deliver(pref, DAILY_DIGEST, daily_digest_subject(listings), html_body):
                    sent += 1
            except Exception as exc:
                log.error("Daily digest failed for user %s: %s", pref.user_id, exc)
        return sent

    # ── Weekly trends ────────────────────────────────────────────────────

    def check_weekly_trends(self, *, force: bool = False) -> int:
        """Send this week's trends on the trends weekday/hour; *force* skips the gate."""
        now = self.now()
        in_window = now.weekday() == self.settings.trends_weekday and now.hour == self.settings.trends_hour
        if not force and not in_window:
            log.debug("Weekly trends: day %d hour %d is outside the send window",
                      now.weekday(), now.hour)
            return 0

        log.info("Time for weekly trends!")
        users = self._users("weekly_trends")
        if not users:
            return 0

        trends = weekly_trends(self.store, now)
        week_start = (now - timedelta(days=now.weekday())).replace(
            hour=0, minute=0, second=0, microsecond=0,
        )
        sent = 0
        for pref in users:
            if not pref.email:
                continue
            try:
                if has_email_log(self.store, pref.user_id, WEEKLY_TRENDS, since=week_start):
                    continue
                log.info("Sending weekly trends to %s", pref.email)
                html_body = render_weekly_trends(pref, trends, app_url=self.settings.app_url)
                if self._deliver(pref, WEEKLY_TRENDS, weekly_trends_subject(), html_body):
                    sent += 1
            except Exception as exc:
                log.error("Weekly trends failed for user %s: %s", pref.user_id, exc)
        return sent

    # ── Stats ────────────────────────────────────────────────────────────

    def email_stats(self, days: int = 7) -> dict[str, int]:
        stats = {"total": 0, **{t: 0 for t in EMAIL_TYPES}}
        try:
            entries = email_logs_since(self.store, self._clock() - timedelta(days=days))
        except Exception as exc:
            log.error("Error getting email stats: %s", exc)
            return stats
        for entry in entries:
            stats["total"] += 1
            if entry.email_type in stats:
                stats[entry.email_type] += 1
        return stats
