"""Typed queries over the store used by the scrape pipeline and the email engine."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from gigscout.log import get_logger
from gigscout.models import (
    EmailLogEntry,
    Listing,
    ScrapeRunSummary,
    UserEmailPreference,
    parse_timestamp,
)
from gigscout.store import EMAIL_LOGS, LISTINGS, SCRAPE_RUNS, USER_PREFERENCES, Store

log = get_logger(__name__)

_LAST_RUN_KEY = "latest"


# ── Listings ─────────────────────────────────────────────────────────────

def save_new_listings(store: Store, listings: list[Listing]) -> int:
    """Insert listings whose external URL is not stored yet; return how many.

    Two concurrent callers can both miss the same URL between the lookup and
    the insert. Callers in one process serialize through the job scheduler's
    run lock; across processes only a unique constraint in the store helps.
    """
    if not listings:
        return 0

    urls = [item.external_url for item in listings if item.external_url]
    existing = {row.get("external_url") for row in store.select_in(LISTINGS, "external_url", urls)}

    fresh: list[dict[str, Any]] = []
    seen: set[str] = set()
    for item in listings:
        url = item.external_url
        if not url or url in existing or url in seen:
            continue
        seen.add(url)
        fresh.append(item.to_row())

    if not fresh:
        log.info("No new listings (%d already stored)", len(listings))
        return 0

    inserted = store.insert(LISTINGS, fresh)
    log.info("Saved %d new listing(s) out of %d", len(inserted), len(listings))
    return len(inserted)


def _listings(store: Store, status: str | None) -> list[Listing]:
    rows = store.select(LISTINGS, status=status) if status else store.select(LISTINGS)
    return [Listing.from_row(r) for r in rows]


def listings_since(
    store: Store,
    since: datetime,
    *,
    min_score: int = 0,
    status: str | None = "active",
) -> list[Listing]:
    return [
        item for item in _listings(store, status)
        if item.ingested_at >= since and item.relevance_score >= min_score
    ]


def listings_between(
    store: Store,
    start: datetime,
    end: datetime,
    *,
    status: str | None = "active",
) -> list[Listing]:
    """Listings ingested in [start, end)."""
    return [item for item in _listings(store, status) if start <= item.ingested_at < end]


# ── Preferences ──────────────────────────────────────────────────────────

def preferences_with(store: Store, flag: str) -> list[UserEmailPreference]:
    """Users who have *flag* (e.g. ``daily_digest``) switched on.

    Filters after ``from_row`` so rows missing the flag get the model default.
    """
    prefs = [UserEmailPreference.from_row(r) for r in store.select(USER_PREFERENCES)]
    return [p for p in prefs if getattr(p, flag)]


def get_preferences(store: Store, user_id: str) -> UserEmailPreference | None:
    rows = store.select(USER_PREFERENCES, user_id=user_id)
    return UserEmailPreference.from_row(rows[0]) if rows else None


def upsert_preferences(store: Store, pref: UserEmailPreference) -> UserEmailPreference:
    row = store.upsert(USER_PREFERENCES, pref.to_row(), key="user_id")
    return UserEmailPreference.from_row(row)


def delete_preferences(store: Store, user_id: str) -> bool:
    return store.delete(USER_PREFERENCES, "user_id", user_id) > 0


# ── Email logs ───────────────────────────────────────────────────────────

def has_email_log(
    store: Store,
    user_id: str,
    email_type: str,
    *,
    listing_id: Any = None,
    since: datetime | None = None,
) -> bool:
    filters: dict[str, Any] = {"user_id": user_id, "email_type": email_type}
    if listing_id is not None:
        filters["listing_id"] = listing_id
    for row in store.select(EMAIL_LOGS, **filters):
        if since is None:
            return True
        sent_at = parse_timestamp(row.get("sent_at"))
        if sent_at and sent_at >= since:
            return True
    return False


def record_email(store: Store, entry: EmailLogEntry) -> None:
    store.insert(EMAIL_LOGS, [entry.to_row()])
    log.debug("Email log saved: %s for %s", entry.email_type, entry.user_id)


def email_logs_since(store: Store, since: datetime) -> list[EmailLogEntry]:
    entries = [EmailLogEntry.from_row(r) for r in store.select(EMAIL_LOGS)]
    return [e for e in entries if e.sent_at >= since]


# ── Scrape runs ──────────────────────────────────────────────────────────

def save_last_run(store: Store, summary: ScrapeRunSummary) -> None:
    store.upsert(SCRAPE_RUNS, {"key": _LAST_RUN_KEY, **summary.to_row()}, key="key")


def load_last_run(store: Store) -> ScrapeRunSummary | None:
    rows = store.select(SCRAPE_RUNS, key=_LAST_RUN_KEY)
    return ScrapeRunSummary.from_row(rows[0]) if rows else None
