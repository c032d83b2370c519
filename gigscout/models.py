"""Data models for listings, email preferences, send logs and run summaries."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

RATE_TYPES = ("hourly", "monthly", "project")
LISTING_STATUSES = ("active", "archived")

PERFECT_MATCH = "perfect_match"
DAILY_DIGEST = "daily_digest"
WEEKLY_TRENDS = "weekly_trends"
EMAIL_TYPES = (PERFECT_MATCH, DAILY_DIGEST, WEEKLY_TRENDS)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Accept datetimes, ISO strings (with or without 'Z') and epoch seconds."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def _as_float(value: Any, default: float | None = None) -> float | None:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_skill_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    out = [str(s).strip() for s in value if str(s).strip()]
    return list(dict.fromkeys(out))


@dataclass
class Listing:
    external_url: str
    source_name: str
    title: str
    company: str = "Company"
    description: str = ""
    location: str = "Various"
    remote_allowed: bool = False
    rate_type: str = "hourly"
    rate_min: float = 0
    rate_max: float = 0
    skills: list[str] = field(default_factory=list)
    relevance_score: int = 0
    date_posted: datetime = field(default_factory=utcnow)
    status: str = "active"
    id: Any = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.rate_type not in RATE_TYPES:
            self.rate_type = "hourly"
        if self.status not in LISTING_STATUSES:
            self.status = "active"
        if self.rate_min > self.rate_max:
            self.rate_min, self.rate_max = self.rate_max, self.rate_min
        self.skills = _as_skill_list(self.skills)

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "external_url": self.external_url,
            "source_name": self.source_name,
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "location": self.location,
            "remote_allowed": self.remote_allowed,
            "rate_type": self.rate_type,
            "rate_min": self.rate_min,
            "rate_max": self.rate_max,
            "skills": list(self.skills),
            "relevance_score": self.relevance_score,
            "date_posted": _iso(self.date_posted),
            "status": self.status,
        }
        if self.id is not None:
            row["id"] = self.id
        if self.created_at is not None:
            row["created_at"] = _iso(self.created_at)
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Listing":
        rate_min = _as_float(row.get("rate_min"), 0.0)
        return cls(
            external_url=row.get("external_url") or "",
            source_name=row.get("source_name") or "unknown",
            title=row.get("title") or "",
            company=row.get("company") or "Company",
            description=row.get("description") or "",
            location=row.get("location") or "Various",
            remote_allowed=bool(row.get("remote_allowed")),
            rate_type=row.get("rate_type") or "hourly",
            rate_min=rate_min,
            rate_max=_as_float(row.get("rate_max"), rate_min),
            skills=_as_skill_list(row.get("skills")),
            relevance_score=int(row.get("relevance_score") or 0),
            date_posted=parse_timestamp(row.get("date_posted")) or utcnow(),
            status=row.get("status") or "active",
            id=row.get("id"),
            created_at=parse_timestamp(row.get("created_at")),
        )

    @property
    def ingested_at(self) -> datetime:
        """When the listing entered the store; falls back to its post date."""
        return self.created_at or self.date_posted


@dataclass
class UserEmailPreference:
    user_id: str
    email: str = ""
    perfect_match_alerts: bool = True
    daily_digest: bool = True
    weekly_trends: bool = False
    min_rate: float | None = None
    max_rate: float | None = None
    skills: list[str] = field(default_factory=list)
    notification_time: str = "08:00"

    def to_row(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "perfect_match_alerts": self.perfect_match_alerts,
            "daily_digest": self.daily_digest,
            "weekly_trends": self.weekly_trends,
            "min_rate": self.min_rate,
            "max_rate": self.max_rate,
            "skills": list(self.skills),
            "notification_time": self.notification_time,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "UserEmailPreference":
        def flag(key: str, default: bool) -> bool:
            value = row.get(key)
            return default if value is None else bool(value)

        return cls(
            user_id=str(row.get("user_id") or ""),
            email=(row.get("email") or "").strip(),
            perfect_match_alerts=flag("perfect_match_alerts", True),
            daily_digest=flag("daily_digest", True),
            weekly_trends=flag("weekly_trends", False),
            min_rate=_as_float(row.get("min_rate")),
            max_rate=_as_float(row.get("max_rate")),
            skills=_as_skill_list(row.get("skills")),
            notification_time=row.get("notification_time") or "08:00",
        )

    @property
    def display_name(self) -> str:
        return self.email.split("@")[0] if self.email else "there"


@dataclass
class EmailLogEntry:
    user_id: str
    email_type: str
    listing_id: Any = None
    provider_message_id: str | None = None
    sent_at: datetime = field(default_factory=utcnow)

    def to_row(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email_type": self.email_type,
            "listing_id": self.listing_id,
            "provider_message_id": self.provider_message_id,
            "sent_at": _iso(self.sent_at),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "EmailLogEntry":
        return cls(
            user_id=str(row.get("user_id") or ""),
            email_type=row.get("email_type") or "",
            listing_id=row.get("listing_id"),
            provider_message_id=row.get("provider_message_id"),
            sent_at=parse_timestamp(row.get("sent_at")) or utcnow(),
        )


@dataclass
class ScrapeRunSummary:
    timestamp: datetime
    total_scanned: int
    total_saved: int
    per_source: dict[str, int] = field(default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "total_scanned": self.total_scanned,
            "total_saved": self.total_saved,
            "per_source": dict(self.per_source),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ScrapeRunSummary":
        return cls(
            timestamp=parse_timestamp(row.get("timestamp")) or utcnow(),
            total_scanned=int(row.get("total_scanned") or 0),
            total_saved=int(row.get("total_saved") or 0),
            per_source={k: int(v) for k, v in (row.get("per_source") or {}).items()},
        )


@dataclass
class EmailMessage:
    from_addr: str
    to: str
    subject: str
    html_body: str
    reply_to: str | None = None


@dataclass
class SendResult:
    success: bool
    provider_message_id: str | None = None
    error: str | None = None
    demo: bool = False
