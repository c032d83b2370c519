import os

os.environ.setdefault("GIGSCOUT_LOG_FILE", "0")

from datetime import datetime, timedelta, timezone

import pytest

from gigscout.config import Settings
from gigscout.email_sender import EmailSink
from gigscout.models import Listing, SendResult, UserEmailPreference
from gigscout.repository import upsert_preferences
from gigscout.store import LISTINGS, MemoryStore

# Monday, inside the default digest hour
MONDAY_0830 = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = MONDAY_0830):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingSink(EmailSink):
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, message):
        if self.fail:
            return SendResult(success=False, error="provider down")
        self.sent.append(message)
        return SendResult(success=True, provider_message_id=f"msg-{len(self.sent)}")


class FakeTimer:
    """Stands in for RepeatingTimer; never fires on its own."""

    created = []

    def __init__(self, interval, fn, *, initial_delay=None, name="timer"):
        self.interval = interval
        self.fn = fn
        self.initial_delay = initial_delay
        self.name = name
        self.started = False
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        return self.fn()


@pytest.fixture(autouse=True)
def _reset_fake_timers():
    FakeTimer.created = []
    yield
    FakeTimer.created = []


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_listing():
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "external_url": f"https://example.com/gig/{counter['n']}",
            "source_name": "Test",
            "title": "Social Media Marketing Manager",
            "company": "Acme",
            "description": "Manage Instagram and TikTok accounts.",
            "rate_type": "hourly",
            "rate_min": 50,
            "rate_max": 80,
            "skills": ["Instagram", "TikTok"],
            "relevance_score": 9,
        }
        fields.update(overrides)
        return Listing(**fields)

    return _make


@pytest.fixture
def add_listing(store, clock, make_listing):
    """Insert a listing ingested *age* before the fake clock's now."""

    def _add(age=timedelta(minutes=30), **overrides):
        listing = make_listing(**overrides)
        listing.created_at = clock.now - age
        row = store.insert(LISTINGS, [listing.to_row()])[0]
        return Listing.from_row(row)

    return _add


@pytest.fixture
def add_user(store):
    def _add(user_id="u1", **overrides):
        fields = {"user_id": user_id, "email": f"{user_id}@example.com"}
        fields.update(overrides)
        return upsert_preferences(store, UserEmailPreference(**fields))

    return _add
