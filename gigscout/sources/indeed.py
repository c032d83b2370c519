"""Indeed public RSS search feed, fetched through the allorigins JSON proxy.

The proxy wraps the upstream body as ``{"contents": "<rss ...>"}``.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import feedparser
import requests
from bs4 import BeautifulSoup

from gigscout.errors import SourceError
from gigscout.log import get_logger
from gigscout.models import Listing, parse_timestamp, utcnow
from gigscout.retry import retry
from gigscout.sources.base import ListingSource

log = get_logger(__name__)

DEFAULT_FEED_URL = "https://www.indeed.com/rss?q=social+media+marketing&l=&radius=25"
DEFAULT_PROXY_URL = "https://api.allorigins.win/get"

DEFAULT_RATE_MIN = 25
DEFAULT_RATE_MAX = 100


def strip_html(text: str) -> str:
    if not text:
        return ""
    return " ".join(BeautifulSoup(text, "html.parser").get_text().split())


def _entry_date(entry: Any) -> datetime | None:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    return parse_timestamp(entry.get("published"))


def parse_feed(body: str) -> list[dict[str, Any]]:
    """Flatten feed entries into plain dicts; a malformed body yields what parsed."""
    feed = feedparser.parse(body)
    if feed.bozo and not feed.entries:
        log.warning("Unparseable feed: %s", feed.get("bozo_exception"))
    return [
        {
            "title": (entry.get("title") or "").strip(),
            "link": (entry.get("link") or "").strip(),
            "description": entry.get("summary") or "",
            "date_posted": _entry_date(entry),
        }
        for entry in feed.entries
    ]


class IndeedRssSource(ListingSource):
    name = "Indeed"

    def __init__(
        self,
        feed_url: str = DEFAULT_FEED_URL,
        proxy_url: str = DEFAULT_PROXY_URL,
        timeout: float = 15,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.feed_url = feed_url
        self.proxy_url = proxy_url
        self.timeout = timeout

    @retry(max_attempts=2, base_delay=1.5, retryable=(requests.RequestException, OSError))
    def _download(self) -> str:
        if self.proxy_url:
            r = requests.get(self.proxy_url, params={"url": self.feed_url}, timeout=self.timeout)
            r.raise_for_status()
            payload = r.json()
            if not isinstance(payload, dict):
                raise SourceError("proxy response is not a JSON object")
            return payload.get("contents") or ""
        r = requests.get(self.feed_url, timeout=self.timeout)
        r.raise_for_status()
        return r.text

    def fetch_raw(self) -> list[dict[str, Any]]:
        body = self._download()
        if not body:
            log.warning("[%s] empty feed body", self.name)
            return []
        items = parse_feed(body)
        log.debug("[%s] feed returned %d item(s)", self.name, len(items))
        return items

    def normalize(self, raw: dict[str, Any]) -> Listing | None:
        full_title = raw.get("title") or ""
        link = raw.get("link") or ""
        if not full_title or not link:
            return None

        # "Job Title - Company"
        parts = full_title.split(" - ")
        title = parts[0].strip() or full_title
        company = parts[1].strip() if len(parts) > 1 and parts[1].strip() else "Company"
        description = strip_html(raw.get("description") or "")

        return Listing(
            external_url=link,
            source_name=self.name,
            title=title,
            company=company,
            description=description,
            location="Various",
            remote_allowed="remote" in description.lower(),
            rate_type="hourly",
            rate_min=DEFAULT_RATE_MIN,
            rate_max=DEFAULT_RATE_MAX,
            date_posted=raw.get("date_posted") or utcnow(),
        )
