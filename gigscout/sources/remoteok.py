"""RemoteOK: free JSON API of remote jobs (no API key required).

Docs: https://remoteok.com/api. The first array element is a legal notice,
not a job.
"""
from __future__ import annotations

from typing import Any

import requests

from gigscout.errors import SourceError
from gigscout.log import get_logger
from gigscout.models import Listing, parse_timestamp, utcnow
from gigscout.retry import retry
from gigscout.sources.base import ListingSource

log = get_logger(__name__)

API_URL = "https://remoteok.io/api"

DEFAULT_SALARY_MIN = 50_000
DEFAULT_SALARY_MAX = 100_000

_TOPIC_WORDS = ("marketing", "social")


def _is_marketing(hit: dict[str, Any]) -> bool:
    tags = " ".join(str(t) for t in hit.get("tags") or []).lower()
    desc = (hit.get("description") or "").lower()
    return any(w in tags for w in _TOPIC_WORDS) or "social media" in desc or "marketing" in desc


class RemoteOkSource(ListingSource):
    name = "RemoteOK"

    def __init__(self, api_url: str = API_URL, timeout: float = 15, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_url = api_url
        self.timeout = timeout

    @retry(max_attempts=2, base_delay=1.5, retryable=(requests.RequestException, OSError))
    def _download(self) -> list[Any]:
        # RemoteOK rejects requests without a browser-ish user agent
        r = requests.get(
            self.api_url,
            headers={"User-Agent": "gigscout/1.0"},
            timeout=self.timeout,
        )
        r.raise_for_status()
        data = r.json()
        if not isinstance(data, list):
            raise SourceError(f"expected a JSON array, got {type(data).__name__}")
        return data

    def fetch_raw(self) -> list[dict[str, Any]]:
        data = self._download()
        jobs = [hit for hit in data if isinstance(hit, dict) and "legal" not in hit]
        log.debug("[%s] API returned %d job(s)", self.name, len(jobs))
        return jobs

    def normalize(self, raw: dict[str, Any]) -> Listing | None:
        if not raw.get("tags") or not _is_marketing(raw):
            return None

        salary_min = raw.get("salary_min") or DEFAULT_SALARY_MIN
        salary_max = raw.get("salary_max") or DEFAULT_SALARY_MAX
        url = raw.get("url") or f"https://remoteok.io/remote-jobs/{raw.get('id', '')}"
        posted = parse_timestamp(raw.get("epoch") or raw.get("date"))

        return Listing(
            external_url=url,
            source_name=self.name,
            title=raw.get("position") or "Marketing Position",
            company=raw.get("company") or "Remote Company",
            description=raw.get("description") or "",
            location="Remote",
            remote_allowed=True,
            rate_type="monthly",
            rate_min=int(salary_min) // 12,
            rate_max=int(salary_max) // 12,
            skills=[str(t) for t in raw.get("tags") or []],
            date_posted=posted or utcnow(),
        )
