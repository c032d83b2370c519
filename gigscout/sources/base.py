from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from gigscout.log import get_logger
from gigscout.models import Listing
from gigscout.scorer import extract_skills, score_listing

log = get_logger(__name__)

DEFAULT_MIN_RELEVANCE = 3
DEFAULT_BATCH_SIZE = 20


class ListingSource(ABC):
    """One external feed of gigs, normalized into :class:`Listing` objects."""

    name: str = "unknown"
    # Synthetic sources keep every listing regardless of score
    apply_relevance_filter: bool = True

    def __init__(
        self,
        *,
        min_relevance: int = DEFAULT_MIN_RELEVANCE,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.min_relevance = min_relevance
        self.batch_size = batch_size

    @abstractmethod
    def fetch_raw(self) -> list[dict[str, Any]]:
        """Pull raw records from the source. May raise."""

    @abstractmethod
    def normalize(self, raw: dict[str, Any]) -> Listing | None:
        """Map one raw record to a Listing, or None to drop it."""

    def score(self, listing: Listing) -> Listing:
        if not listing.skills:
            listing.skills = extract_skills(listing.description)
        listing.relevance_score = score_listing(listing.title, listing.description, listing.company)
        return listing

    def fetch(self) -> list[Listing]:
        """Fetched, scored, filtered and capped listings; ``[]`` on any failure."""
        try:
            raw_items = self.fetch_raw()
        except Exception as exc:
            log.warning("[%s] fetch failed: %s", self.name, exc)
            return []

        listings: list[Listing] = []
        dropped = 0
        for raw in raw_items[: self.batch_size]:
            try:
                listing = self.normalize(raw)
            except Exception as exc:
                log.debug("[%s] skipping unparseable record: %s", self.name, exc)
                dropped += 1
                continue
            if listing is None:
                dropped += 1
                continue
            self.score(listing)
            if self.apply_relevance_filter and listing.relevance_score < self.min_relevance:
                dropped += 1
                continue
            listings.append(listing)

        log.info("[%s] %d relevant listing(s), %d dropped", self.name, len(listings), dropped)
        return listings
