"""
Scrape orchestrator.

One cycle: every source → score/filter (inside the source) → concatenate →
dedup-insert into the store → ScrapeRunSummary.
"""
from __future__ import annotations

from typing import Callable

from gigscout.log import get_logger
from gigscout.models import Listing, ScrapeRunSummary, utcnow
from gigscout.repository import save_new_listings
from gigscout.sources import ListingSource
from gigscout.store import Store

log = get_logger(__name__)


def _fetch_source(source: ListingSource) -> list[Listing]:
    """Isolate one source: a failure here never reaches its siblings."""
    try:
        results = source.fetch()
        log.info("[%s] returned %d listing(s)", source.name, len(results))
        return results
    except Exception as exc:
        log.error("[%s] FAILED: %s", source.name, exc)
        return []


class ScrapeOrchestrator:
    def __init__(
        self,
        store: Store,
        sources: list[ListingSource],
        *,
        persist: Callable[[Store, list[Listing]], int] = save_new_listings,
    ) -> None:
        self.store = store
        self.sources = sources
        self._persist = persist

    def run_all(self) -> ScrapeRunSummary:
        log.info("Starting scrape cycle across %d source(s)...", len(self.sources))

        per_source: dict[str, int] = {}
        batch: list[Listing] = []
        for source in self.sources:
            results = _fetch_source(source)
            per_source[source.name] = per_source.get(source.name, 0) + len(results)
            batch.extend(results)

        try:
            saved = self._persist(self.store, batch)
        except Exception as exc:
            log.error("Saving listings failed: %s", exc)
            saved = 0

        summary = ScrapeRunSummary(
            timestamp=utcnow(),
            total_scanned=len(batch),
            total_saved=saved,
            per_source=per_source,
        )
        log.info(
            "Scrape complete: saved %d new listing(s) out of %d scanned",
            summary.total_saved, summary.total_scanned,
        )
        return summary
