from gigscout.models import Listing
from gigscout.scraper import ScrapeOrchestrator
from gigscout.sources import ListingSource
from gigscout.store import LISTINGS


class StaticSource(ListingSource):
    def __init__(self, name, listings, **kwargs):
        super().__init__(**kwargs)
        self.name = name
        self.listings = listings

    def fetch_raw(self):
        return self.listings

    def normalize(self, raw):
        return raw


class ExplodingSource(ListingSource):
    """Fails outside fetch_raw, so the base class can't catch it."""

    name = "Exploding"

    def fetch(self):
        raise RuntimeError("network down")

    def fetch_raw(self):
        return []

    def normalize(self, raw):
        return None


def _listing(url, title="Social Media Marketing Manager"):
    return Listing(external_url=url, source_name="Static", title=title,
                   description="Manage Instagram and TikTok marketing")


def test_run_all_counts_per_source_and_saves(store):
    a = StaticSource("A", [_listing("https://a/1"), _listing("https://a/2")])
    b = StaticSource("B", [_listing("https://b/1")])
    summary = ScrapeOrchestrator(store, [a, b]).run_all()

    assert summary.per_source == {"A": 2, "B": 1}
    assert summary.total_scanned == 3
    assert summary.total_saved == 3
    assert len(store.select(LISTINGS)) == 3


def test_failing_source_does_not_stop_others(store, caplog):
    good = StaticSource("Good", [_listing("https://g/1")])
    with caplog.at_level("ERROR"):
        summary = ScrapeOrchestrator(store, [ExplodingSource(), good]).run_all()

    assert summary.per_source == {"Exploding": 0, "Good": 1}
    assert summary.total_saved == 1
    assert any("FAILED" in rec.message for rec in caplog.records)


def test_second_run_saves_nothing_new(store):
    source = StaticSource("A", [_listing("https://a/1"), _listing("https://a/2")])
    orchestrator = ScrapeOrchestrator(store, [source])
    assert orchestrator.run_all().total_saved == 2

    again = orchestrator.run_all()
    assert again.total_scanned == 2
    assert again.total_saved == 0
    assert len(store.select(LISTINGS)) == 2


def test_same_url_from_two_sources_is_stored_once(store):
    a = StaticSource("A", [_listing("https://shared/1")])
    b = StaticSource("B", [_listing("https://shared/1")])
    summary = ScrapeOrchestrator(store, [a, b]).run_all()
    assert summary.total_scanned == 2
    assert summary.total_saved == 1


def test_irrelevant_listings_never_reach_the_store(store):
    source = StaticSource("A", [_listing("https://a/1", title="Backend Engineer")])
    summary = ScrapeOrchestrator(store, [source]).run_all()
    assert summary.total_scanned == 0
    assert store.select(LISTINGS) == []


def test_persist_failure_reports_zero_saved(store):
    def broken_persist(store, listings):
        raise OSError("disk full")

    source = StaticSource("A", [_listing("https://a/1")])
    summary = ScrapeOrchestrator(store, [source], persist=broken_persist).run_all()
    assert summary.total_scanned == 1
    assert summary.total_saved == 0


def test_no_sources(store):
    summary = ScrapeOrchestrator(store, []).run_all()
    assert (summary.total_scanned, summary.total_saved, summary.per_source) == (0, 0, {})
