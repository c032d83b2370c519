"""
Wire the store, sources, engine and both schedulers together and run them.

Usage:
  python run_scheduler.py          # start both schedulers, run until Ctrl-C
  python run_scheduler.py --once   # one scrape + one pass of every email check
  python run_scheduler.py -v       # debug output on the console
"""
from __future__ import annotations

import signal
import threading
from dataclasses import dataclass
from typing import Any

from gigscout.config import Settings, ensure_dirs, load_settings
from gigscout.email_scheduler import EmailScheduler
from gigscout.email_sender import EmailSink, build_sink
from gigscout.log import get_logger, set_level
from gigscout.notifications import NotificationEngine
from gigscout.scheduler import JobScheduler
from gigscout.scraper import ScrapeOrchestrator
from gigscout.sources import get_sources
from gigscout.store import Store, build_store

log = get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    store: Store
    orchestrator: ScrapeOrchestrator
    job_scheduler: JobScheduler
    engine: NotificationEngine
    email_scheduler: EmailScheduler

    def start(self) -> None:
        self.job_scheduler.start()
        self.email_scheduler.start()

    def stop(self) -> None:
        self.email_scheduler.stop()
        self.job_scheduler.stop()

    def status(self) -> dict[str, Any]:
        return {
            "jobs": self.job_scheduler.status(),
            "email": self.email_scheduler.status(),
            "email_stats": self.engine.email_stats(),
        }


def build_services(
    settings: Settings | None = None,
    *,
    store: Store | None = None,
    sink: EmailSink | None = None,
) -> Services:
    settings = settings or load_settings()
    if store is None:
        if settings.store_backend == "json":
            ensure_dirs(settings)
        store = build_store(settings.store_backend, settings.data_dir)
    orchestrator = ScrapeOrchestrator(store, get_sources(settings))
    job_scheduler = JobScheduler(
        orchestrator, interval=settings.scrape_interval_seconds, store=store,
    )
    engine = NotificationEngine(store, sink or build_sink(settings), settings)
    email_scheduler = EmailScheduler(engine, settings)
    return Services(settings, store, orchestrator, job_scheduler, engine, email_scheduler)


def run_once(services: Services) -> dict[str, Any]:
    summary = services.job_scheduler.run_now()
    emails = services.email_scheduler.run_all_checks()
    if summary is not None:
        log.info(
            "Scanned: %d, Saved: %d, Per source: %s",
            summary.total_scanned, summary.total_saved, summary.per_source,
        )
    log.info("Emails sent: %s", emails)
    return {"scrape": summary, "emails": emails}


def run_forever(services: Services) -> None:
    stop = threading.Event()

    def _handle(signum, frame) -> None:
        log.info("Received signal %d, shutting down", signum)
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)

    services.start()
    try:
        while not stop.wait(60):
            status = services.job_scheduler.status()
            last = status["last_run"]
            if last is not None:
                log.debug("Last scrape at %s saved %d", last.timestamp.isoformat(), last.total_saved)
    finally:
        services.stop()


def main(argv: list[str]) -> int:
    if "-v" in argv or "--verbose" in argv:
        set_level("DEBUG")
    services = build_services()
    if "--once" in argv:
        run_once(services)
        return 0
    log.info(
        "Scheduler: scraping every %.0fs, email checks every %.0fs/%.0fs/%.0fs",
        services.settings.scrape_interval_seconds,
        services.settings.perfect_match_interval_seconds,
        services.settings.daily_digest_interval_seconds,
        services.settings.weekly_trends_interval_seconds,
    )
    run_forever(services)
    return 0
