"""
Interval timers and the hourly scrape scheduler.

The scheduler is an ordinary object owned by whoever starts the process
(see run_scheduler.py); nothing here is a module-level singleton.
"""
from __future__ import annotations

import threading
from typing import Any, Callable

from gigscout.log import get_logger
from gigscout.models import ScrapeRunSummary
from gigscout.repository import load_last_run, save_last_run
from gigscout.scraper import ScrapeOrchestrator
from gigscout.store import Store

log = get_logger(__name__)

DEFAULT_SCRAPE_INTERVAL = 3600.0


class RepeatingTimer:
    """Call *fn* every *interval* seconds on a daemon thread until cancelled.

    The next wait starts only after *fn* returns, so the period drifts by the
    run time and calls on one timer never overlap. An exception from *fn* is
    logged without stopping the timer. ``cancel()`` suppresses future firings
    only; a call already in progress runs to the end.
    """

    def __init__(
        self,
        interval: float,
        fn: Callable[[], Any],
        *,
        initial_delay: float | None = None,
        name: str = "timer",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.fn = fn
        self.initial_delay = interval if initial_delay is None else initial_delay
        self.name = name
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name=f"gigscout-{name}", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stopped.set()

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stopped.is_set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        delay = self.initial_delay
        while not self._stopped.wait(delay):
            try:
                self.fn()
            except Exception as exc:
                log.error("Timer %s: callback failed: %s", self.name, exc)
            delay = self.interval


RunCallback = Callable[[ScrapeRunSummary], None]


class JobScheduler:
    def __init__(
        self,
        orchestrator: ScrapeOrchestrator,
        *,
        interval: float = DEFAULT_SCRAPE_INTERVAL,
        store: Store | None = None,
        timer_factory: Callable[..., RepeatingTimer] = RepeatingTimer,
    ) -> None:
        self.orchestrator = orchestrator
        self.interval = interval
        self.store = store
        self._timer_factory = timer_factory
        self._timer: RepeatingTimer | None = None
        self._state_lock = threading.Lock()
        # One scrape at a time: overlapping runs queue instead of racing on dedup
        self._run_lock = threading.Lock()
        self._callbacks: list[RunCallback] = []
        self._last_run: ScrapeRunSummary | None = self._load_last_run()

    def _load_last_run(self) -> ScrapeRunSummary | None:
        if self.store is None:
            return None
        try:
            return load_last_run(self.store)
        except Exception as exc:
            log.warning("Could not load last scrape run: %s", exc)
            return None

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self) -> bool:
        """Arm the hourly timer with an immediate first run. False if already running."""
        with self._state_lock:
            if self._timer is not None:
                log.info("Job scheduler is already running")
                return False
            log.info("Starting job scheduler - will run every %.0f seconds", self.interval)
            self._timer = self._timer_factory(
                self.interval, self.run_now, initial_delay=0, name="scrape",
            )
            self._timer.start()
        return True

    def stop(self) -> bool:
        """Cancel future runs. False if it was not running."""
        with self._state_lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
        log.info("Job scheduler stopped")
        return True

    def run_now(self) -> ScrapeRunSummary | None:
        """One scrape cycle, regardless of scheduler state."""
        with self._run_lock:
            log.info("Running job scraping...")
            try:
                summary = self.orchestrator.run_all()
            except Exception as exc:
                log.error("Error in scheduled scraping: %s", exc)
                return None
            self._last_run = summary
            if self.store is not None:
                try:
                    save_last_run(self.store, summary)
                except Exception as exc:
                    log.warning("Could not persist last scrape run: %s", exc)
        self._notify(summary)
        return summary

    def status(self) -> dict[str, Any]:
        return {"is_running": self.is_running, "last_run": self._last_run}

    def on_run_complete(self, callback: RunCallback) -> Callable[[], None]:
        """Subscribe to finished runs; returns an unsubscribe function."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _notify(self, summary: ScrapeRunSummary) -> None:
        for callback in list(self._callbacks):
            try:
                callback(summary)
            except Exception as exc:
                log.warning("Run-complete callback failed: %s", exc)
