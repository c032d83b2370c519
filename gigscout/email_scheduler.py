"""Drives the notification engine's three checks on independent timers."""
from __future__ import annotations

import threading
from typing import Any, Callable

from gigscout.config import Settings
from gigscout.log import get_logger
from gigscout.notifications import NotificationEngine
from gigscout.scheduler import RepeatingTimer

log = get_logger(__name__)


class EmailScheduler:
    def __init__(
        self,
        engine: NotificationEngine,
        settings: Settings | None = None,
        *,
        timer_factory: Callable[..., RepeatingTimer] = RepeatingTimer,
        one_shot_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self.engine = engine
        self.settings = settings or engine.settings
        self._timer_factory = timer_factory
        self._one_shot_factory = one_shot_factory
        self._timers: dict[str, RepeatingTimer] = {}
        self._initial: threading.Timer | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return bool(self._timers)

    def _schedule(self) -> dict[str, tuple[float, Callable[[], int]]]:
        s = self.settings
        return {
            "perfect_match": (s.perfect_match_interval_seconds, self.engine.check_perfect_matches),
            "daily_digest": (s.daily_digest_interval_seconds, self.engine.check_daily_digest),
            "weekly_trends": (s.weekly_trends_interval_seconds, self.engine.check_weekly_trends),
        }

    def start(self) -> bool:
        with self._lock:
            if self._timers:
                log.info("Email scheduler already running")
                return False

            log.info("Starting email alert scheduling...")
            for name, (interval, check) in self._schedule().items():
                timer = self._timer_factory(interval, check, name=name)
                timer.start()
                self._timers[name] = timer

            self._initial = self._one_shot_factory(
                self.settings.email_initial_delay_seconds, self.run_all_checks,
            )
            self._initial.daemon = True
            self._initial.start()
        return True

    def stop(self) -> bool:
        with self._lock:
            if not self._timers:
                return False
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            if self._initial is not None:
                self._initial.cancel()
                self._initial = None
        log.info("Email scheduling stopped")
        return True

    def run_all_checks(self) -> dict[str, int]:
        """One pass of every check; a failing check does not skip the others."""
        results: dict[str, int] = {}
        for name, (_, check) in self._schedule().items():
            try:
                results[name] = check()
            except Exception as exc:
                log.error("Email check %s failed: %s", name, exc)
                results[name] = 0
        return results

    def status(self) -> dict[str, Any]:
        names = ("perfect_match", "daily_digest", "weekly_trends")
        return {
            "is_running": self.is_running,
            "timers": {name: name in self._timers for name in names},
        }

    def trigger_perfect_matches(self) -> int:
        log.info("Manual perfect match check")
        return self.engine.check_perfect_matches()

    def trigger_daily_digest(self, *, force: bool = False) -> int:
        log.info("Manual daily digest check")
        return self.engine.check_daily_digest(force=force)

    def trigger_weekly_trends(self, *, force: bool = False) -> int:
        log.info("Manual weekly trends check")
        return self.engine.check_weekly_trends(force=force)
