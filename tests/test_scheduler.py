import threading
import time

import pytest

from conftest import FakeTimer
from gigscout.models import ScrapeRunSummary, utcnow
from gigscout.repository import load_last_run, save_last_run
from gigscout.scheduler import JobScheduler, RepeatingTimer


class CountingOrchestrator:
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    def run_all(self):
        self.calls += 1
        if self.fail:
            raise RuntimeError("store unreachable")
        return ScrapeRunSummary(utcnow(), total_scanned=3, total_saved=self.calls,
                                per_source={"Test": 3})


# ── RepeatingTimer ──────────────────────────────────────────────────────

def test_repeating_timer_fires_until_cancelled():
    fired = threading.Event()
    count = {"n": 0}

    def tick():
        count["n"] += 1
        if count["n"] >= 3:
            fired.set()

    timer = RepeatingTimer(0.01, tick, initial_delay=0)
    timer.start()
    assert fired.wait(2)
    timer.cancel()
    timer.join(1)
    settled = count["n"]
    time.sleep(0.05)
    assert count["n"] == settled
    assert not timer.active


def test_repeating_timer_survives_callback_errors():
    calls = []
    done = threading.Event()

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise ValueError("first call fails")
        done.set()

    timer = RepeatingTimer(0.01, flaky, initial_delay=0)
    timer.start()
    try:
        assert done.wait(2)
    finally:
        timer.cancel()
        timer.join(1)
    assert len(calls) >= 2


def test_repeating_timer_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        RepeatingTimer(0, lambda: None)


def test_repeating_timer_defaults_initial_delay_to_interval():
    assert RepeatingTimer(30, lambda: None).initial_delay == 30


# ── JobScheduler ────────────────────────────────────────────────────────

def test_start_is_idempotent():
    scheduler = JobScheduler(CountingOrchestrator(), timer_factory=FakeTimer)
    assert scheduler.start() is True
    assert scheduler.start() is False
    assert len(FakeTimer.created) == 1

    timer = FakeTimer.created[0]
    assert timer.started
    assert timer.interval == 3600
    assert timer.initial_delay == 0
    assert scheduler.status()["is_running"] is True


def test_stop_is_idempotent():
    scheduler = JobScheduler(CountingOrchestrator(), timer_factory=FakeTimer)
    assert scheduler.stop() is False
    scheduler.start()
    assert scheduler.stop() is True
    assert scheduler.stop() is False
    assert FakeTimer.created[0].cancelled
    assert scheduler.status()["is_running"] is False


def test_timer_firing_runs_a_scrape():
    orchestrator = CountingOrchestrator()
    scheduler = JobScheduler(orchestrator, interval=60, timer_factory=FakeTimer)
    scheduler.start()
    FakeTimer.created[0].fire()
    FakeTimer.created[0].fire()
    assert orchestrator.calls == 2
    assert scheduler.status()["last_run"].total_saved == 2


def test_start_runs_immediately_with_real_timer():
    orchestrator = CountingOrchestrator()
    scheduler = JobScheduler(orchestrator, interval=3600)
    finished = threading.Event()
    scheduler.on_run_complete(lambda summary: finished.set())
    scheduler.start()
    try:
        assert finished.wait(2)
    finally:
        scheduler.stop()
    assert orchestrator.calls == 1


def test_last_run_survives_stop_and_start():
    scheduler = JobScheduler(CountingOrchestrator(), timer_factory=FakeTimer)
    scheduler.run_now()
    scheduler.stop()
    scheduler.start()
    scheduler.stop()
    assert scheduler.status()["last_run"].total_scanned == 3


def test_last_run_is_persisted_and_reloaded(store):
    JobScheduler(CountingOrchestrator(), store=store).run_now()
    assert load_last_run(store).total_saved == 1

    fresh = JobScheduler(CountingOrchestrator(), store=store)
    assert fresh.status()["last_run"].per_source == {"Test": 3}


def test_last_run_loaded_from_previous_process(store):
    save_last_run(store, ScrapeRunSummary(utcnow(), 10, 4, {"Indeed": 10}))
    scheduler = JobScheduler(CountingOrchestrator(), store=store)
    assert scheduler.status() == {"is_running": False, "last_run": load_last_run(store)}


def test_run_now_failure_returns_none_and_keeps_previous_run():
    orchestrator = CountingOrchestrator()
    scheduler = JobScheduler(orchestrator)
    first = scheduler.run_now()
    orchestrator.fail = True
    assert scheduler.run_now() is None
    assert scheduler.status()["last_run"] is first


def test_callbacks_are_isolated_and_unsubscribable():
    scheduler = JobScheduler(CountingOrchestrator())
    seen = []

    def broken(summary):
        raise RuntimeError("listener bug")

    scheduler.on_run_complete(broken)
    unsubscribe = scheduler.on_run_complete(seen.append)
    scheduler.run_now()
    assert len(seen) == 1

    unsubscribe()
    unsubscribe()
    scheduler.run_now()
    assert len(seen) == 1


def test_overlapping_runs_are_serialized():
    active = {"now": 0, "max": 0}
    lock = threading.Lock()

    class SlowOrchestrator:
        def run_all(self):
            with lock:
                active["now"] += 1
                active["max"] = max(active["max"], active["now"])
            time.sleep(0.05)
            with lock:
                active["now"] -= 1
            return ScrapeRunSummary(utcnow(), 0, 0, {})

    scheduler = JobScheduler(SlowOrchestrator())
    threads = [threading.Thread(target=scheduler.run_now) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(2)
    assert active["max"] == 1


def test_repeating_timer_calls_never_overlap():
    active = {"now": 0, "max": 0, "calls": 0}
    done = threading.Event()

    def slow():
        active["now"] += 1
        active["max"] = max(active["max"], active["now"])
        time.sleep(0.03)
        active["now"] -= 1
        active["calls"] += 1
        if active["calls"] >= 3:
            done.set()

    timer = RepeatingTimer(0.001, slow, initial_delay=0)
    timer.start()
    try:
        assert done.wait(2)
    finally:
        timer.cancel()
        timer.join(1)
    assert active["max"] == 1
