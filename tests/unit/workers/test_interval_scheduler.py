from __future__ import annotations

import threading
import time

import pytest

from meteo.workers.scheduler import IntervalScheduler


@pytest.fixture()
def scheduler():
    sched = IntervalScheduler(check_interval_seconds=0.01, max_workers=2)
    yield sched
    sched.stop()


def test_run_now_executes_and_counts(scheduler):
    scheduler.schedule_interval("job", lambda: 42, 60)

    result = scheduler.run_now("job")

    assert result.success is True
    assert result.result == 42
    job = scheduler.get_job("job")
    assert (job.run_count, job.success_count, job.failure_count) == (1, 1, 0)


def test_failures_are_recorded_not_raised(scheduler):
    def broken():
        raise RuntimeError("sensor offline")

    scheduler.schedule_interval("broken", broken, 60)

    result = scheduler.run_now("broken")

    assert result.success is False
    assert result.error == "sensor offline"
    assert scheduler.get_job("broken").last_error == "sensor offline"
    assert scheduler.get_history()[-1].job_id == "broken"


def test_unknown_job(scheduler):
    assert scheduler.run_now("missing") is None
    assert scheduler.remove_job("missing") is False


def test_rejects_non_positive_interval(scheduler):
    with pytest.raises(ValueError):
        scheduler.schedule_interval("job", lambda: None, 0)


def test_background_loop_runs_jobs_and_stops(scheduler):
    ran = threading.Event()
    scheduler.schedule_interval("tick", ran.set, 0.05, start_immediately=True)

    scheduler.start()
    assert scheduler.is_running()
    assert ran.wait(2.0)

    scheduler.stop()

    assert not scheduler.is_running()
    status = scheduler.get_status()
    assert status["running"] is False
    assert status["jobs"][0]["job_id"] == "tick"
    assert status["jobs"][0]["run_count"] >= 1


def test_slow_job_never_overlaps_itself():
    sched = IntervalScheduler(check_interval_seconds=0.01, max_workers=2)
    lock = threading.Lock()
    state = {"active": 0, "peak": 0}

    def slow():
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        time.sleep(0.3)
        with lock:
            state["active"] -= 1

    sched.schedule_interval("slow", slow, 0.05, start_immediately=True)
    sched.start()
    time.sleep(0.7)
    sched.stop()

    assert state["peak"] == 1
    assert sched.get_job("slow").run_count >= 2
    assert sched.get_job("slow").running is False


def test_run_now_refuses_a_job_already_in_flight(scheduler):
    entered = threading.Event()
    release = threading.Event()

    def blocking():
        entered.set()
        release.wait(2.0)
        return "done"

    scheduler.schedule_interval("blocking", blocking, 60)
    worker = threading.Thread(target=scheduler.run_now, args=("blocking",))
    worker.start()
    assert entered.wait(2.0)

    assert scheduler.run_now("blocking") is None

    release.set()
    worker.join(2.0)
    assert scheduler.get_job("blocking").run_count == 1
    assert scheduler.run_now("blocking").result == "done"
