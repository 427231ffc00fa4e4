"""
Interval scheduler for background jobs.

Design Principles:
- Single scheduler loop thread
- Bounded worker pool for job execution (prevents unbounded thread creation)
- Fixed-rate scheduling: the next run advances from the scheduled time, not
  from when the previous run finished
- No overlap: a job never runs alongside itself; a slot that comes due while
  the previous run is in flight is skipped
- Interruptible: stop() wakes the loop immediately instead of waiting out
  the check interval

One scheduler is built per ServiceContainer; there is no process-wide instance.
"""

from __future__ import annotations

import heapq
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    """Result of a job execution."""

    job_id: str
    success: bool
    started_at: datetime
    completed_at: datetime
    result: Any = None
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()


@dataclass
class ScheduledJob:
    """An interval job configuration and its execution counters."""

    job_id: str
    func: Callable[..., Any]
    interval_seconds: float
    enabled: bool = True
    args: tuple = field(default_factory=tuple)
    kwargs: dict[str, Any] = field(default_factory=dict)

    # Monotonic clock timestamps
    next_run: float = 0.0
    last_run: datetime | None = None
    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    last_error: str | None = None
    # Set while a run is in flight; due slots are skipped until it clears
    running: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (for status reports)."""
        return {
            "job_id": self.job_id,
            "enabled": self.enabled,
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_error": self.last_error,
        }


class IntervalScheduler:
    """
    Runs registered callables at fixed intervals on a bounded worker pool.

    Heap entries are ``(run_at, seq, job_id)``; stale entries (removed or
    rescheduled jobs) are skipped on pop rather than deleted in place.
    """

    def __init__(self, check_interval_seconds: float = 0.5, max_workers: int = 2, max_history: int = 200):
        """
        Args:
            check_interval_seconds: How often the loop looks for due jobs
            max_workers: Maximum number of concurrent job executions
            max_history: Maximum job execution history to keep
        """
        self._check_interval = float(check_interval_seconds)
        self._max_workers = int(max_workers)
        self._max_history = int(max_history)

        self._jobs: dict[str, ScheduledJob] = {}
        self._job_heap: list[tuple[float, int, str]] = []
        self._heap_seq = 0
        self._history: list[JobResult] = []

        self._job_lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._executor: ThreadPoolExecutor | None = None

    # ==================== Job Scheduling ====================

    def schedule_interval(
        self,
        job_id: str,
        func: Callable[..., Any],
        interval_seconds: float,
        *,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        start_immediately: bool = False,
    ) -> ScheduledJob:
        """Schedule ``func`` to run every ``interval_seconds``."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        now = time.monotonic()
        job = ScheduledJob(
            job_id=job_id,
            func=func,
            interval_seconds=float(interval_seconds),
            args=args,
            kwargs=kwargs or {},
            next_run=now if start_immediately else now + interval_seconds,
        )
        with self._job_lock:
            self._jobs[job_id] = job
            self._push_heap(job)
        logger.info("Scheduled interval job: %s (every %ss)", job_id, interval_seconds)
        return job

    def _push_heap(self, job: ScheduledJob) -> None:
        self._heap_seq += 1
        heapq.heappush(self._job_heap, (job.next_run, self._heap_seq, job.job_id))

    def remove_job(self, job_id: str) -> bool:
        with self._job_lock:
            return self._jobs.pop(job_id, None) is not None

    def get_job(self, job_id: str) -> ScheduledJob | None:
        return self._jobs.get(job_id)

    def run_now(self, job_id: str) -> JobResult | None:
        """
        Run a registered job synchronously on the caller's thread.

        Returns None if the job is unknown or a run of it is already in flight.
        """
        job = self._jobs.get(job_id)
        if job is None:
            logger.error("Job not found: %s", job_id)
            return None
        if not self._claim(job):
            logger.warning("Job %s is already running; not starting another run", job_id)
            return None
        return self._run_claimed(job)

    # ==================== Scheduler Control ====================

    def start(self) -> None:
        """Start the scheduler background thread."""
        if self.is_running():
            logger.warning("Scheduler already running")
            return

        self._stop_event.clear()
        self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="MeteoSchedulerJob")
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="MeteoScheduler")
        self._thread.start()
        logger.info("Scheduler started")

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        """
        Stop the scheduler.

        Args:
            wait: Wait for the loop thread and running jobs to finish
            timeout: Maximum wait for the loop thread in seconds
        """
        if not self.is_running():
            return

        self._stop_event.set()
        if wait and self._thread:
            self._thread.join(timeout=timeout)
        if self._executor:
            self._executor.shutdown(wait=wait)
            self._executor = None
        self._thread = None
        logger.info("Scheduler stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def _run_loop(self) -> None:
        logger.debug("Scheduler loop started")
        while not self._stop_event.is_set():
            try:
                self._process_due_jobs()
            except Exception as e:
                logger.error("Error in scheduler loop: %s", e, exc_info=True)
            self._stop_event.wait(self._check_interval)
        logger.debug("Scheduler loop ended")

    def _process_due_jobs(self) -> None:
        now = time.monotonic()
        with self._job_lock:
            while self._job_heap and self._job_heap[0][0] <= now:
                run_at, _seq, job_id = heapq.heappop(self._job_heap)
                job = self._jobs.get(job_id)
                if job is None or not job.enabled or job.next_run != run_at:
                    continue

                job.next_run = run_at + job.interval_seconds
                # Skip missed slots instead of bursting to catch up
                if job.next_run <= now:
                    job.next_run = now + job.interval_seconds
                self._push_heap(job)

                if job.running:
                    logger.debug("Job %s still running; skipping this slot", job_id)
                    continue
                if self._executor is None:
                    logger.warning("Executor unavailable; skipping job %s", job_id)
                    continue

                job.running = True
                try:
                    self._executor.submit(self._run_claimed, job)
                except RuntimeError as e:
                    job.running = False
                    logger.error("Failed to submit job %s: %s", job_id, e)

    def _claim(self, job: ScheduledJob) -> bool:
        with self._job_lock:
            if job.running:
                return False
            job.running = True
            return True

    def _run_claimed(self, job: ScheduledJob) -> JobResult:
        try:
            return self._execute_job(job)
        finally:
            with self._job_lock:
                job.running = False

    def _execute_job(self, job: ScheduledJob) -> JobResult:
        started_at = datetime.now()
        try:
            result = job.func(*job.args, **job.kwargs)
        except Exception as e:
            completed_at = datetime.now()
            with self._job_lock:
                job.last_run = started_at
                job.run_count += 1
                job.failure_count += 1
                job.last_error = str(e)
            logger.error("Job %s failed: %s", job.job_id, e, exc_info=True)
            job_result = JobResult(job.job_id, False, started_at, completed_at, error=str(e))
        else:
            completed_at = datetime.now()
            with self._job_lock:
                job.last_run = started_at
                job.run_count += 1
                job.success_count += 1
                job.last_error = None
            job_result = JobResult(job.job_id, True, started_at, completed_at, result=result)
            logger.debug("Job %s completed in %.2fs", job.job_id, job_result.duration_seconds)

        self._record_history(job_result)
        return job_result

    def _record_history(self, result: JobResult) -> None:
        with self._job_lock:
            self._history.append(result)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history :]

    def get_history(self, limit: int = 50) -> list[JobResult]:
        with self._job_lock:
            return list(self._history[-limit:])

    def get_status(self) -> dict[str, Any]:
        with self._job_lock:
            jobs = [job.to_dict() for job in self._jobs.values()]
        return {"running": self.is_running(), "job_count": len(jobs), "jobs": jobs}
