"""
Lightweight EventBus used to hand analysis output to realtime subscribers.

Key invariants (enforced by call sites + tests):
  - Event topics come from meteo.enums.events (RealtimeEvent).
  - Payloads are Pydantic models in meteo.schemas.events or dataclasses.
  - Subscribers always receive a plain dict payload.

One bus is built per ServiceContainer; there is no process-wide instance.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from dataclasses import asdict, is_dataclass
from enum import Enum
from queue import Full, Queue
from typing import Any, Callable, Hashable, Iterable

from pydantic import BaseModel

from meteo.enums.events import RealtimeEvent

logger = logging.getLogger(__name__)

_DROP_WARNING_THRESHOLD = 10  # Log summary every N drops
_DROP_WARNING_INTERVAL_SECONDS = 60  # Minimum seconds between drop summaries

# Queued once per worker by shutdown(); a worker exits when it dequeues it
_STOP = object()


class EventBus:
    """
    Handles event-driven communication between the pipeline and transports.

    Callbacks run on a small pool of worker threads fed by a bounded queue;
    a full queue drops the event instead of blocking the producer.
    """

    def __init__(self, queue_size: int = 1024, worker_count: int = 2) -> None:
        self.subscribers: dict[Hashable, list[Callable[[Any], None]]] = defaultdict(list)
        self.lock = threading.Lock()
        self._queue_size = int(queue_size)
        self._queue: Queue = Queue(maxsize=self._queue_size)
        self._worker_pool_size = max(1, int(worker_count))
        self._workers: list[threading.Thread] = []
        self._workers_started = False
        self._closed = False
        self._dropped_events = 0
        self._drops_by_event: dict[str, int] = defaultdict(int)
        self._drops_since_last_warning = 0
        self._last_drop_warning_time = 0.0
        self._start_workers()

    def _start_workers(self) -> None:
        """Spin up a small worker pool to avoid unbounded thread creation."""
        with self.lock:
            if self._workers_started:
                return
            for index in range(self._worker_pool_size):
                worker = threading.Thread(target=self._worker_loop, daemon=True, name=f"EventBusWorker-{index}")
                worker.start()
                self._workers.append(worker)
            self._workers_started = True
            logger.info(
                "EventBus workers started (pool=%s queue=%s)",
                self._worker_pool_size,
                self._queue_size,
            )

    def subscribe(self, event_name: RealtimeEvent | str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribes a callback function to an event.

        Args:
            event_name: The enum topic (preferred) or raw string.
            callback: Function to call when the event occurs.

        Returns:
            A callable that removes the subscription.
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        with self.lock:
            self.subscribers[name].append(callback)

        def unsubscribe() -> None:
            with self.lock:
                callbacks = self.subscribers.get(name, [])
                try:
                    callbacks.remove(callback)
                except ValueError:
                    return

        return unsubscribe

    def _worker_loop(self) -> None:
        """Worker thread loop to process events from the queue."""
        while True:
            item = self._queue.get()
            if item is _STOP:
                self._queue.task_done()
                return
            event_name, callback, payload = item
            try:
                callback(payload)
            except Exception as exc:
                logger.error("Error in callback for event %s: %s", event_name, exc)
            finally:
                self._queue.task_done()

    def publish(self, event_name: RealtimeEvent | str, data: Any | None = None) -> None:
        """
        Publishes an event, queueing all subscribed callback functions.

        Args:
            event_name: The enum topic (preferred) or raw string.
            data: Payload object (Pydantic model, dataclass, or dict/primitive).
        """
        name = event_name.value if isinstance(event_name, Enum) else event_name
        if self._closed:
            logger.debug("EventBus is shut down; dropping %s", name)
            return

        if isinstance(data, BaseModel):
            payload: Any = data.model_dump(mode="json")
        elif is_dataclass(data) and not isinstance(data, type):
            payload = asdict(data)
        else:
            payload = data

        with self.lock:
            callbacks: Iterable[Callable[[Any], None]] = list(self.subscribers.get(name, []))
        for callback in callbacks:
            try:
                self._queue.put_nowait((name, callback, payload))
            except Full:
                self._record_drop(name)
                break

    def _record_drop(self, event_name: str) -> None:
        """Record a dropped event and log periodic warnings."""
        self._dropped_events += 1
        self._drops_by_event[event_name] += 1
        self._drops_since_last_warning += 1

        now = time.time()
        should_warn = (
            self._drops_since_last_warning >= _DROP_WARNING_THRESHOLD
            and (now - self._last_drop_warning_time) >= _DROP_WARNING_INTERVAL_SECONDS
        )

        if should_warn:
            top_drops = sorted(self._drops_by_event.items(), key=lambda x: x[1], reverse=True)[:5]
            top_drops_str = ", ".join(f"{k}:{v}" for k, v in top_drops)

            logger.warning(
                "EventBus dropping events! queue_size=%d, total_dropped=%d, "
                "recent_drops=%d, top_dropped_events=[%s]. "
                "Consider increasing METEO_EVENTBUS_QUEUE_SIZE or reducing event volume.",
                self._queue_size,
                self._dropped_events,
                self._drops_since_last_warning,
                top_drops_str,
            )
            self._drops_since_last_warning = 0
            self._last_drop_warning_time = now

    def wait_until_idle(self, timeout: float = 5.0) -> bool:
        """
        Block until every queued callback has run.

        Returns:
            True if the queue drained before ``timeout`` seconds elapsed.
        """
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self._queue.unfinished_tasks == 0:
                return True
            time.sleep(0.01)
        return self._queue.unfinished_tasks == 0

    def shutdown(self, timeout: float = 5.0) -> bool:
        """
        Stop the worker pool once queued callbacks have run.

        Later publishes are dropped. Returns True if every worker exited
        within ``timeout`` seconds.
        """
        deadline = time.monotonic() + timeout
        with self.lock:
            if self._closed:
                return not any(worker.is_alive() for worker in self._workers)
            self._closed = True
            workers = list(self._workers)

        for _ in workers:
            try:
                self._queue.put(_STOP, timeout=max(0.0, deadline - time.monotonic()))
            except Full:
                logger.warning("EventBus queue still full at shutdown; some workers may not stop")
                break
        for worker in workers:
            worker.join(timeout=max(0.0, deadline - time.monotonic()))

        stopped = not any(worker.is_alive() for worker in workers)
        if stopped:
            logger.info("EventBus workers stopped")
        else:
            logger.warning("EventBus workers still alive after %.1fs", timeout)
        return stopped

    def get_metrics(self) -> dict[str, Any]:
        """Return lightweight metrics for health reporting/logging."""
        top_dropped = dict(sorted(self._drops_by_event.items(), key=lambda x: x[1], reverse=True)[:5])
        with self.lock:
            subscriber_count = sum(len(values) for values in self.subscribers.values())

        return {
            "queue_depth": self._queue.qsize(),
            "queue_size": self._queue_size,
            "dropped_events": self._dropped_events,
            "drops_by_event_top5": top_dropped,
            "subscribers": subscriber_count,
            "is_dropping": self._drops_since_last_warning > 0,
        }
