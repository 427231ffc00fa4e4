"""
Sliding Window Store
=====================
Per-node bounded, arrival-ordered history of recent readings.

One producer pushes readings per node; any number of readers take snapshots.
The push (append + evict-oldest) happens under the window lock, and readers
only ever see an immutable tuple copy, so a reader never observes a torn
window.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque

from meteo.domain.reading import Reading
from meteo.utils.concurrency import synchronized

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 60


class SlidingWindow:
    """
    FIFO window of the most recent ``capacity`` readings for one node.

    Readings are kept in arrival order; out-of-order timestamps are accepted
    as-is and never re-sorted.
    """

    def __init__(self, node_id: str, capacity: int = DEFAULT_WINDOW_SIZE):
        if capacity < 1:
            raise ValueError("Window capacity must be at least 1")
        self.node_id = node_id
        self.capacity = capacity
        self._readings: deque[Reading] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self.last_push_monotonic = time.monotonic()

    @synchronized
    def push(self, reading: Reading) -> None:
        """Append a reading, evicting the oldest entry when at capacity."""
        self._readings.append(reading)
        self.last_push_monotonic = time.monotonic()

    @synchronized
    def snapshot(self) -> tuple[Reading, ...]:
        """Return an immutable copy of the window, oldest first."""
        return tuple(self._readings)

    @synchronized
    def latest(self) -> Reading | None:
        """Return the most recently pushed reading, if any."""
        return self._readings[-1] if self._readings else None

    @synchronized
    def clear(self) -> None:
        self._readings.clear()

    def __len__(self) -> int:
        return len(self._readings)


class WindowRegistry:
    """
    Registry of sliding windows keyed by node id.

    Windows are created lazily on the first push for a node and live as long
    as the registry does. Whoever composes the ingestion pipeline owns the
    registry and hands it to every analysis component.
    """

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE):
        if window_size < 1:
            raise ValueError("Window size must be at least 1")
        self.window_size = window_size
        self._windows: dict[str, SlidingWindow] = {}
        self._lock = threading.Lock()

    @synchronized
    def window_for(self, node_id: str) -> SlidingWindow:
        """Return the node's window, creating it on first use."""
        window = self._windows.get(node_id)
        if window is None:
            window = SlidingWindow(node_id, self.window_size)
            self._windows[node_id] = window
            logger.debug("Created sliding window for node %s (capacity=%s)", node_id, self.window_size)
        return window

    @synchronized
    def get(self, node_id: str) -> SlidingWindow | None:
        """Return the node's window without creating one."""
        return self._windows.get(node_id)

    def push(self, reading: Reading) -> SlidingWindow:
        """Push a reading into its node's window."""
        window = self.window_for(reading.node_id)
        window.push(reading)
        return window

    def snapshot(self, node_id: str) -> tuple[Reading, ...]:
        """Return a snapshot of the node's window; empty for unknown nodes."""
        window = self.get(node_id)
        return window.snapshot() if window is not None else ()

    def latest(self, node_id: str) -> Reading | None:
        window = self.get(node_id)
        return window.latest() if window is not None else None

    @synchronized
    def node_ids(self) -> list[str]:
        return sorted(self._windows)

    @synchronized
    def evict_idle(self, max_idle_seconds: float) -> list[str]:
        """
        Drop windows that have not received a reading for ``max_idle_seconds``.

        Returns:
            The node ids whose windows were removed.
        """
        cutoff = time.monotonic() - max_idle_seconds
        idle = [node_id for node_id, window in self._windows.items() if window.last_push_monotonic < cutoff]
        for node_id in idle:
            del self._windows[node_id]
        if idle:
            logger.info("Evicted %d idle node window(s): %s", len(idle), ", ".join(idle))
        return idle

    def __len__(self) -> int:
        return len(self._windows)
