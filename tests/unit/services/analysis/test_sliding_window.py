from __future__ import annotations

import threading
import time

import pytest

from meteo.domain.reading import Reading
from meteo.services.analysis import SlidingWindow, WindowRegistry

BASE_TS = 1_700_006_400


def _reading(node_id: str = "node-001", offset: int = 0, temperature: float = 25.0) -> Reading:
    return Reading(node_id=node_id, timestamp=BASE_TS + offset, temperature=temperature)


class TestSlidingWindow:
    def test_keeps_last_capacity_readings_in_arrival_order(self):
        window = SlidingWindow("node-001", capacity=5)

        for index in range(8):
            window.push(_reading(offset=index, temperature=float(index)))

        snapshot = window.snapshot()
        assert len(snapshot) == 5
        assert [r.temperature for r in snapshot] == [3.0, 4.0, 5.0, 6.0, 7.0]

    def test_out_of_order_timestamps_are_not_reordered(self):
        window = SlidingWindow("node-001", capacity=5)

        for offset in (30, 10, 20):
            window.push(_reading(offset=offset))

        assert [r.timestamp - BASE_TS for r in window.snapshot()] == [30, 10, 20]

    def test_snapshot_is_isolated_from_later_pushes(self):
        window = SlidingWindow("node-001", capacity=5)
        window.push(_reading(offset=0))

        snapshot = window.snapshot()
        window.push(_reading(offset=1))

        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 1
        assert len(window) == 2

    def test_latest_and_clear(self):
        window = SlidingWindow("node-001", capacity=3)
        assert window.latest() is None

        window.push(_reading(offset=0))
        window.push(_reading(offset=1))
        assert window.latest().timestamp == BASE_TS + 1

        window.clear()
        assert len(window) == 0

    def test_rejects_invalid_capacity(self):
        with pytest.raises(ValueError):
            SlidingWindow("node-001", capacity=0)


class TestWindowRegistry:
    def test_windows_are_created_lazily(self):
        registry = WindowRegistry(window_size=4)

        assert registry.get("node-001") is None
        assert registry.snapshot("node-001") == ()
        assert registry.latest("node-001") is None
        assert len(registry) == 0

        registry.push(_reading())

        assert len(registry) == 1
        assert registry.get("node-001").capacity == 4

    def test_nodes_are_independent(self):
        registry = WindowRegistry(window_size=3)

        for index in range(5):
            registry.push(_reading("node-a", offset=index))
        registry.push(_reading("node-b", offset=100))

        assert len(registry.snapshot("node-a")) == 3
        assert len(registry.snapshot("node-b")) == 1
        assert registry.node_ids() == ["node-a", "node-b"]

    def test_evict_idle_drops_stale_windows(self):
        registry = WindowRegistry(window_size=3)
        registry.push(_reading("node-a"))
        registry.push(_reading("node-b"))
        registry.get("node-a").last_push_monotonic = time.monotonic() - 100

        evicted = registry.evict_idle(50)

        assert evicted == ["node-a"]
        assert registry.node_ids() == ["node-b"]

    def test_concurrent_pushes_keep_each_window_bounded(self):
        registry = WindowRegistry(window_size=10)
        snapshot_sizes = []

        def producer(node_id: str) -> None:
            for index in range(500):
                registry.push(_reading(node_id, offset=index, temperature=float(index)))

        def reader() -> None:
            for _ in range(500):
                snapshot_sizes.append(len(registry.snapshot("node-0")))

        threads = [threading.Thread(target=producer, args=(f"node-{i}",)) for i in range(4)]
        threads.append(threading.Thread(target=reader))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for i in range(4):
            snapshot = registry.snapshot(f"node-{i}")
            assert len(snapshot) == 10
            assert [r.temperature for r in snapshot] == [float(v) for v in range(490, 500)]
        assert all(size <= 10 for size in snapshot_sizes)

    def test_rejects_invalid_window_size(self):
        with pytest.raises(ValueError):
            WindowRegistry(window_size=0)
