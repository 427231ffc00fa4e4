"""
Shared test fixtures for the meteo analysis test suite.

Provides:
- A fresh window registry per test (no cross-test state)
- A scorer and forecaster with jitter/noise disabled
- A reading factory with neutral default conditions
- A recording stand-in for the event bus

Usage:
    def test_example(registry, make_reading):
        registry.push(make_reading(temperature=30.0))
        assert len(registry.snapshot("node-001")) == 1
"""

from __future__ import annotations

import logging
import os
import random
import sys
from typing import Any

import pytest

# Ensure repository root is on sys.path so tests can import application modules
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from meteo.domain.reading import Reading  # noqa: E402
from meteo.services.analysis import AnomalyScorer, Forecaster, WindowRegistry  # noqa: E402

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("meteo").setLevel(logging.WARNING)

# 2023-11-15T00:00:00Z, a UTC midnight so diurnal terms are easy to reason about
BASE_TS = 1_700_006_400

_NEUTRAL = {
    "temperature": 25.0,
    "humidity": 60.0,
    "pressure": 1013.0,
    "wind_speed": 3.0,
    "rain_level": 0.0,
}


class RecordingBus:
    """Collects published events instead of dispatching them."""

    def __init__(self) -> None:
        self.events: list[tuple[Any, Any]] = []

    def publish(self, event_name, data=None) -> None:
        self.events.append((event_name, data))

    def topics(self) -> list[Any]:
        return [name for name, _ in self.events]


@pytest.fixture()
def make_reading():
    """Factory for readings with neutral conditions; pass None to drop a field."""

    def _make(node_id: str = "node-001", timestamp: int = BASE_TS, **fields) -> Reading:
        values = dict(_NEUTRAL)
        values.update(fields)
        return Reading(node_id=node_id, timestamp=timestamp, **values)

    return _make


@pytest.fixture()
def registry() -> WindowRegistry:
    return WindowRegistry(window_size=60)


@pytest.fixture()
def scorer(registry) -> AnomalyScorer:
    return AnomalyScorer(registry, rng=random.Random(7), jitter_enabled=False)


@pytest.fixture()
def forecaster(registry) -> Forecaster:
    return Forecaster(registry, rng=random.Random(7), noise_enabled=False)


@pytest.fixture()
def fill_window(registry, make_reading):
    """Push ``count`` readings for a node, one minute apart, ending at ``end_ts``."""

    def _fill(count: int, node_id: str = "node-001", end_ts: int = BASE_TS, **fields) -> list[Reading]:
        readings = []
        for index in range(count):
            ts = end_ts - (count - 1 - index) * 60
            reading = make_reading(node_id=node_id, timestamp=ts, **fields)
            registry.push(reading)
            readings.append(reading)
        return readings

    return _fill


@pytest.fixture()
def recording_bus() -> RecordingBus:
    return RecordingBus()
