from __future__ import annotations

import random

from meteo.services.utilities import NODE_PROFILES, ReadingSimulator

BASE_TS = 1_700_006_400


def test_seeded_simulators_agree():
    first = ReadingSimulator(rng=random.Random(9))
    second = ReadingSimulator(rng=random.Random(9))

    for index in range(20):
        ts = BASE_TS + index * 300
        assert first.generate("node-002", ts) == second.generate("node-002", ts)


def test_generated_values_stay_in_range():
    simulator = ReadingSimulator(rng=random.Random(1))
    previous = None

    for index in range(300):
        reading = simulator.generate("node-001", BASE_TS + index * 600, previous)
        assert 25 <= reading.humidity <= 98
        assert 995 <= reading.pressure <= 1030
        assert 0.1 <= reading.wind_speed <= 26
        assert 0 <= reading.rain_level <= 14
        assert reading.luminosity >= 0
        assert reading.anomaly_score is None
        assert reading.is_anomaly is False
        previous = reading


def test_unknown_node_uses_default_profile():
    simulator = ReadingSimulator()

    assert simulator.profile_for("node-999") == NODE_PROFILES["node-001"]
    assert simulator.generate("node-999", BASE_TS).node_id == "node-999"
