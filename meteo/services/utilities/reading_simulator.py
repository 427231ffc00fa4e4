"""
Reading Simulator
==================
Generates plausible synthetic readings for simulated weather nodes.

Each node follows a base profile shaped by the diurnal cycle: warmer and
drier around midday, with pressure drifting back toward the profile base,
occasional rain bursts (likelier at night) and wind picking up with rain.
Readings are emitted unscored; the ingestion pipeline scores them.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import timezone, tzinfo

from meteo.domain.reading import Reading
from meteo.services.analysis.forecaster import diurnal_factor
from meteo.utils.statistics import clamp, round_half_up


@dataclass(frozen=True)
class NodeProfile:
    """Baseline conditions of a simulated node."""

    temp_base: float
    humidity_base: float
    pressure_base: float
    lux_max: float
    wind_base: float


NODE_PROFILES: dict[str, NodeProfile] = {
    "node-001": NodeProfile(temp_base=28.2, humidity_base=71, pressure_base=1013, lux_max=720, wind_base=3.1),
    "node-002": NodeProfile(temp_base=27.4, humidity_base=73, pressure_base=1012.3, lux_max=690, wind_base=3.6),
    "node-003": NodeProfile(temp_base=29.1, humidity_base=69, pressure_base=1011.8, lux_max=710, wind_base=2.8),
}
DEFAULT_PROFILE = NODE_PROFILES["node-001"]


class ReadingSimulator:
    """Synthetic reading generator, seedable through an injected RNG."""

    def __init__(self, rng: random.Random | None = None, tz: tzinfo = timezone.utc):
        self.rng = rng or random.Random()
        self.tz = tz

    def profile_for(self, node_id: str) -> NodeProfile:
        return NODE_PROFILES.get(node_id, DEFAULT_PROFILE)

    def generate(self, node_id: str, timestamp: int, previous: Reading | None = None) -> Reading:
        """Generate one raw reading for ``node_id`` at ``timestamp``."""
        profile = self.profile_for(node_id)
        rng = self.rng
        sunlight = diurnal_factor(timestamp, self.tz)
        rain_chance_boost = 0.12 if sunlight < -0.15 else 0.0

        temperature = round_half_up(profile.temp_base + sunlight * 6 + rng.uniform(-1.4, 1.4), 1)
        humidity = round_half_up(clamp(profile.humidity_base - sunlight * 15 + rng.uniform(-3, 3), 25, 98), 1)

        pressure_trend = 0.0
        if previous is not None and previous.pressure is not None:
            pressure_trend = (previous.pressure - profile.pressure_base) * 0.6
        pressure = round_half_up(
            clamp(profile.pressure_base + rng.uniform(-3.4, 3.4) + pressure_trend * 0.15, 995, 1030),
            1,
        )

        luminosity = round_half_up(max(0.0, profile.lux_max * sunlight + rng.uniform(0, 90)))

        if rng.random() > 0.85 - rain_chance_boost:
            rain_level = round_half_up(rng.uniform(2, 14), 2)
        else:
            rain_level = round_half_up(rng.uniform(0, 1.6), 2)

        gust = rng.uniform(2, 5) if rain_level > 7 else 0.0
        wind_speed = round_half_up(clamp(profile.wind_base + rng.uniform(0.4, 4.8) + gust, 0.1, 26), 1)

        return Reading(
            node_id=node_id,
            timestamp=timestamp,
            temperature=temperature,
            humidity=humidity,
            pressure=pressure,
            luminosity=luminosity,
            rain_level=rain_level,
            wind_speed=wind_speed,
        )
