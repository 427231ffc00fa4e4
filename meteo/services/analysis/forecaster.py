"""
Forecaster
===========
Projects a node's near-future temperature, humidity and pressure, plus the
probability of an extreme weather event, at fixed horizons.

Predictions are based on:
- the least-squares trend of the node's sliding window
- a sinusoidal diurnal cycle evaluated at the *target* time
- a bias from recent anomaly scores

A window-free path (:meth:`Forecaster.predict_from_latest`) bootstraps
forecasts from a single anchor reading before any window exists.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import timezone, tzinfo
from typing import Sequence

from meteo.domain.prediction import Prediction
from meteo.domain.reading import Reading
from meteo.enums import ExtremeEventType
from meteo.services.analysis.sliding_window import WindowRegistry
from meteo.utils.statistics import clamp, linear_trend, present, round_half_up
from meteo.utils.time import epoch_now, fractional_hour

logger = logging.getLogger(__name__)

DEFAULT_HORIZONS: tuple[int, ...] = (3, 6, 12, 24)
MIN_FORECAST_HISTORY = 3
RECENT_ANOMALY_SPAN = 10
EVENT_PROBABILITY_THRESHOLD = 0.35

# Fallbacks when the latest reading lacks a field
FALLBACK_TEMP = 28.0
FALLBACK_HUMIDITY = 70.0
FALLBACK_PRESSURE = 1013.0

# Anchor used by the bootstrap path when a node has no reading at all
DEFAULT_ANCHOR = {
    "temperature": 28.0,
    "humidity": 70.0,
    "pressure": 1012.0,
    "wind_speed": 4.0,
    "rain_level": 1.0,
    "anomaly_score": 0.15,
}


def diurnal_factor(timestamp: int, tz: tzinfo = timezone.utc) -> float:
    """Sinusoidal proxy for the daily heating cycle: -1 at 00:00, +1 at 12:00."""
    return math.sin(((fractional_hour(timestamp, tz) - 6) * math.pi) / 12)


class Forecaster:
    """
    Trend + diurnal + anomaly-bias forecaster over per-node windows.

    Noise comes from an injected ``random.Random``; ``noise_enabled=False``
    makes forecasts deterministic.
    """

    def __init__(
        self,
        registry: WindowRegistry,
        *,
        rng: random.Random | None = None,
        noise_enabled: bool = True,
        tz: tzinfo = timezone.utc,
        horizons: Sequence[int] = DEFAULT_HORIZONS,
    ):
        self.registry = registry
        self.rng = rng or random.Random()
        self.noise_enabled = noise_enabled
        self.tz = tz
        self.horizons = tuple(horizons)

    def _noise(self) -> float:
        """Uniform noise in [-0.5, 0.5)."""
        return self.rng.random() - 0.5 if self.noise_enabled else 0.0

    def _uniform(self, low: float, high: float) -> float:
        if not self.noise_enabled:
            return (low + high) / 2 if low < 0 < high else low
        return self.rng.uniform(low, high)

    def predict(self, node_id: str, horizons: Sequence[int] | None = None) -> list[Prediction] | None:
        """
        Forecast a node from its sliding window.

        Args:
            node_id: Node to forecast
            horizons: Lead times in hours (defaults to the configured set)

        Returns:
            One Prediction per horizon, in the requested order, or None when
            the window holds fewer than 3 readings
        """
        window = self.registry.snapshot(node_id)
        if len(window) < MIN_FORECAST_HISTORY:
            logger.debug("Not enough history to forecast node %s (%d readings)", node_id, len(window))
            return None

        horizons = tuple(horizons) if horizons is not None else self.horizons
        latest = window[-1]

        t_trend = linear_trend(present(r.temperature for r in window))
        h_trend = linear_trend(present(r.humidity for r in window))
        p_trend = linear_trend(present(r.pressure for r in window))

        recent = window[-RECENT_ANOMALY_SPAN:]
        avg_recent_anomaly = sum(r.anomaly_score or 0.0 for r in recent) / len(recent)

        base_temp = latest.temperature if latest.temperature is not None else FALLBACK_TEMP
        base_humidity = latest.humidity if latest.humidity is not None else FALLBACK_HUMIDITY
        base_pressure = latest.pressure if latest.pressure is not None else FALLBACK_PRESSURE
        generated_at = epoch_now()

        predictions = []
        for hours in horizons:
            sun = diurnal_factor(latest.timestamp + hours * 3600, self.tz)

            temp = clamp(base_temp + t_trend * hours * 0.3 + sun * 2.5 + self._noise() * 1.2, -10, 55)
            humidity = clamp(base_humidity + h_trend * hours * 0.3 - sun * 6 + self._noise() * 3, 5, 100)
            pressure = clamp(base_pressure + p_trend * hours * 0.2 + self._noise() * 3, 950, 1060)

            probability = 0.05
            if temp >= 38:
                probability += 0.15
            if temp <= 5:
                probability += 0.12
            if humidity >= 90:
                probability += 0.12
            if pressure <= 1002:
                probability += 0.18
            probability += avg_recent_anomaly * 0.25
            probability += abs(t_trend) * 0.08
            probability += abs(p_trend) * 0.10
            probability += self._noise() * 0.05
            probability = clamp(probability, 0.02, 0.98)

            predictions.append(
                Prediction(
                    node_id=node_id,
                    horizon_hours=hours,
                    predicted_temp=round_half_up(temp, 1),
                    predicted_humidity=round_half_up(humidity),
                    predicted_pressure=round_half_up(pressure),
                    extreme_event_probability=round_half_up(probability, 3),
                    event_type=self._classify_trend_event(probability, temp, humidity, pressure),
                    generated_at=generated_at,
                    source="trend",
                )
            )

        logger.debug("Forecast node %s over horizons %s", node_id, list(horizons))
        return predictions

    @staticmethod
    def _classify_trend_event(
        probability: float, temp: float, humidity: float, pressure: float
    ) -> ExtremeEventType | None:
        if probability < EVENT_PROBABILITY_THRESHOLD:
            return None
        if temp >= 38:
            return ExtremeEventType.HEATWAVE
        # Pressure-driven storm proxy, not a rain measurement
        if pressure <= 1000:
            return ExtremeEventType.HEAVY_RAIN
        if humidity >= 92:
            return ExtremeEventType.FOG
        return ExtremeEventType.WEATHER_SHIFT

    def predict_from_latest(
        self,
        node_id: str,
        latest: Reading | None,
        horizons: Sequence[int] | None = None,
    ) -> list[Prediction]:
        """
        Bootstrap forecast anchored on a single reading, without a trend term.

        Used for scheduled refreshes before a node has a window. When
        ``latest`` is None the default anchor conditions at the current time
        are used.
        """
        horizons = tuple(horizons) if horizons is not None else self.horizons
        anchor = dict(DEFAULT_ANCHOR)
        anchor_ts = epoch_now()
        if latest is not None:
            anchor_ts = latest.timestamp
            for key in DEFAULT_ANCHOR:
                value = getattr(latest, key)
                if value is not None:
                    anchor[key] = value

        generated_at = epoch_now()
        predictions = []
        for hours in horizons:
            sun = diurnal_factor(anchor_ts + hours * 3600, self.tz)

            temp = round_half_up(clamp(anchor["temperature"] + sun * 2.8 + self._uniform(-1.4, 1.4), 16, 43), 1)
            humidity = round_half_up(clamp(anchor["humidity"] - sun * 8 + self._uniform(-5, 5), 30, 98))
            pressure = round_half_up(
                clamp(anchor["pressure"] + self._uniform(-4.5, 4.5) - anchor["rain_level"] * 0.1, 998, 1032)
            )

            raw = (
                0.08
                + (0.14 if temp >= 36 else 0)
                + (0.12 if humidity >= 88 else 0)
                + (0.15 if pressure <= 1004 else 0)
                + (0.12 if anchor["wind_speed"] >= 14 else 0)
                + (0.16 if anchor["rain_level"] >= 8 else 0)
                + anchor["anomaly_score"] * 0.22
                + self._uniform(0, 0.1)
            )
            probability = clamp(round_half_up(raw, 2), 0.03, 0.95)

            predictions.append(
                Prediction(
                    node_id=node_id,
                    horizon_hours=hours,
                    predicted_temp=temp,
                    predicted_humidity=humidity,
                    predicted_pressure=pressure,
                    extreme_event_probability=probability,
                    event_type=self._classify_anchor_event(probability, anchor, temp),
                    generated_at=generated_at,
                    source="bootstrap",
                )
            )
        return predictions

    @staticmethod
    def _classify_anchor_event(probability: float, anchor: dict, temp: float) -> ExtremeEventType | None:
        if probability < EVENT_PROBABILITY_THRESHOLD:
            return None
        if anchor["rain_level"] >= 8:
            return ExtremeEventType.HEAVY_RAIN
        if anchor["wind_speed"] >= 15:
            return ExtremeEventType.STRONG_WIND
        if temp >= 38:
            return ExtremeEventType.HEATWAVE
        return ExtremeEventType.WEATHER_SHIFT
