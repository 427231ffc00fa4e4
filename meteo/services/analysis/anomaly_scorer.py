"""
Anomaly Scorer
===============
Scores a reading for anomalous weather conditions.

Two formulas are kept side by side:

- **deep** (:meth:`AnomalyScorer.score_with_history`): absolute thresholds,
  rolling z-scores over the node's sliding window, temporal gradients against
  the previous reading and cross-sensor coherence checks. Anomaly threshold
  0.65.
- **boundary** (:meth:`AnomalyScorer.score_without_history`): a reduced set
  of absolute thresholds plus two gradient checks, usable before the reading
  belongs to any window. Anomaly threshold 0.70.

The two use different constants on purpose; they are not interchangeable.
Neither mutates the window.
"""

from __future__ import annotations

import logging
import random
from typing import Sequence

from meteo.domain.analysis import AnalysisResult
from meteo.domain.reading import TRACKED_FIELDS, Reading
from meteo.enums import RiskLevel, ScoringVariant
from meteo.services.analysis.sliding_window import WindowRegistry
from meteo.utils.statistics import clamp, describe, present, round_half_up, z_score

logger = logging.getLogger(__name__)

ANOMALY_THRESHOLD = 0.65
BOUNDARY_ANOMALY_THRESHOLD = 0.70

# Risk tiers, highest first
RISK_TIERS: tuple[tuple[float, RiskLevel], ...] = (
    (0.85, RiskLevel.CRITICAL),
    (0.65, RiskLevel.HIGH),
    (0.40, RiskLevel.ELEVATED),
)

Z_MIN_WINDOW = 8
Z_MIN_VALUES = 5
Z_STRONG = 3.0
Z_WEAK = 2.5

GRADIENT_MAX_SECONDS = 600

JITTER_AMPLITUDE = 0.03
JITTER_BIAS = 0.4


def risk_level_for(score: float) -> RiskLevel:
    """Step function from anomaly score to risk tier."""
    for floor, level in RISK_TIERS:
        if score >= floor:
            return level
    return RiskLevel.NORMAL


class AnomalyScorer:
    """
    Multi-layer anomaly scorer over per-node sliding windows.

    Randomness comes from an injected ``random.Random`` so runs can be seeded;
    ``jitter_enabled=False`` removes the cosmetic noise entirely.
    """

    def __init__(
        self,
        registry: WindowRegistry,
        *,
        rng: random.Random | None = None,
        jitter_enabled: bool = True,
    ):
        self.registry = registry
        self.rng = rng or random.Random()
        self.jitter_enabled = jitter_enabled

    # ------------------------------------------------------------------
    # Deep variant
    # ------------------------------------------------------------------

    def score(self, node_id: str, reading: Reading, previous: Reading | None = None) -> AnalysisResult:
        """
        Score a reading against the node's current window.

        Args:
            node_id: Node whose window supplies the z-score baseline
            reading: Reading to score (may or may not already be in the window)
            previous: Immediately preceding reading for the node, if known

        Returns:
            AnalysisResult with score, risk tier, factors and recommendations
        """
        window = self.registry.snapshot(node_id)
        factors: list[str] = []

        score = self._threshold_layer(reading, factors)
        score += self._zscore_layer(reading, window, factors)
        score += self._gradient_layer(reading, previous, factors)
        score += self._coherence_layer(reading, factors)

        if self.jitter_enabled:
            score += (self.rng.random() - JITTER_BIAS) * JITTER_AMPLITUDE

        final = round_half_up(clamp(score, 0.0, 1.0), 4)
        risk = risk_level_for(final)
        result = AnalysisResult(
            anomaly_score=final,
            is_anomaly=final >= ANOMALY_THRESHOLD,
            risk_level=risk,
            threshold=ANOMALY_THRESHOLD,
            variant=ScoringVariant.DEEP,
            factors=factors,
            recommendations=self._recommendations(reading, risk),
        )

        if result.is_anomaly:
            logger.warning(
                "Anomaly on node %s (score=%.4f, risk=%s): %s",
                node_id,
                final,
                risk.value,
                "; ".join(factors) or "no explicit factor",
            )
        else:
            logger.debug("Scored node %s reading at %s: %.4f", node_id, reading.timestamp, final)
        return result

    score_with_history = score

    def _threshold_layer(self, reading: Reading, factors: list[str]) -> float:
        score = 0.0
        t, h, p = reading.temperature, reading.humidity, reading.pressure

        if t is not None:
            if t >= 42:
                score += 0.35
                factors.append(f"Critical temperature: {t}°C")
            elif t >= 38:
                score += 0.20
                factors.append(f"Very high temperature: {t}°C")
            elif t <= 8:
                score += 0.25
                factors.append(f"Very low temperature: {t}°C")

            # Stacks with the low-temperature penalty
            if t <= 0:
                score += 0.15
                factors.append(f"Freeze detected: {t}°C")

        if h is not None:
            if h >= 95:
                score += 0.22
                factors.append(f"Saturated humidity: {h}%")
            elif h <= 15:
                score += 0.20
                factors.append(f"Extremely dry air: {h}%")

        if p is not None:
            if p <= 995:
                score += 0.25
                factors.append(f"Atmospheric depression: {p} hPa")
            elif p >= 1035:
                score += 0.15
                factors.append(f"Strong anticyclone: {p} hPa")

        if reading.wind_speed is not None and reading.wind_speed >= 20:
            score += 0.25
            factors.append(f"Violent wind: {reading.wind_speed} m/s")

        if reading.rain_level is not None and reading.rain_level >= 10:
            score += 0.22
            factors.append(f"Torrential rain: {reading.rain_level} mm/h")

        return score

    def _zscore_layer(self, reading: Reading, window: Sequence[Reading], factors: list[str]) -> float:
        if len(window) < Z_MIN_WINDOW:
            return 0.0

        score = 0.0
        for field_name in TRACKED_FIELDS:
            current = reading.value(field_name)
            if current is None:
                continue
            values = present(r.value(field_name) for r in window)
            if len(values) < Z_MIN_VALUES:
                continue

            z = z_score(current, describe(values))
            if z is None:
                continue
            if z > Z_STRONG:
                score += 0.18
                factors.append(f"{field_name}: z-score={round_half_up(z, 1):.1f} (far from recent mean)")
            elif z > Z_WEAK:
                score += 0.08
        return score

    def _gradient_layer(self, reading: Reading, previous: Reading | None, factors: list[str]) -> float:
        if previous is None:
            return 0.0

        elapsed = reading.timestamp - previous.timestamp
        if not 0 < elapsed < GRADIENT_MAX_SECONDS:
            return 0.0

        minutes = int(round_half_up(elapsed / 60))
        score = 0.0

        temp_delta = _delta(reading.temperature, previous.temperature)
        if temp_delta is not None and temp_delta > 4:
            score += 0.15
            factors.append(f"Abrupt temperature change: ±{round_half_up(temp_delta, 1):.1f}°C in {minutes}min")

        pressure_delta = _delta(reading.pressure, previous.pressure)
        if pressure_delta is not None and pressure_delta > 8:
            score += 0.18
            factors.append(f"Rapid pressure swing: ±{round_half_up(pressure_delta, 1):.1f} hPa in {minutes}min")

        humidity_delta = _delta(reading.humidity, previous.humidity)
        if humidity_delta is not None and humidity_delta > 20:
            score += 0.10
            factors.append(f"Sudden humidity change: ±{round_half_up(humidity_delta):.0f}% in {minutes}min")

        return score

    def _coherence_layer(self, reading: Reading, factors: list[str]) -> float:
        t, h, p = reading.temperature, reading.humidity, reading.pressure
        if t is None or h is None or p is None:
            return 0.0

        score = 0.0
        # A depression normally comes with humid air
        if p < 1000 and h < 40:
            score += 0.12
            factors.append("Incoherent readings: low pressure with dry air (check humidity sensor)")
        if t >= 35 and h >= 70:
            score += 0.15
            factors.append(f"Dangerous heat index: {t}°C / {h}%")
        return score

    @staticmethod
    def _recommendations(reading: Reading, risk: RiskLevel) -> list[str]:
        recommendations = []
        if risk == RiskLevel.CRITICAL:
            recommendations.append("Verify sensors and on-site conditions immediately")
            recommendations.append("Notify the field team")
        if reading.temperature is not None and reading.temperature >= 40:
            recommendations.append("Enable cooling / check sun exposure")
        if reading.pressure is not None and reading.pressure <= 998:
            recommendations.append("Prepare storm protection measures")
        if reading.humidity is not None and reading.humidity >= 95:
            recommendations.append("Check humidity sensor (possible condensation)")
        if reading.wind_speed is not None and reading.wind_speed >= 18:
            recommendations.append("Secure outdoor equipment")
        return recommendations

    # ------------------------------------------------------------------
    # Boundary variant
    # ------------------------------------------------------------------

    def score_without_history(self, reading: Reading, previous: Reading | None = None) -> AnalysisResult:
        """
        Score a reading without any window, e.g. freshly generated readings.

        A baseline of 0.04 (plus up to 0.08 of noise when jitter is enabled)
        accumulates reduced absolute thresholds and, when ``previous`` is
        given, a temperature-jump and a pressure-drop check.
        """
        factors: list[str] = []
        score = 0.04
        if self.jitter_enabled:
            score += self.rng.uniform(0.0, 0.08)

        t, h, p = reading.temperature, reading.humidity, reading.pressure
        if t is not None and (t >= 37 or t <= 15):
            score += 0.28
            factors.append(f"Temperature out of comfort band: {t}°C")
        if h is not None and (h >= 94 or h <= 25):
            score += 0.2
            factors.append(f"Humidity out of band: {h}%")
        if p is not None and (p <= 1001 or p >= 1024):
            score += 0.18
            factors.append(f"Pressure out of band: {p} hPa")
        if reading.wind_speed is not None and reading.wind_speed >= 15:
            score += 0.2
            factors.append(f"Strong wind: {reading.wind_speed} m/s")
        if reading.rain_level is not None and reading.rain_level >= 8:
            score += 0.22
            factors.append(f"Heavy rain: {reading.rain_level} mm/h")

        if previous is not None:
            temp_jump = _delta(t, previous.temperature)
            if temp_jump is not None and temp_jump >= 3.5:
                score += 0.14
                factors.append(f"Temperature jump: ±{round_half_up(temp_jump, 1):.1f}°C")
            if p is not None and previous.pressure is not None:
                pressure_drop = previous.pressure - p
                if pressure_drop >= 6:
                    score += 0.2
                    factors.append(f"Pressure drop: -{round_half_up(pressure_drop, 1):.1f} hPa")

        final = clamp(round_half_up(score, 3), 0.0, 1.0)
        risk = risk_level_for(final)
        return AnalysisResult(
            anomaly_score=final,
            is_anomaly=final >= BOUNDARY_ANOMALY_THRESHOLD,
            risk_level=risk,
            threshold=BOUNDARY_ANOMALY_THRESHOLD,
            variant=ScoringVariant.BOUNDARY,
            factors=factors,
            recommendations=self._recommendations(reading, risk),
        )


def _delta(current: float | None, before: float | None) -> float | None:
    if current is None or before is None:
        return None
    return abs(current - before)
