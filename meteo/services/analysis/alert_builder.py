"""
Alert Builder
==============
Derives alert candidates from a reading and its predecessor.

Stateless and deterministic: re-deriving from the same pair always proposes
the same candidates. Deduplication of same-type alerts per node is left to
the alert repository.
"""

from __future__ import annotations

from meteo.domain.alert import AlertCandidate
from meteo.domain.reading import Reading
from meteo.enums import AlertSeverity, AlertType
from meteo.utils.statistics import round_half_up

TEMP_CRITICAL = 38.5
TEMP_WARNING = 36.5
RAIN_CRITICAL = 10
WIND_WARNING = 18
PRESSURE_DROP_WARNING = 6
ANOMALY_CRITICAL_SCORE = 0.85


def build_alerts(reading: Reading, previous: Reading | None = None) -> list[AlertCandidate]:
    """
    Propose alerts for a reading.

    Args:
        reading: The reading, already carrying its anomaly score/flag
        previous: The previous reading for the same node, if any

    Returns:
        Zero or more candidates, at most one per alert type
    """
    alerts: list[AlertCandidate] = []
    t = reading.temperature

    if t is not None and t >= TEMP_CRITICAL:
        alerts.append(AlertCandidate(AlertType.TEMP, AlertSeverity.CRITICAL, f"Critical temperature detected: {t}°C"))
    elif t is not None and t >= TEMP_WARNING:
        alerts.append(AlertCandidate(AlertType.TEMP, AlertSeverity.WARNING, f"High temperature: {t}°C"))

    if reading.rain_level is not None and reading.rain_level >= RAIN_CRITICAL:
        alerts.append(
            AlertCandidate(AlertType.RAIN, AlertSeverity.CRITICAL, f"Intense precipitation: {reading.rain_level} mm/h")
        )

    if reading.wind_speed is not None and reading.wind_speed >= WIND_WARNING:
        alerts.append(
            AlertCandidate(AlertType.WIND, AlertSeverity.WARNING, f"Strong wind detected: {reading.wind_speed} m/s")
        )

    if previous is not None and previous.pressure is not None and reading.pressure is not None:
        drop = previous.pressure - reading.pressure
        if drop >= PRESSURE_DROP_WARNING:
            message = f"Rapid pressure drop: -{round_half_up(drop, 1)} hPa"
            alerts.append(AlertCandidate(AlertType.PRESSURE, AlertSeverity.WARNING, message))

    if reading.is_anomaly:
        score = reading.anomaly_score or 0.0
        severity = AlertSeverity.CRITICAL if score > ANOMALY_CRITICAL_SCORE else AlertSeverity.WARNING
        message = f"AI anomaly detected (score {round_half_up(score * 100):.0f}%)"
        alerts.append(AlertCandidate(AlertType.ANOMALY, severity, message))

    return alerts
