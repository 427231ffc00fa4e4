"""
Sensor Reading Value Object
============================
Immutable value object representing one timestamped observation for one node.

Every sensor field is optional: an absent value is ``None`` and is skipped by
threshold and statistics checks rather than being treated as zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any

from meteo.domain.exceptions import ValidationError
from meteo.utils.time import epoch_now

SENSOR_FIELDS: tuple[str, ...] = (
    "temperature",
    "humidity",
    "pressure",
    "luminosity",
    "rain_level",
    "wind_speed",
)

# Fields the window statistics and forecasts operate on
TRACKED_FIELDS: tuple[str, ...] = ("temperature", "humidity", "pressure")


@dataclass(frozen=True)
class Reading:
    """
    Immutable sensor reading.

    ``anomaly_score`` and ``is_anomaly`` are derived by the scorer; a raw
    reading straight from a sensor carries ``None`` for the score.
    """

    node_id: str
    timestamp: int
    temperature: float | None = None  # °C
    humidity: float | None = None  # %
    pressure: float | None = None  # hPa
    luminosity: float | None = None  # lux
    rain_level: float | None = None  # mm/h
    wind_speed: float | None = None  # m/s
    anomaly_score: float | None = None
    is_anomaly: bool = False

    def value(self, field_name: str) -> float | None:
        """Return a sensor field by name."""
        return getattr(self, field_name)

    def with_analysis(self, anomaly_score: float, is_anomaly: bool) -> "Reading":
        """Return a copy carrying the scorer output."""
        return replace(self, anomaly_score=anomaly_score, is_anomaly=bool(is_anomaly))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "node_id": self.node_id,
            "timestamp": self.timestamp,
            "temperature": self.temperature,
            "humidity": self.humidity,
            "pressure": self.pressure,
            "luminosity": self.luminosity,
            "rain_level": self.rain_level,
            "wind_speed": self.wind_speed,
            "anomaly_score": self.anomaly_score,
            "is_anomaly": self.is_anomaly,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Reading":
        """
        Build a reading from an ingestion payload.

        Args:
            payload: Mapping with ``node_id`` and any of the sensor fields.
                ``timestamp`` defaults to now; ``is_anomaly`` accepts a bool
                or 0/1.

        Raises:
            ValidationError: If the payload is malformed.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Reading payload must be a mapping")

        node_id = payload.get("node_id")
        if not isinstance(node_id, str) or not node_id.strip():
            raise ValidationError("node_id must be a non-empty string", detail={"node_id": node_id})

        timestamp = payload.get("timestamp")
        if timestamp is None:
            timestamp = epoch_now()
        elif isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValidationError("timestamp must be an integer", detail={"timestamp": timestamp})

        values: dict[str, float | None] = {}
        for name in SENSOR_FIELDS:
            values[name] = _optional_number(name, payload.get(name))

        score = _optional_number("anomaly_score", payload.get("anomaly_score"))
        if score is not None and not 0.0 <= score <= 1.0:
            raise ValidationError("anomaly_score must be within [0, 1]", detail={"anomaly_score": score})

        raw_flag = payload.get("is_anomaly")
        if raw_flag is None:
            is_anomaly = False
        elif isinstance(raw_flag, bool) or raw_flag in (0, 1):
            is_anomaly = bool(raw_flag)
        else:
            raise ValidationError("is_anomaly must be a boolean or 0/1", detail={"is_anomaly": raw_flag})

        return cls(
            node_id=node_id,
            timestamp=timestamp,
            anomaly_score=score,
            is_anomaly=is_anomaly,
            **values,
        )


def _optional_number(name: str, value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", detail={name: value})
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite", detail={name: value})
    return float(value)
