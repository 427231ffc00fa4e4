"""
Prediction Domain Object
=========================
One forecast for one node at one horizon.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from meteo.enums import ExtremeEventType


@dataclass(frozen=True)
class Prediction:
    """Forecast of a node's state ``horizon_hours`` after its latest reading."""

    node_id: str
    horizon_hours: int
    predicted_temp: float
    predicted_humidity: float
    predicted_pressure: float
    extreme_event_probability: float  # 0.0 to 1.0
    event_type: ExtremeEventType | None = None
    generated_at: int = 0
    source: str = "trend"

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_id": self.node_id,
            "horizon_hours": self.horizon_hours,
            "predicted_temp": self.predicted_temp,
            "predicted_humidity": self.predicted_humidity,
            "predicted_pressure": self.predicted_pressure,
            "extreme_event_probability": self.extreme_event_probability,
            "event_type": self.event_type.value if self.event_type else None,
            "generated_at": self.generated_at,
            "source": self.source,
        }
