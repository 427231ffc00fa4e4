"""
Realtime Event Payloads
========================
Pydantic models handed to the realtime transport, one per broadcast topic.
"""

from typing import Literal

from pydantic import BaseModel, Field

from meteo.domain.alert import Alert
from meteo.domain.analysis import AnalysisResult
from meteo.domain.prediction import Prediction
from meteo.domain.reading import Reading

RiskLevelName = Literal["normal", "elevated", "high", "critical"]
SeverityName = Literal["info", "warning", "critical"]


class SensorDataPayload(BaseModel):
    """Payload for the ``sensor_data`` topic."""

    schema_version: int = Field(default=1)

    node_id: str
    timestamp: int
    source: str = "api"

    temperature: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    luminosity: float | None = None
    rain_level: float | None = None
    wind_speed: float | None = None

    anomaly_score: float | None = Field(None, ge=0.0, le=1.0)
    is_anomaly: bool = False

    @classmethod
    def from_domain(cls, reading: Reading, source: str = "api") -> "SensorDataPayload":
        return cls(source=source, **reading.to_dict())


class AnalysisPayload(BaseModel):
    """Payload for the ``analysis`` topic."""

    node_id: str
    timestamp: int
    anomaly_score: float = Field(..., ge=0.0, le=1.0)
    is_anomaly: bool
    risk_level: RiskLevelName
    variant: Literal["boundary", "deep"]
    factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, node_id: str, timestamp: int, result: AnalysisResult) -> "AnalysisPayload":
        return cls(
            node_id=node_id,
            timestamp=timestamp,
            anomaly_score=result.anomaly_score,
            is_anomaly=result.is_anomaly,
            risk_level=result.risk_level.value,
            variant=result.variant.value,
            factors=list(result.factors),
            recommendations=list(result.recommendations),
        )


class AlertPayload(BaseModel):
    """Payload for the ``alert`` and ``alert_acknowledged`` topics."""

    id: str
    node_id: str
    timestamp: int
    type: str
    severity: SeverityName
    message: str
    acknowledged: bool = False

    @classmethod
    def from_domain(cls, alert: Alert) -> "AlertPayload":
        return cls(
            id=alert.alert_id,
            node_id=alert.node_id,
            timestamp=alert.timestamp,
            type=alert.type.value,
            severity=alert.severity.value,
            message=alert.message,
            acknowledged=alert.acknowledged,
        )


class PredictionPayload(BaseModel):
    """A single forecast horizon."""

    horizon_hours: int = Field(..., gt=0)
    predicted_temp: float
    predicted_humidity: float
    predicted_pressure: float
    extreme_event_probability: float = Field(..., ge=0.0, le=1.0)
    event_type: str | None = None

    @classmethod
    def from_domain(cls, prediction: Prediction) -> "PredictionPayload":
        return cls(
            horizon_hours=prediction.horizon_hours,
            predicted_temp=prediction.predicted_temp,
            predicted_humidity=prediction.predicted_humidity,
            predicted_pressure=prediction.predicted_pressure,
            extreme_event_probability=prediction.extreme_event_probability,
            event_type=prediction.event_type.value if prediction.event_type else None,
        )


class PredictionsPayload(BaseModel):
    """Payload for the ``predictions`` topic: one node's full forecast set."""

    node_id: str
    source: str
    generated_at: int
    predictions: list[PredictionPayload]

    @classmethod
    def from_domain(cls, node_id: str, predictions: list[Prediction]) -> "PredictionsPayload":
        return cls(
            node_id=node_id,
            source=predictions[0].source if predictions else "none",
            generated_at=predictions[0].generated_at if predictions else 0,
            predictions=[PredictionPayload.from_domain(p) for p in predictions],
        )
