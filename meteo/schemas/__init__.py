from meteo.schemas.events import (
    AlertPayload,
    AnalysisPayload,
    PredictionPayload,
    PredictionsPayload,
    SensorDataPayload,
)

__all__ = [
    "AlertPayload",
    "AnalysisPayload",
    "PredictionPayload",
    "PredictionsPayload",
    "SensorDataPayload",
]
