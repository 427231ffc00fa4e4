from meteo.repositories.alerts import AlertRepository
from meteo.repositories.predictions import PredictionRepository

__all__ = ["AlertRepository", "PredictionRepository"]
