from meteo.services.application.alert_service import AlertService
from meteo.services.application.forecast_service import ForecastService
from meteo.services.application.ingestion_service import IngestionService, IngestResult

__all__ = ["AlertService", "ForecastService", "IngestResult", "IngestionService"]
