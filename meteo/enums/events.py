from enum import Enum


class RealtimeEvent(str, Enum):
    """Topics broadcast to realtime subscribers."""

    SENSOR_DATA = "sensor_data"
    ANALYSIS = "analysis"
    ALERT = "alert"
    ALERT_ACKNOWLEDGED = "alert_acknowledged"
    PREDICTIONS = "predictions"
