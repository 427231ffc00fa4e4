"""
Common Enumerations
====================

Enums shared by the analysis core, the repositories and the realtime layer.
"""

from enum import Enum


class RiskLevel(str, Enum):
    """
    Ordinal risk tiers derived from an anomaly score.
    Used by: anomaly_scorer
    """
    NORMAL = "normal"
    ELEVATED = "elevated"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)


_RISK_ORDER = [RiskLevel.NORMAL, RiskLevel.ELEVATED, RiskLevel.HIGH, RiskLevel.CRITICAL]


class AlertType(str, Enum):
    """
    Alert categories raised from a single reading.
    Used by: alert_builder, alert_service
    """
    TEMP = "TEMP"
    RAIN = "RAIN"
    WIND = "WIND"
    PRESSURE = "PRESSURE"
    ANOMALY = "ANOMALY"

    def __str__(self) -> str:
        return self.value


class AlertSeverity(str, Enum):
    """
    Alert severity levels.
    Used by: alert_builder, alert repository filters
    """
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class ExtremeEventType(str, Enum):
    """
    Forecast event classifications.
    Used by: forecaster
    """
    HEATWAVE = "HEATWAVE"
    HEAVY_RAIN = "HEAVY_RAIN"
    STRONG_WIND = "STRONG_WIND"
    FOG = "FOG"
    WEATHER_SHIFT = "WEATHER_SHIFT"

    def __str__(self) -> str:
        return self.value


class DiagnosisStatus(str, Enum):
    """
    Sensor stream health states.
    Used by: diagnostics
    """
    INSUFFICIENT_DATA = "insufficient_data"
    HEALTHY = "healthy"
    ATTENTION = "attention"

    def __str__(self) -> str:
        return self.value


class ScoringVariant(str, Enum):
    """Which anomaly formula produced a score."""
    BOUNDARY = "boundary"
    DEEP = "deep"

    def __str__(self) -> str:
        return self.value
