"""
Domain Module
=============

Value objects and dataclasses of the meteo analysis core.
"""

from meteo.domain.alert import Alert, AlertCandidate
from meteo.domain.analysis import AnalysisResult, FieldStats, NodeDiagnosis
from meteo.domain.exceptions import ConfigurationError, MeteoError, NotFoundError, ValidationError
from meteo.domain.prediction import Prediction
from meteo.domain.reading import SENSOR_FIELDS, TRACKED_FIELDS, Reading

__all__ = [
    "Alert",
    "AlertCandidate",
    "AnalysisResult",
    "ConfigurationError",
    "FieldStats",
    "MeteoError",
    "NodeDiagnosis",
    "NotFoundError",
    "Prediction",
    "Reading",
    "SENSOR_FIELDS",
    "TRACKED_FIELDS",
    "ValidationError",
]
