"""
Analysis Core
=============

Sliding windows plus the heuristic engines that read them.
"""

from meteo.services.analysis.alert_builder import build_alerts
from meteo.services.analysis.anomaly_scorer import (
    ANOMALY_THRESHOLD,
    BOUNDARY_ANOMALY_THRESHOLD,
    AnomalyScorer,
    risk_level_for,
)
from meteo.services.analysis.diagnostics import NodeDiagnostics
from meteo.services.analysis.forecaster import DEFAULT_HORIZONS, Forecaster, diurnal_factor
from meteo.services.analysis.sliding_window import SlidingWindow, WindowRegistry

__all__ = [
    "ANOMALY_THRESHOLD",
    "AnomalyScorer",
    "BOUNDARY_ANOMALY_THRESHOLD",
    "DEFAULT_HORIZONS",
    "Forecaster",
    "NodeDiagnostics",
    "SlidingWindow",
    "WindowRegistry",
    "build_alerts",
    "diurnal_factor",
    "risk_level_for",
]
