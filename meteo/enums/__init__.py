"""
Enums Module
============

Enumeration types for the meteo analysis core.
"""

from meteo.enums.common import (
    AlertSeverity,
    AlertType,
    DiagnosisStatus,
    ExtremeEventType,
    RiskLevel,
    ScoringVariant,
)
from meteo.enums.events import RealtimeEvent

__all__ = [
    "AlertSeverity",
    "AlertType",
    "DiagnosisStatus",
    "ExtremeEventType",
    "RealtimeEvent",
    "RiskLevel",
    "ScoringVariant",
]
