"""
Analysis Domain Objects
========================
Dataclasses produced by the anomaly scorer and node diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from meteo.enums import DiagnosisStatus, RiskLevel, ScoringVariant


@dataclass
class AnalysisResult:
    """Anomaly scorer output for one reading."""

    anomaly_score: float  # 0.0 to 1.0
    is_anomaly: bool
    risk_level: RiskLevel
    threshold: float
    variant: ScoringVariant
    factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "anomaly_score": self.anomaly_score,
            "is_anomaly": self.is_anomaly,
            "risk_level": self.risk_level.value,
            "threshold": self.threshold,
            "variant": self.variant.value,
            "factors": list(self.factors),
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class FieldStats:
    """Descriptive statistics for one numeric field."""

    mean: float = 0.0
    std: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"mean": self.mean, "std": self.std, "min": self.min, "max": self.max, "count": self.count}


@dataclass
class NodeDiagnosis:
    """Health assessment of one node's sensor stream."""

    node_id: str
    status: DiagnosisStatus
    readings: int
    issues: list[str] = field(default_factory=list)
    stats: dict[str, FieldStats] = field(default_factory=dict)
    anomaly_rate: float = 0.0  # percentage of the window
    message: str | None = None

    @property
    def is_healthy(self) -> bool:
        return self.status == DiagnosisStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "node_id": self.node_id,
            "status": self.status.value,
            "readings": self.readings,
        }
        if self.status == DiagnosisStatus.INSUFFICIENT_DATA:
            payload["message"] = self.message
            return payload
        payload.update(
            {
                "issues": list(self.issues),
                "stats": {name: stats.to_dict() for name, stats in self.stats.items()},
                "anomaly_rate": self.anomaly_rate,
            }
        )
        return payload
