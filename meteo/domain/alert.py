"""
Alert Domain Objects
=====================
Alert candidates proposed by the builder and alerts accepted by the store.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from meteo.enums import AlertSeverity, AlertType


@dataclass(frozen=True)
class AlertCandidate:
    """An alert proposed from one reading, before node/timestamp are attached."""

    type: AlertType
    severity: AlertSeverity
    message: str


@dataclass(frozen=True)
class Alert:
    """A stored alert."""

    alert_id: str
    node_id: str
    timestamp: int
    type: AlertType
    severity: AlertSeverity
    message: str
    acknowledged: bool = False
    created_at: int = 0

    def acknowledge(self) -> "Alert":
        return replace(self, acknowledged=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.alert_id,
            "node_id": self.node_id,
            "timestamp": self.timestamp,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "acknowledged": self.acknowledged,
            "created_at": self.created_at,
        }
