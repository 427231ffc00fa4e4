"""
Node Diagnostics
=================
Evaluates a node's sliding window for signs of sensor malfunction:
stuck values, values outside physical limits and a high anomaly rate.
"""

from __future__ import annotations

import logging

from meteo.domain.analysis import NodeDiagnosis
from meteo.domain.reading import TRACKED_FIELDS
from meteo.enums import DiagnosisStatus
from meteo.services.analysis.anomaly_scorer import ANOMALY_THRESHOLD
from meteo.services.analysis.sliding_window import WindowRegistry
from meteo.utils.statistics import describe, present, round_half_up

logger = logging.getLogger(__name__)

MIN_DIAGNOSIS_HISTORY = 5
STUCK_STD = 0.01
STUCK_MIN_SAMPLES = 10
ELEVATED_ANOMALY_RATE = 0.4

PHYSICAL_LIMITS = {
    "temperature": (-40.0, 60.0),
    "pressure": (870.0, 1085.0),
}


class NodeDiagnostics:
    """Sensor health checks over per-node windows."""

    def __init__(self, registry: WindowRegistry):
        self.registry = registry

    def diagnose(self, node_id: str) -> NodeDiagnosis:
        """
        Assess the health of a node's sensor stream.

        Returns an ``insufficient_data`` diagnosis when the window holds
        fewer than 5 readings.
        """
        window = self.registry.snapshot(node_id)
        if len(window) < MIN_DIAGNOSIS_HISTORY:
            return NodeDiagnosis(
                node_id=node_id,
                status=DiagnosisStatus.INSUFFICIENT_DATA,
                readings=len(window),
                message="Not enough data for a diagnosis",
            )

        series = {name: present(r.value(name) for r in window) for name in TRACKED_FIELDS}
        stats = {name: describe(values) for name, values in series.items()}
        issues: list[str] = []

        # A flat line is suspicious, not reassuring
        for name in TRACKED_FIELDS:
            if stats[name].std < STUCK_STD and len(series[name]) > STUCK_MIN_SAMPLES:
                issues.append(f"{name.capitalize()} sensor possibly stuck (no variation)")

        for name, (low, high) in PHYSICAL_LIMITS.items():
            field_stats = stats[name]
            if field_stats.count and (field_stats.min < low or field_stats.max > high):
                issues.append(
                    f"{name.capitalize()} outside physical limits: [{field_stats.min}, {field_stats.max}]"
                )

        anomalous = sum(1 for r in window if (r.anomaly_score or 0.0) >= ANOMALY_THRESHOLD)
        anomaly_rate = anomalous / len(window)
        if anomaly_rate > ELEVATED_ANOMALY_RATE:
            issues.append(f"Elevated anomaly rate: {round_half_up(anomaly_rate * 100):.0f}% of readings")

        status = DiagnosisStatus.HEALTHY if not issues else DiagnosisStatus.ATTENTION
        if issues:
            logger.info("Node %s needs attention: %s", node_id, "; ".join(issues))

        return NodeDiagnosis(
            node_id=node_id,
            status=status,
            readings=len(window),
            issues=issues,
            stats=stats,
            anomaly_rate=round_half_up(anomaly_rate * 100, 1),
        )
