"""
Ingestion Service
==================
Runs one incoming reading through the analysis pipeline: score, push into
the node's window, raise alerts and broadcast.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from meteo.domain.alert import Alert
from meteo.domain.analysis import AnalysisResult
from meteo.domain.reading import Reading
from meteo.enums import RealtimeEvent, ScoringVariant
from meteo.schemas.events import AnalysisPayload, SensorDataPayload
from meteo.services.analysis.anomaly_scorer import (
    BOUNDARY_ANOMALY_THRESHOLD,
    AnomalyScorer,
    risk_level_for,
)
from meteo.services.analysis.sliding_window import WindowRegistry
from meteo.services.application.alert_service import AlertService

if TYPE_CHECKING:
    from meteo.utils.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of ingesting one reading."""

    reading: Reading
    analysis: AnalysisResult
    alerts: list[Alert] = field(default_factory=list)
    source: str = "api"

    def to_dict(self) -> dict[str, Any]:
        return {
            "reading": self.reading.to_dict(),
            "analysis": self.analysis.to_dict(),
            "alerts": [alert.to_dict() for alert in self.alerts],
            "source": self.source,
        }


class IngestionService:
    """
    Composes window registry, scorer and alert service for each reading.

    Scoring policy: the deep formula runs once the node's window holds
    ``deep_score_min_history`` readings; before that the boundary formula
    runs. A payload that already carries an anomaly score keeps it.
    """

    def __init__(
        self,
        registry: WindowRegistry,
        scorer: AnomalyScorer,
        alert_service: AlertService,
        event_bus: EventBus | None = None,
        *,
        deep_score_min_history: int = 8,
    ):
        self.registry = registry
        self.scorer = scorer
        self.alert_service = alert_service
        self.event_bus = event_bus
        self.deep_score_min_history = deep_score_min_history

    def ingest(self, reading: Reading, previous: Reading | None = None, source: str = "api") -> IngestResult:
        """
        Ingest a reading.

        Args:
            reading: Validated reading (see ``Reading.from_dict``)
            previous: Preceding reading for the node; defaults to the newest
                reading in the node's window
            source: Origin tag carried into broadcasts ("api", "simulator", ...)
        """
        if previous is None:
            previous = self.registry.latest(reading.node_id)

        analysis = self._analyze(reading, previous)
        scored = reading.with_analysis(analysis.anomaly_score, analysis.is_anomaly)

        self.registry.push(scored)
        alerts = self.alert_service.raise_alerts(scored, previous)

        if self.event_bus is not None:
            self.event_bus.publish(RealtimeEvent.SENSOR_DATA, SensorDataPayload.from_domain(scored, source))
            self.event_bus.publish(
                RealtimeEvent.ANALYSIS,
                AnalysisPayload.from_domain(scored.node_id, scored.timestamp, analysis),
            )

        logger.debug(
            "Ingested %s reading for node %s (score=%.4f, alerts=%d)",
            source,
            scored.node_id,
            analysis.anomaly_score,
            len(alerts),
        )
        return IngestResult(reading=scored, analysis=analysis, alerts=alerts, source=source)

    def ingest_payload(self, payload: dict[str, Any], source: str = "api") -> IngestResult:
        """Validate a raw payload and ingest it; raises ValidationError."""
        return self.ingest(Reading.from_dict(payload), source=source)

    def _analyze(self, reading: Reading, previous: Reading | None) -> AnalysisResult:
        if reading.anomaly_score is not None:
            return self._provided_analysis(reading)

        window = self.registry.get(reading.node_id)
        history = len(window) if window is not None else 0
        if history >= self.deep_score_min_history:
            return self.scorer.score_with_history(reading.node_id, reading, previous)
        return self.scorer.score_without_history(reading, previous)

    @staticmethod
    def _provided_analysis(reading: Reading) -> AnalysisResult:
        """Wrap a caller-supplied score; the flag is re-derived from the boundary threshold."""
        score = reading.anomaly_score
        is_anomaly = score >= BOUNDARY_ANOMALY_THRESHOLD
        return AnalysisResult(
            anomaly_score=score,
            is_anomaly=is_anomaly,
            risk_level=risk_level_for(score),
            threshold=BOUNDARY_ANOMALY_THRESHOLD,
            variant=ScoringVariant.BOUNDARY,
            factors=["Score supplied by the sensor payload"],
        )
