"""Alert service: derives, deduplicates, stores and broadcasts alerts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from meteo.domain.alert import Alert
from meteo.domain.exceptions import NotFoundError
from meteo.domain.reading import Reading
from meteo.enums import RealtimeEvent
from meteo.repositories.alerts import AlertRepository
from meteo.schemas.events import AlertPayload
from meteo.services.analysis.alert_builder import build_alerts

if TYPE_CHECKING:
    from meteo.utils.event_bus import EventBus

logger = logging.getLogger(__name__)


class AlertService:
    """Service for turning readings into stored, deduplicated alerts."""

    def __init__(self, alert_repo: AlertRepository, event_bus: EventBus | None = None):
        """Initialize the alert service.

        Args:
            alert_repo: AlertRepository instance
            event_bus: Optional bus that receives ``alert`` events
        """
        self.alert_repo = alert_repo
        self.event_bus = event_bus

    def raise_alerts(self, reading: Reading, previous: Reading | None = None) -> list[Alert]:
        """
        Build candidates for a reading and store those not suppressed.

        Returns:
            Newly created alerts (duplicates within the dedup window excluded)
        """
        created = []
        for candidate in build_alerts(reading, previous):
            alert = self.alert_repo.insert(candidate, node_id=reading.node_id, timestamp=reading.timestamp)
            if alert is None:
                continue
            created.append(alert)
            logger.info(
                "Alert %s [%s] on node %s: %s",
                alert.type.value,
                alert.severity.value,
                alert.node_id,
                alert.message,
            )
            if self.event_bus is not None:
                self.event_bus.publish(RealtimeEvent.ALERT, AlertPayload.from_domain(alert))
        return created

    def acknowledge(self, alert_id: str) -> Alert:
        """
        Acknowledge an alert.

        Raises:
            NotFoundError: If no alert has this id.
        """
        alert = self.alert_repo.acknowledge(alert_id)
        if alert is None:
            raise NotFoundError(f"Alert not found: {alert_id}", detail={"alert_id": alert_id})
        if self.event_bus is not None:
            self.event_bus.publish(RealtimeEvent.ALERT_ACKNOWLEDGED, AlertPayload.from_domain(alert))
        return alert

    def list_alerts(self, **filters) -> list[Alert]:
        return self.alert_repo.list(**filters)
