"""
In-memory alert store.

Stands in for the persistence collaborator: it owns alert ids, the
acknowledged flag and the same-type deduplication rule. At most one alert per
``(node_id, type)`` is live within the dedup window, measured on reading
timestamps rather than wall-clock time so replays dedupe the same way.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from typing import Any

from meteo.domain.alert import Alert, AlertCandidate
from meteo.enums import AlertSeverity
from meteo.utils.concurrency import synchronized
from meteo.utils.time import epoch_now

logger = logging.getLogger(__name__)

DEFAULT_DEDUP_SECONDS = 20 * 60
DEFAULT_MAXSIZE = 2048


class AlertRepository:
    """Thread-safe, bounded alert store with same-type deduplication."""

    def __init__(self, dedup_seconds: int = DEFAULT_DEDUP_SECONDS, maxsize: int = DEFAULT_MAXSIZE):
        self.dedup_seconds = int(dedup_seconds)
        self.maxsize = max(1, int(maxsize))
        # alert_id -> Alert, insertion ordered (oldest first)
        self._alerts: OrderedDict[str, Alert] = OrderedDict()
        # (node_id, type) -> newest alert timestamp
        self._latest_by_key: dict[tuple[str, str], int] = {}
        # (node_id, type) -> stored alerts for the key; the key is pruned at zero
        self._count_by_key: dict[tuple[str, str], int] = {}
        self._lock = threading.RLock()

    @synchronized
    def insert(self, candidate: AlertCandidate, node_id: str, timestamp: int) -> Alert | None:
        """
        Store a candidate unless a same-type alert for the node is still live.

        Returns:
            The stored Alert, or None when the candidate was suppressed.
        """
        key = (node_id, candidate.type.value)
        latest = self._latest_by_key.get(key)
        if latest is not None and latest >= timestamp - self.dedup_seconds:
            logger.debug("Suppressed duplicate %s alert for node %s", candidate.type.value, node_id)
            return None

        alert = Alert(
            alert_id=str(uuid.uuid4()),
            node_id=node_id,
            timestamp=timestamp,
            type=candidate.type,
            severity=candidate.severity,
            message=candidate.message,
            created_at=epoch_now(),
        )
        self._alerts[alert.alert_id] = alert
        self._latest_by_key[key] = max(timestamp, latest) if latest is not None else timestamp
        self._count_by_key[key] = self._count_by_key.get(key, 0) + 1
        self._evict_overflow()
        return alert

    def _evict_overflow(self) -> None:
        while len(self._alerts) > self.maxsize:
            _, evicted = self._alerts.popitem(last=False)
            key = (evicted.node_id, evicted.type.value)
            remaining = self._count_by_key.get(key, 0) - 1
            if remaining > 0:
                self._count_by_key[key] = remaining
            else:
                self._count_by_key.pop(key, None)
                self._latest_by_key.pop(key, None)

    @synchronized
    def get_by_id(self, alert_id: str) -> Alert | None:
        return self._alerts.get(alert_id)

    @synchronized
    def acknowledge(self, alert_id: str) -> Alert | None:
        """Mark an alert acknowledged; returns None for unknown ids."""
        alert = self._alerts.get(alert_id)
        if alert is None:
            return None
        acknowledged = alert.acknowledge()
        self._alerts[alert_id] = acknowledged
        return acknowledged

    @synchronized
    def list(
        self,
        severity: AlertSeverity | str | None = None,
        acknowledged: bool | None = None,
        node_id: str | None = None,
        limit: int = 200,
    ) -> list[Alert]:
        """Return matching alerts, newest first."""
        severity_value = severity.value if isinstance(severity, AlertSeverity) else severity
        matches = []
        for alert in self._alerts.values():
            if severity_value is not None and alert.severity.value != severity_value:
                continue
            if acknowledged is not None and alert.acknowledged != acknowledged:
                continue
            if node_id is not None and alert.node_id != node_id:
                continue
            matches.append(alert)
        matches.sort(key=lambda a: a.timestamp, reverse=True)
        return matches[: max(0, int(limit))]

    @synchronized
    def summary(self) -> dict[str, Any]:
        by_severity: dict[str, int] = {}
        unacknowledged = 0
        for alert in self._alerts.values():
            by_severity[alert.severity.value] = by_severity.get(alert.severity.value, 0) + 1
            if not alert.acknowledged:
                unacknowledged += 1
        return {"total": len(self._alerts), "unacknowledged": unacknowledged, "by_severity": by_severity}

    def __len__(self) -> int:
        return len(self._alerts)
