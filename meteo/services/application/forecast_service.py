"""Forecast refresh: regenerates and publishes every node's prediction set."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from meteo.domain.prediction import Prediction
from meteo.enums import RealtimeEvent
from meteo.repositories.predictions import PredictionRepository
from meteo.schemas.events import PredictionsPayload
from meteo.services.analysis.forecaster import Forecaster
from meteo.services.analysis.sliding_window import WindowRegistry

if TYPE_CHECKING:
    from meteo.utils.event_bus import EventBus

logger = logging.getLogger(__name__)


class ForecastService:
    """Runs the forecaster per node and swaps in the results wholesale."""

    def __init__(
        self,
        registry: WindowRegistry,
        forecaster: Forecaster,
        prediction_repo: PredictionRepository,
        event_bus: EventBus | None = None,
    ):
        self.registry = registry
        self.forecaster = forecaster
        self.prediction_repo = prediction_repo
        self.event_bus = event_bus

    def refresh_node(self, node_id: str) -> list[Prediction]:
        """
        Forecast one node.

        Uses the window trend when the node has enough history, otherwise the
        bootstrap forecast anchored on its latest reading (or default
        conditions when none exists).
        """
        predictions = self.forecaster.predict(node_id)
        if predictions is None:
            predictions = self.forecaster.predict_from_latest(node_id, self.registry.latest(node_id))

        self.prediction_repo.replace_for_node(node_id, predictions)
        if self.event_bus is not None:
            self.event_bus.publish(RealtimeEvent.PREDICTIONS, PredictionsPayload.from_domain(node_id, predictions))
        return predictions

    def refresh(self, node_ids: Iterable[str]) -> dict[str, list[Prediction]]:
        """Forecast every node in ``node_ids``."""
        results = {}
        for node_id in node_ids:
            results[node_id] = self.refresh_node(node_id)
        logger.info("Refreshed forecasts for %d node(s)", len(results))
        return results
