"""
Simulation loop: feeds synthetic readings for every simulated node through the
ingestion pipeline and periodically refreshes forecasts.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from meteo.services.application.forecast_service import ForecastService
from meteo.services.application.ingestion_service import IngestionService, IngestResult
from meteo.services.utilities.reading_simulator import ReadingSimulator
from meteo.utils.time import epoch_now
from meteo.workers.scheduler import IntervalScheduler

logger = logging.getLogger(__name__)

SIMULATION_JOB_ID = "simulation.tick"


class SimulationRunner:
    """One tick = one reading per node; every N ticks, a forecast refresh."""

    def __init__(
        self,
        simulator: ReadingSimulator,
        ingestion: IngestionService,
        forecasts: ForecastService,
        node_ids: Sequence[str],
        *,
        forecast_every_ticks: int = 6,
        clock: Callable[[], int] = epoch_now,
    ):
        self.simulator = simulator
        self.ingestion = ingestion
        self.forecasts = forecasts
        self.node_ids = list(node_ids)
        self.forecast_every_ticks = max(1, int(forecast_every_ticks))
        self.clock = clock
        self.tick_count = 0

    def tick(self, now: int | None = None) -> list[IngestResult]:
        """
        Run one simulation cycle; a failing node does not stop the others.

        Args:
            now: Timestamp stamped on the generated readings (defaults to the clock)
        """
        self.tick_count += 1
        if now is None:
            now = self.clock()
        results = []

        for node_id in self.node_ids:
            try:
                previous = self.ingestion.registry.latest(node_id)
                reading = self.simulator.generate(node_id, now, previous)
                results.append(self.ingestion.ingest(reading, previous, source="simulator"))
            except Exception as e:
                logger.error("Simulation failed for node %s: %s", node_id, e, exc_info=True)

        if self.tick_count % self.forecast_every_ticks == 0:
            self.forecasts.refresh(self.node_ids)

        alert_count = sum(len(result.alerts) for result in results)
        if alert_count:
            logger.info("Tick %d: %d reading(s), %d alert(s)", self.tick_count, len(results), alert_count)
        return results

    def attach(self, scheduler: IntervalScheduler, interval_seconds: float) -> None:
        """Register the tick as a recurring scheduler job."""
        scheduler.schedule_interval(SIMULATION_JOB_ID, self.tick, interval_seconds, start_immediately=True)
