from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from meteo.config import AppConfig
from meteo.repositories import AlertRepository, PredictionRepository
from meteo.services.analysis import AnomalyScorer, Forecaster, NodeDiagnostics, WindowRegistry
from meteo.services.application import AlertService, ForecastService, IngestionService
from meteo.services.utilities import ReadingSimulator
from meteo.utils.event_bus import EventBus
from meteo.utils.time import resolve_timezone
from meteo.workers.scheduler import IntervalScheduler
from meteo.workers.simulation import SimulationRunner

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage the analysis services of one process."""

    config: AppConfig
    rng: random.Random
    event_bus: EventBus
    registry: WindowRegistry
    alert_repo: AlertRepository
    prediction_repo: PredictionRepository
    scorer: AnomalyScorer
    forecaster: Forecaster
    diagnostics: NodeDiagnostics
    alert_service: AlertService
    ingestion_service: IngestionService
    forecast_service: ForecastService
    simulator: ReadingSimulator
    simulation: SimulationRunner
    scheduler: IntervalScheduler

    @classmethod
    def build(cls, config: AppConfig) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Every random source shares one ``random.Random`` seeded from
        ``config.random_seed`` so whole runs are reproducible.
        """
        logger.info("Building ServiceContainer (env=%s)...", config.environment)
        tz = resolve_timezone(config.timezone)
        rng = random.Random(config.random_seed)

        event_bus = EventBus(queue_size=config.eventbus_queue_size, worker_count=config.eventbus_worker_count)
        registry = WindowRegistry(window_size=config.window_size)
        alert_repo = AlertRepository(dedup_seconds=config.alert_dedup_seconds, maxsize=config.alert_cache_maxsize)
        prediction_repo = PredictionRepository()

        scorer = AnomalyScorer(registry, rng=rng, jitter_enabled=config.jitter_enabled)
        forecaster = Forecaster(
            registry,
            rng=rng,
            noise_enabled=config.jitter_enabled,
            tz=tz,
            horizons=config.forecast_horizons,
        )
        diagnostics = NodeDiagnostics(registry)

        alert_service = AlertService(alert_repo, event_bus)
        ingestion_service = IngestionService(
            registry,
            scorer,
            alert_service,
            event_bus,
            deep_score_min_history=config.deep_score_min_history,
        )
        forecast_service = ForecastService(registry, forecaster, prediction_repo, event_bus)

        simulator = ReadingSimulator(rng=rng, tz=tz)
        simulation = SimulationRunner(
            simulator,
            ingestion_service,
            forecast_service,
            config.simulated_nodes,
            forecast_every_ticks=config.forecast_every_ticks,
        )
        scheduler = IntervalScheduler()

        container = cls(
            config=config,
            rng=rng,
            event_bus=event_bus,
            registry=registry,
            alert_repo=alert_repo,
            prediction_repo=prediction_repo,
            scorer=scorer,
            forecaster=forecaster,
            diagnostics=diagnostics,
            alert_service=alert_service,
            ingestion_service=ingestion_service,
            forecast_service=forecast_service,
            simulator=simulator,
            simulation=simulation,
            scheduler=scheduler,
        )
        logger.info("ServiceContainer built successfully.")
        return container

    def start_simulation(self) -> None:
        """Schedule the simulation tick and start the scheduler loop."""
        self.simulation.attach(self.scheduler, self.config.simulation_interval_seconds)
        self.scheduler.start()

    def shutdown(self) -> None:
        """Stop background work and flush pending broadcasts."""
        try:
            self.scheduler.stop()
        except RuntimeError as e:
            logger.warning("Failed to stop scheduler: %s", e)

        if not self.event_bus.wait_until_idle(timeout=2.0):
            logger.warning("EventBus still had queued callbacks at shutdown")
        self.event_bus.shutdown(timeout=2.0)
        logger.info("ServiceContainer shutdown complete.")
