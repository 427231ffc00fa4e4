from __future__ import annotations

import argparse
import json
import logging
import time
from dataclasses import replace

from meteo.config import load_config, setup_logging
from meteo.services.container import ServiceContainer
from meteo.utils.time import epoch_now

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meteo-simulator", description="Run the simulated weather-node pipeline.")
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Run this many ticks back to back, print a JSON summary and exit (default: run on a schedule)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for every random source")
    parser.add_argument("--no-jitter", action="store_true", help="Disable score jitter and forecast noise")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between scheduled ticks")
    parser.add_argument("--log-level", default=None, help="Override METEO_LOG_LEVEL")
    return parser


def _summary(container: ServiceContainer) -> dict:
    registry = container.registry
    return {
        "ticks": container.simulation.tick_count,
        "nodes": {
            node_id: {
                "readings": len(registry.snapshot(node_id)),
                "latest": registry.latest(node_id).to_dict() if registry.latest(node_id) else None,
                "diagnosis": container.diagnostics.diagnose(node_id).to_dict(),
            }
            for node_id in registry.node_ids()
        },
        "alerts": container.alert_repo.summary(),
        "predictions": {
            node_id: [p.to_dict() for p in predictions]
            for node_id, predictions in container.prediction_repo.all_current().items()
        },
    }


def main(argv: list[str] | None = None) -> int:
    """Run the simulation loop without any transport layer."""
    args = _build_parser().parse_args(argv)

    config = load_config()
    overrides = {}
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if args.no_jitter:
        overrides["jitter_enabled"] = False
    if args.interval is not None:
        overrides["simulation_interval_seconds"] = args.interval
    if args.log_level:
        overrides["log_level"] = args.log_level
    if overrides:
        config = replace(config, **overrides)

    setup_logging(config.log_level, config.log_file)
    container = ServiceContainer.build(config)

    if args.ticks is not None:
        # Back-to-back ticks are stamped one interval apart, as if scheduled
        start = epoch_now()
        step = max(1, int(config.simulation_interval_seconds))
        for index in range(max(0, args.ticks)):
            container.simulation.tick(now=start + index * step)
        container.shutdown()
        print(json.dumps(_summary(container), indent=2, default=str))
        return 0

    container.start_simulation()
    logger.info("Simulation running every %ss (press Ctrl+C to stop)", config.simulation_interval_seconds)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopping simulation...")
    finally:
        container.shutdown()
    return 0


if __name__ == "__main__":
    import sys

    raise SystemExit(main(sys.argv[1:]))
