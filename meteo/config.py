"""
Configuration for the meteo analysis core
==========================================
Runtime settings loaded from environment variables, plus the logging setup.
Adjust values based on deployment size and how deterministic runs must be.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from zoneinfo import ZoneInfoNotFoundError

from meteo.domain.exceptions import ConfigurationError
from meteo.utils.time import resolve_timezone


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_optional_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return _env_int(name, 0)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_horizons(name: str, default: str) -> list[int]:
    items = _env_list(name, default)
    try:
        return [int(item) for item in items]
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a comma-separated list of integers.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("METEO_ENV", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("METEO_LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("METEO_LOG_FILE", ""))

    # Sliding window / scoring
    window_size: int = field(default_factory=lambda: _env_int("METEO_WINDOW_SIZE", 60))
    deep_score_min_history: int = field(default_factory=lambda: _env_int("METEO_DEEP_SCORE_MIN_HISTORY", 8))
    jitter_enabled: bool = field(default_factory=lambda: _env_bool("METEO_JITTER_ENABLED", True))
    random_seed: int | None = field(default_factory=lambda: _env_optional_int("METEO_RANDOM_SEED"))

    # Forecasting
    forecast_horizons: list[int] = field(
        default_factory=lambda: _env_horizons("METEO_FORECAST_HORIZONS", "3,6,12,24")
    )
    timezone: str = field(default_factory=lambda: os.getenv("METEO_TIMEZONE", "UTC"))

    # Alerts
    alert_dedup_seconds: int = field(default_factory=lambda: _env_int("METEO_ALERT_DEDUP_SECONDS", 20 * 60))
    alert_cache_maxsize: int = field(default_factory=lambda: _env_int("METEO_ALERT_CACHE_MAXSIZE", 2048))

    # Simulation loop
    simulation_interval_seconds: float = field(
        default_factory=lambda: _env_float("METEO_SIMULATION_INTERVAL", 5.0)
    )
    forecast_every_ticks: int = field(default_factory=lambda: _env_int("METEO_FORECAST_EVERY_TICKS", 6))
    simulated_nodes: list[str] = field(
        default_factory=lambda: _env_list("METEO_SIMULATED_NODES", "node-001,node-002,node-003")
    )

    eventbus_queue_size: int = field(default_factory=lambda: _env_int("METEO_EVENTBUS_QUEUE_SIZE", 1024))
    eventbus_worker_count: int = field(default_factory=lambda: _env_int("METEO_EVENTBUS_WORKER_COUNT", 2))

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ConfigurationError("window_size must be at least 1", detail={"window_size": self.window_size})
        if self.deep_score_min_history < 0:
            raise ConfigurationError("deep_score_min_history must not be negative")
        if not self.forecast_horizons or any(h <= 0 for h in self.forecast_horizons):
            raise ConfigurationError(
                "forecast_horizons must be a non-empty list of positive hours",
                detail={"forecast_horizons": self.forecast_horizons},
            )
        if self.eventbus_worker_count < 1:
            raise ConfigurationError("eventbus_worker_count must be at least 1")
        if self.forecast_every_ticks < 1:
            raise ConfigurationError("forecast_every_ticks must be at least 1")
        if self.simulation_interval_seconds <= 0:
            raise ConfigurationError("simulation_interval_seconds must be positive")
        try:
            resolve_timezone(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"Unknown timezone: {self.timezone}") from None


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()


def setup_logging(level: str = "INFO", log_file: str = "") -> None:
    """Setup logging configuration."""
    from logging.handlers import RotatingFileHandler

    log_level = getattr(logging, str(level).upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid duplicate handlers when setup is called more than once
    has_console = any(getattr(h, "name", "") == "meteo_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "meteo_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "meteo_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "meteo_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"meteo_console", "meteo_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))
