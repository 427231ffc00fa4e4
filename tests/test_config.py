import logging

import pytest

from meteo.config import AppConfig, load_config, setup_logging
from meteo.domain.exceptions import ConfigurationError


@pytest.fixture()
def clean_env(monkeypatch):
    for name in (
        "METEO_WINDOW_SIZE",
        "METEO_FORECAST_HORIZONS",
        "METEO_JITTER_ENABLED",
        "METEO_RANDOM_SEED",
        "METEO_TIMEZONE",
        "METEO_SIMULATED_NODES",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture()
def restore_root_handlers():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_defaults(clean_env):
    config = load_config()

    assert config.window_size == 60
    assert config.deep_score_min_history == 8
    assert config.forecast_horizons == [3, 6, 12, 24]
    assert config.alert_dedup_seconds == 1200
    assert config.random_seed is None
    assert config.simulated_nodes == ["node-001", "node-002", "node-003"]


def test_environment_overrides(clean_env):
    clean_env.setenv("METEO_WINDOW_SIZE", "30")
    clean_env.setenv("METEO_FORECAST_HORIZONS", "1, 2")
    clean_env.setenv("METEO_JITTER_ENABLED", "false")
    clean_env.setenv("METEO_RANDOM_SEED", "12")
    clean_env.setenv("METEO_SIMULATED_NODES", "alpha,beta")

    config = load_config()

    assert config.window_size == 30
    assert config.forecast_horizons == [1, 2]
    assert config.jitter_enabled is False
    assert config.random_seed == 12
    assert config.simulated_nodes == ["alpha", "beta"]


def test_blank_seed_means_unseeded(clean_env):
    clean_env.setenv("METEO_RANDOM_SEED", "")

    assert load_config().random_seed is None


def test_malformed_integer_names_the_variable(clean_env):
    clean_env.setenv("METEO_WINDOW_SIZE", "sixty")

    with pytest.raises(ValueError, match="METEO_WINDOW_SIZE"):
        load_config()


@pytest.mark.parametrize(
    "overrides",
    [
        {"window_size": 0},
        {"forecast_horizons": []},
        {"forecast_horizons": [6, -1]},
        {"eventbus_worker_count": 0},
        {"timezone": "Not/AZone"},
    ],
)
def test_invalid_values_raise_configuration_error(clean_env, overrides):
    with pytest.raises(ConfigurationError):
        AppConfig(**overrides)


def test_setup_logging_is_idempotent(restore_root_handlers, tmp_path):
    log_file = tmp_path / "logs" / "meteo.log"

    setup_logging("DEBUG", str(log_file))
    setup_logging("WARNING", str(log_file))

    root = logging.getLogger()
    names = [getattr(h, "name", "") for h in root.handlers]
    assert names.count("meteo_console") == 1
    assert names.count("meteo_file") == 1
    assert root.level == logging.WARNING
    assert log_file.parent.is_dir()
